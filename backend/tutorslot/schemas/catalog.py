from pydantic import BaseModel, Field, field_validator


class InstructorOption(BaseModel):
    id: str
    name: str
    days_off: list[int] = Field(default_factory=list)


class StudentOption(BaseModel):
    id: str
    name: str
    default_instructor_id: str | None = None


class SubjectOption(BaseModel):
    code: str
    label: str


class ClassTypeOption(BaseModel):
    code: str
    label: str
    badge_text: str
    max_students: int


class OptionsOut(BaseModel):
    instructors: list[InstructorOption]
    students: list[StudentOption]
    subjects: list[SubjectOption]
    class_types: list[ClassTypeOption]


class DaysOffUpdate(BaseModel):
    days_off: list[int] = Field(default_factory=list, max_length=7)

    @field_validator("days_off")
    @classmethod
    def validate_days(cls, value: list[int]) -> list[int]:
        invalid = [day for day in value if day < 1 or day > 7]
        if invalid:
            raise ValueError("days_off may only contain weekdays 1 (Monday) through 7 (Sunday)")
        return sorted(set(value))


class DaysOffOut(BaseModel):
    id: str
    days_off: list[int]


class CompatibilityRuleIn(BaseModel):
    class_type_a: str = Field(min_length=1, max_length=50)
    class_type_b: str = Field(min_length=1, max_length=50)
    is_compatible: bool
    reason: str | None = Field(default=None, max_length=500)


class CompatibilityRuleOut(CompatibilityRuleIn):
    model_config = {"from_attributes": True}


class SubjectUpdate(BaseModel):
    display_name: str = Field(min_length=1, max_length=200)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("display_name must not be blank")
        return value


class SubjectIn(SubjectUpdate):
    code: str = Field(min_length=1, max_length=50)


class SubjectOut(BaseModel):
    code: str
    display_name: str

    model_config = {"from_attributes": True}
