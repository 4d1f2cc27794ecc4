from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tutorslot.db.base import Base


class Subject(Base):
    __tablename__ = "subjects"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)


class ClassType(Base):
    __tablename__ = "class_types"
    __table_args__ = (CheckConstraint("max_students > 0", name="ck_class_types_max_students"),)

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    badge_text: Mapped[str] = mapped_column(String(50), nullable=False)
    max_students: Mapped[int] = mapped_column(Integer, nullable=False)


class ClassTypeCompatibility(Base):
    """One direction of the compatibility matrix; the table is not kept symmetric."""

    __tablename__ = "class_type_compatibility"

    class_type_a: Mapped[str] = mapped_column(
        String(50), ForeignKey("class_types.code", ondelete="CASCADE"), primary_key=True
    )
    class_type_b: Mapped[str] = mapped_column(
        String(50), ForeignKey("class_types.code", ondelete="CASCADE"), primary_key=True
    )
    is_compatible: Mapped[bool] = mapped_column(Boolean, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
