from tutorslot.models.catalog import ClassType, ClassTypeCompatibility, Subject  # noqa: F401
from tutorslot.models.class_definition import ClassDefinition, ScheduleMode, ScheduleStatus  # noqa: F401
from tutorslot.models.class_override import ClassOverride, OverrideAction  # noqa: F401
from tutorslot.models.enrollment import Enrollment  # noqa: F401
from tutorslot.models.instructor import Instructor  # noqa: F401
from tutorslot.models.status_log import ClassStatusLog  # noqa: F401
from tutorslot.models.student import Student  # noqa: F401
