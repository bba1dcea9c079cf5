from app.models.academic import SchoolClass, Subject, Teacher, TeacherAssignment, Term  # noqa: F401
from app.models.schedule import Schedule  # noqa: F401
from app.models.semester_schedule import (  # noqa: F401
    SemesterSchedule,
    SemesterScheduleSlot,
    SemesterScheduleStatus,
)
from app.models.teacher_preference import TeacherPreference  # noqa: F401
