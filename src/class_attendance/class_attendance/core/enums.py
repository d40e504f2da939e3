from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class AttendanceStatus(str, Enum):
    """Per-student status stored on an attendance sheet."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class Eligibility(str, Enum):
    """Exam eligibility derived from the overall attendance percentage."""

    ALLOWED = "Allowed"
    DETAINED = "Detained"


class Department(str, Enum):
    CSE = "CSE"
    ECE = "ECE"
    EEE = "EEE"
    MECH = "MECH"
    CIVIL = "CIVIL"
    CHEM = "CHEM"
    META = "META"
