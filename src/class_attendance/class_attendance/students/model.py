from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..core.enums import Department
from ..users.model import User


@dataclass(frozen=True)
class Student:
    """Domain entity: the student profile attached 1:1 to a User."""

    student_id: int
    user_id: int
    roll_no: str
    year: int
    department: Department

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "userId": self.user_id,
            "rollNo": self.roll_no,
            "year": self.year,
            "department": self.department.value,
        }


@dataclass(frozen=True)
class StudentView:
    """Read-model: a student joined with its user's name and email."""

    student: Student
    name: str
    email: str

    @property
    def student_id(self) -> int:
        return self.student.student_id

    def to_dict(self) -> dict:
        data = self.student.to_dict()
        data.update({"name": self.name, "email": self.email})
        return data


@dataclass(frozen=True)
class Unprofiled:
    """A user that has never been enrolled as a student."""

    user: User


@dataclass(frozen=True)
class Profiled:
    user: User
    student: Student


UserProfile = Union[Unprofiled, Profiled]
