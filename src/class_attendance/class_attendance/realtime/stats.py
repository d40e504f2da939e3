from __future__ import annotations

from dataclasses import dataclass

from ..classes.repository import ClassRepository
from ..core.enums import Role
from ..students.repository import StudentRepository
from ..users.repository import UserRepository


@dataclass(frozen=True)
class DashboardStats:
    total_users: int
    total_teachers: int
    total_students: int
    total_classes: int

    def to_dict(self) -> dict:
        return {
            "totalUsers": self.total_users,
            "totalTeachers": self.total_teachers,
            "totalStudents": self.total_students,
            "totalClasses": self.total_classes,
        }


class DashboardStatsService:
    """Fresh head counts for the admin dashboard (queried on every call)."""

    def __init__(self, users: UserRepository, students: StudentRepository, classes: ClassRepository):
        self._users = users
        self._students = students
        self._classes = classes

    def snapshot(self) -> DashboardStats:
        return DashboardStats(
            total_users=self._users.count(),
            total_teachers=self._users.count(role=Role.TEACHER),
            # Student profiles, not role=student users: unprofiled accounts are not counted.
            total_students=self._students.count(),
            total_classes=self._classes.count(),
        )
