from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Department
from .model import Student, StudentView


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        raise NotImplementedError

    def create_student(self, *, user_id: int, roll_no: str, year: int, department: Department) -> int:
        raise NotImplementedError

    def list_views(self, student_ids: Optional[Iterable[int]] = None) -> Sequence[StudentView]:
        """Students joined with their users; all students when ``student_ids`` is None."""

        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
