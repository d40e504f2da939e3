from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import ClassSection


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[ClassSection]:
        raise NotImplementedError

    def find_duplicate(
        self,
        *,
        teacher_id: int,
        name: str,
        subject: str,
        exclude_class_id: Optional[int] = None,
    ) -> Optional[ClassSection]:
        """Another class of ``teacher_id`` with the same name and subject."""

        raise NotImplementedError

    def create_class(self, *, name: str, subject: str, teacher_id: int) -> int:
        raise NotImplementedError

    def update_class(self, class_id: int, *, name: str, subject: str) -> bool:
        raise NotImplementedError

    def delete_class(self, class_id: int) -> bool:
        """Delete the class and its roster links; attendance sheets are kept."""

        raise NotImplementedError

    def list_for_teacher(self, teacher_id: int) -> Sequence[ClassSection]:
        """Newest first."""

        raise NotImplementedError

    def list_all(self) -> Sequence[ClassSection]:
        raise NotImplementedError

    def add_students(self, class_id: int, student_ids: Iterable[int]) -> int:
        """Set-add students to the roster. Returns the number newly added."""

        raise NotImplementedError

    def detach_teacher(self, teacher_id: int) -> int:
        """Clear ``teacher_id`` on every class it owns. Returns affected count."""

        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
