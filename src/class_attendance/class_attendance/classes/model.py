from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ClassSection:
    """Domain entity: a teacher-owned class and its roster.

    ``teacher_id`` is None once the owning teacher has been deleted.
    """

    class_id: int
    name: str
    subject: str
    teacher_id: Optional[int]
    student_ids: tuple[int, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None

    def is_owned_by(self, user_id: int) -> bool:
        return self.teacher_id is not None and int(self.teacher_id) == int(user_id)

    def has_student(self, student_id: int) -> bool:
        return int(student_id) in self.student_ids

    def to_dict(self) -> dict:
        return {
            "id": self.class_id,
            "name": self.name,
            "subject": self.subject,
            "teacherId": self.teacher_id,
            "students": list(self.student_ids),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
