from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from ..attendance.reports import ReportService
from ..classes.repository import ClassRepository
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..realtime.notifier import DashboardNotifier, NullNotifier
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


class AdminService:
    """System-wide views and teacher removal."""

    def __init__(
        self,
        users: UserRepository,
        classes: ClassRepository,
        reports: ReportService,
        *,
        notifier: Optional[DashboardNotifier] = None,
    ):
        self._users = users
        self._classes = classes
        self._reports = reports
        self._notifier = notifier or NullNotifier()

    def list_teachers(self) -> list[dict]:
        by_teacher: dict[int, list[dict]] = defaultdict(list)
        for c in self._classes.list_all():
            if c.teacher_id is not None:
                by_teacher[int(c.teacher_id)].append({"id": c.class_id, "name": c.name, "subject": c.subject})

        return [
            {"id": t.user_id, "name": t.name, "email": t.email, "classes": by_teacher.get(t.user_id, [])}
            for t in self._users.list_by_role(Role.TEACHER)
        ]

    def list_classes(self) -> list[dict]:
        names = {t.user_id: t.name for t in self._users.list_by_role(Role.TEACHER)}
        return [
            {
                "id": c.class_id,
                "name": c.name,
                "subject": c.subject,
                "teacherName": names.get(c.teacher_id, "N/A") if c.teacher_id is not None else "N/A",
                "studentCount": len(c.student_ids),
            }
            for c in self._classes.list_all()
        ]

    def list_students(self) -> list[dict]:
        return self._reports.roster_with_attendance()

    def detained_count(self) -> int:
        return self._reports.detained_count()

    def delete_teacher(self, *, teacher_id: int) -> int:
        """Delete a teacher and orphan their classes; returns how many classes were orphaned."""
        teacher = self._users.get_by_id(int(teacher_id))
        if not teacher or teacher.role != Role.TEACHER:
            raise NotFoundError("Teacher not found")

        orphaned = self._classes.detach_teacher(teacher.user_id)
        self._users.delete_by_id(teacher.user_id)
        logger.info("deleted teacher %s (%s); %d classes orphaned", teacher.user_id, teacher.email, orphaned)

        self._notifier.dashboard_changed(f"Teacher {teacher.name} deleted")
        return orphaned
