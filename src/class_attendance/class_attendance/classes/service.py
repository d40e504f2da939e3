from __future__ import annotations

from typing import Optional

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..realtime.notifier import DashboardNotifier, NullNotifier
from ..students.repository import StudentRepository
from .model import ClassSection
from .repository import ClassRepository


def load_class(classes: ClassRepository, class_id: int) -> ClassSection:
    course = classes.get_by_id(int(class_id))
    if not course:
        raise NotFoundError("Class not found.")
    return course


def load_owned_class(
    classes: ClassRepository,
    *,
    class_id: int,
    current_role: Role,
    user_id: int,
    action: str = "modify",
) -> ClassSection:
    """Load a class that the calling teacher owns.

    Raises NotFoundError for an unknown class and AuthorizationError when the
    caller is not a teacher or does not own it.
    """
    course = load_class(classes, class_id)
    if current_role != Role.TEACHER or not course.is_owned_by(user_id):
        raise AuthorizationError(f"Not authorized to {action} this class")
    return course


class ClassService:
    def __init__(
        self,
        classes: ClassRepository,
        students: StudentRepository,
        *,
        notifier: Optional[DashboardNotifier] = None,
    ):
        self._classes = classes
        self._students = students
        self._notifier = notifier or NullNotifier()

    def create_class(self, *, current_role: Role, user_id: int, name: str, subject: str) -> ClassSection:
        if current_role != Role.TEACHER:
            raise AuthorizationError("User role teacher is required")
        name = require_non_empty(name, "Class name")
        subject = require_non_empty(subject, "Subject")

        if self._classes.find_duplicate(teacher_id=int(user_id), name=name, subject=subject):
            raise ConflictError("You have already created a class with this name and subject.")

        class_id = self._classes.create_class(name=name, subject=subject, teacher_id=int(user_id))
        self._notifier.dashboard_changed(f"Class {name} ({subject}) created")
        return load_class(self._classes, class_id)

    def list_classes(self, *, user_id: int) -> list[dict]:
        return [c.to_dict() for c in self._classes.list_for_teacher(int(user_id))]

    def get_class_details(self, *, current_role: Role, user_id: int, class_id: int) -> dict:
        course = load_owned_class(
            self._classes, class_id=class_id, current_role=current_role, user_id=user_id, action="view"
        )
        views = {v.student_id: v for v in self._students.list_views(course.student_ids)}

        data = course.to_dict()
        data["students"] = [views[sid].to_dict() for sid in course.student_ids if sid in views]
        return data

    def update_class(
        self,
        *,
        current_role: Role,
        user_id: int,
        class_id: int,
        name: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> ClassSection:
        course = load_owned_class(
            self._classes, class_id=class_id, current_role=current_role, user_id=user_id, action="update"
        )
        new_name = (name or "").strip() or course.name
        new_subject = (subject or "").strip() or course.subject

        if self._classes.find_duplicate(
            teacher_id=int(user_id), name=new_name, subject=new_subject, exclude_class_id=course.class_id
        ):
            raise ConflictError("Another class with this name and subject already exists.")

        self._classes.update_class(course.class_id, name=new_name, subject=new_subject)
        return load_class(self._classes, course.class_id)

    def delete_class(self, *, current_role: Role, user_id: int, class_id: int) -> None:
        course = load_owned_class(
            self._classes, class_id=class_id, current_role=current_role, user_id=user_id, action="delete"
        )
        self._classes.delete_class(course.class_id)
        self._notifier.dashboard_changed(f"Class {course.name} ({course.subject}) deleted")
