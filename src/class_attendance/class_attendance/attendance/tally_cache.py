from __future__ import annotations

import threading
from typing import Iterable, Optional

from .aggregator import AttendanceTally


class TallyCache:
    """Whole-history tallies per student.

    Filled on read and invalidated by attendance writes for exactly the
    students a write touched. A value computed before an invalidation is
    dropped instead of stored (see ``generation``).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_student: dict[int, AttendanceTally] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, student_id: int) -> Optional[AttendanceTally]:
        with self._lock:
            return self._by_student.get(int(student_id))

    def put(self, student_id: int, tally: AttendanceTally, *, generation: Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._by_student[int(student_id)] = tally
            return True

    def invalidate(self, student_ids: Iterable[int]) -> None:
        with self._lock:
            self._generation += 1
            for sid in student_ids:
                self._by_student.pop(int(sid), None)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._by_student.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_student)
