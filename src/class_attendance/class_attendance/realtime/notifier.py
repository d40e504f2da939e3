from __future__ import annotations

from typing import Optional, Protocol


class DashboardNotifier(Protocol):
    """Port used by write services to announce that dashboard figures changed.

    Implementations must be best-effort: a failed broadcast never fails the
    write that triggered it.
    """

    def dashboard_changed(self, action: str, *, actor: str = "System") -> None:
        raise NotImplementedError


class NullNotifier:
    def dashboard_changed(self, action: str, *, actor: str = "System") -> None:
        return None


class NotifierRelay:
    """Forwards to a notifier attached after the services were built.

    The Socket.IO server only exists once the Flask app does, while services
    are wired earlier by the container.
    """

    def __init__(self, target: Optional[DashboardNotifier] = None):
        self._target: DashboardNotifier = target or NullNotifier()

    def attach(self, target: DashboardNotifier) -> None:
        self._target = target

    def dashboard_changed(self, action: str, *, actor: str = "System") -> None:
        self._target.dashboard_changed(action, actor=actor)
