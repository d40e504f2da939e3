from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from flask import request
from flask_socketio import SocketIO

from ..core.constants import DASHBOARD_EVENT
from .stats import DashboardStatsService

logger = logging.getLogger(__name__)


class SocketIODashboardNotifier:
    """DashboardNotifier adapter broadcasting ``dashboard_update`` over Socket.IO."""

    def __init__(
        self,
        socketio: SocketIO,
        stats: DashboardStatsService,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._socketio = socketio
        self._stats = stats
        self._clock = clock

    def build_payload(self, action: str, *, actor: str = "System") -> dict:
        return {
            "stats": self._stats.snapshot().to_dict(),
            "latestActivity": {
                "action": action,
                "user": actor,
                "time": self._clock().strftime("%H:%M:%S"),
            },
        }

    def emit(self, action: str, *, actor: str = "System", to: Optional[str] = None) -> None:
        try:
            payload = self.build_payload(action, actor=actor)
            if to is None:
                self._socketio.emit(DASHBOARD_EVENT, payload)
            else:
                self._socketio.emit(DASHBOARD_EVENT, payload, to=to)
            logger.debug("dashboard data emitted (%s)", action)
        except Exception:
            logger.exception("error emitting dashboard data")

    def dashboard_changed(self, action: str, *, actor: str = "System") -> None:
        self.emit(action, actor=actor)


def register(socketio: SocketIO, notifier: SocketIODashboardNotifier) -> None:
    @socketio.on("connect")
    def on_connect(auth=None):
        logger.info("dashboard client connected: %s", request.sid)
        notifier.emit("System stats refreshed", to=request.sid)

    @socketio.on("disconnect")
    def on_disconnect(*args):
        logger.info("dashboard client disconnected: %s", request.sid)
