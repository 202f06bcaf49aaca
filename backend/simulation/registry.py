"""Session registry: one motion simulator per connected client."""
from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from typing import Callable

from .exceptions import (
    SessionAlreadyExistsError,
    SessionLimitExceededError,
    SessionNotFoundError,
)
from .simulator import MotionSimulator
from .types import SessionHandle

logger = logging.getLogger(__name__)


class SimulationRegistry:
    def __init__(
        self,
        simulator_factory: Callable[[], MotionSimulator],
        max_sessions: int = 16,
        idle_timeout_seconds: float = 300.0,
        monitor_interval_seconds: float = 5.0,
    ):
        self._sessions: dict[str, SessionHandle] = {}
        self._lock = threading.Lock()
        self._simulator_factory = simulator_factory
        self._max_sessions = max_sessions
        self._idle_timeout_seconds = idle_timeout_seconds
        self._monitor_interval_seconds = monitor_interval_seconds
        self._monitor_task: asyncio.Task | None = None

    @property
    def max_sessions(self) -> int:
        return self._max_sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create_session(self, session_id: str) -> SessionHandle:
        with self._lock:
            if session_id in self._sessions:
                raise SessionAlreadyExistsError(f"Session '{session_id}' already exists")
            if len(self._sessions) >= self._max_sessions:
                raise SessionLimitExceededError("Max concurrent sessions reached")
            handle = SessionHandle(session_id=session_id, simulator=self._simulator_factory())
            self._sessions[session_id] = handle
        logger.info("Created session '%s'", session_id)
        return handle

    def get_session(self, session_id: str) -> SessionHandle:
        with self._lock:
            handle = self._sessions.get(session_id)
            if not handle:
                raise SessionNotFoundError(f"Session '{session_id}' not found")
            return handle

    def get_or_create_session(self, session_id: str) -> SessionHandle:
        try:
            return self.get_session(session_id)
        except SessionNotFoundError:
            return self.create_session(session_id)

    def touch_session(self, session_id: str):
        with self._lock:
            handle = self._sessions.get(session_id)
            if handle:
                handle.last_heartbeat = time.monotonic()

    def acquire_connection(self, session_id: str) -> SessionHandle:
        handle = self.get_or_create_session(session_id)
        with self._lock:
            handle.connection_count += 1
            handle.last_heartbeat = time.monotonic()
        return handle

    def release_connection(self, session_id: str):
        """Drop a push connection; the session goes away with its last one."""
        with self._lock:
            handle = self._sessions.get(session_id)
            if not handle:
                return
            if handle.connection_count > 0:
                handle.connection_count -= 1
            remove = handle.connection_count == 0
        if remove:
            try:
                self.remove_session(session_id)
            except SessionNotFoundError:
                pass

    def remove_session(self, session_id: str):
        with self._lock:
            handle = self._sessions.pop(session_id, None)
        if not handle:
            raise SessionNotFoundError(f"Session '{session_id}' not found")

        handle.simulator.stop()
        logger.info("Removed session '%s'", session_id)

    def list_sessions(self) -> list[dict]:
        with self._lock:
            return [h.to_dict() for h in self._sessions.values()]

    # ---------- Idle reaping ----------

    def reap_idle_sessions(self, now: float | None = None) -> list[str]:
        """Remove sessions without a push connection or heartbeat for too long."""
        if self._idle_timeout_seconds <= 0:
            return []
        now = time.monotonic() if now is None else now

        with self._lock:
            idle_ids = [
                sid for sid, h in self._sessions.items()
                if h.connection_count == 0
                and (now - h.last_heartbeat) > self._idle_timeout_seconds
            ]

        for sid in idle_ids:
            logger.info(
                "Removing idle session '%s' (no heartbeat for %.0fs)",
                sid, self._idle_timeout_seconds,
            )
            try:
                self.remove_session(sid)
            except SessionNotFoundError:
                pass
        return idle_ids

    def start_monitoring(self):
        if self._monitor_task and not self._monitor_task.done():
            return
        self._monitor_task = asyncio.get_running_loop().create_task(self._monitor_loop())
        logger.info("Session monitor started")

    async def stop_monitoring(self):
        task, self._monitor_task = self._monitor_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("Session monitor stopped")

    async def shutdown(self):
        await self.stop_monitoring()
        with self._lock:
            handles = list(self._sessions.values())
            self._sessions.clear()
        for handle in handles:
            await handle.simulator.shutdown()
        logger.info("Simulation registry shutdown complete")

    async def _monitor_loop(self):
        while True:
            await asyncio.sleep(self._monitor_interval_seconds)
            try:
                self.reap_idle_sessions()
            except Exception:
                logger.exception("Session monitor pass failed")
