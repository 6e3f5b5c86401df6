# src/request_client/core/session_manager.py
"""
Thread-local requests.Session storage for RequestsTransport.

requests.Session is not documented as thread-safe, so every thread that
sends through a transport gets its own session, created lazily.
"""
import logging
import threading
import weakref
from typing import Callable, Set

import requests

logger = logging.getLogger(__name__)


class ThreadSafeSessionManager:
    """
    Manages thread-local requests.Session instances.

    Example:
        >>> manager = ThreadSafeSessionManager(requests.Session)
        >>> session = manager.get_session()  # session of the current thread
        >>> manager.close_all()  # closes sessions of every thread
    """

    def __init__(self, session_factory: Callable[[], requests.Session]):
        """
        Args:
            session_factory: Callable that creates and configures a new Session
        """
        self._session_factory = session_factory
        self._local = threading.local()

        # Weak references so that sessions of finished threads can be collected
        self._all_sessions: Set[weakref.ref] = set()
        self._sessions_lock = threading.Lock()

    def get_session(self) -> requests.Session:
        """Session of the current thread, created on first access."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
            with self._sessions_lock:
                self._all_sessions.add(weakref.ref(session, self._discard_ref))
        return session

    def _discard_ref(self, ref: weakref.ref) -> None:
        with self._sessions_lock:
            self._all_sessions.discard(ref)

    def close_all(self) -> None:
        """
        Close sessions of all threads.

        Safe to call multiple times.
        """
        self._local.session = None

        with self._sessions_lock:
            refs = list(self._all_sessions)
            self._all_sessions.clear()

        for ref in refs:
            session = ref()
            if session is None:
                continue
            try:
                session.close()
            except Exception as e:
                logger.debug(f"Error while closing session: {e}")

    def get_active_sessions_count(self) -> int:
        """Number of sessions that are still alive across all threads."""
        with self._sessions_lock:
            return sum(1 for ref in self._all_sessions if ref() is not None)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_all()
        return False
