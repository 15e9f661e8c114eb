# src/spotify_http/core/session_manager.py
"""
Thread-local requests.Session storage for the HTTP clients.

requests.Session не гарантирует потокобезопасность, поэтому каждый поток
получает свою сессию. Все сессии клиента монтируют SharedPoolAdapter,
так что соединения остаются общими (ConnectionManager).
"""
import threading
import weakref
from typing import Callable, Set

import requests


class ThreadLocalSessions:
    """
    Lazily created per-thread sessions.

    Example:
        >>> sessions = ThreadLocalSessions(client._create_session)
        >>> sessions.get()        # session for the current thread
        >>> sessions.close_all()  # close sessions from every thread
    """

    def __init__(self, session_factory: Callable[[], requests.Session]):
        self._session_factory = session_factory
        self._local = threading.local()

        # Weak references: sessions of finished threads are collected
        self._all_sessions: Set[weakref.ref] = set()
        self._sessions_lock = threading.Lock()

    def get(self) -> requests.Session:
        """Session for the current thread, created on first access."""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
            with self._sessions_lock:
                self._all_sessions.add(weakref.ref(session, self._discard))
        return session

    def _discard(self, ref: weakref.ref) -> None:
        with self._sessions_lock:
            self._all_sessions.discard(ref)

    def close_all(self) -> None:
        """
        Close sessions of all threads. Safe to call multiple times.

        Connection pools belong to ConnectionManager and stay open.
        """
        self._local.session = None

        with self._sessions_lock:
            refs = list(self._all_sessions)
            self._all_sessions.clear()

        for ref in refs:
            session = ref()
            if session is not None:
                session.close()
