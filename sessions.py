"""Server-side sessions.

The cookie only carries a signed random session id; the data lives in a
SessionStore. MemorySessionStore is the default and keeps everything in this
process, so any other store with the same get/set/expire methods can be
dropped in without touching the routes.
"""
import secrets
import threading
import time
from datetime import timedelta
from typing import Dict, Optional, Tuple

from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from werkzeug.datastructures import CallbackDict


class SessionStore:
    def get(self, sid: str) -> Optional[dict]:
        raise NotImplementedError

    def set(self, sid: str, data: dict, lifetime: timedelta) -> None:
        raise NotImplementedError

    def expire(self, sid: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Dict-backed store; expired entries are swept every `sweep_every` writes."""

    def __init__(self, sweep_every: int = 100):
        self._data: Dict[str, Tuple[dict, float]] = {}
        self._lock = threading.Lock()
        self.sweep_every = sweep_every
        self._writes = 0

    def get(self, sid):
        with self._lock:
            entry = self._data.get(sid)
            if entry is None:
                return None
            data, expires_at = entry
            if expires_at <= time.monotonic():
                del self._data[sid]
                return None
            return dict(data)

    def set(self, sid, data, lifetime):
        with self._lock:
            now = time.monotonic()
            self._data[sid] = (dict(data), now + lifetime.total_seconds())
            self._writes += 1
            if self._writes >= self.sweep_every:
                self._writes = 0
                self._sweep(now)

    def _sweep(self, now):
        expired = [sid for sid, (_, expires_at) in self._data.items() if expires_at <= now]
        for sid in expired:
            del self._data[sid]

    def expire(self, sid):
        with self._lock:
            self._data.pop(sid, None)

    def __len__(self):
        with self._lock:
            return len(self._data)


class ServerSideSession(CallbackDict, SessionMixin):
    def __init__(self, initial=None, sid=None, new=False):
        def on_update(self):
            self.modified = True

        CallbackDict.__init__(self, initial, on_update)
        self.sid = sid
        self.new = new
        self.modified = False


class ServerSideSessionInterface(SessionInterface):
    salt = "blog-session"

    def __init__(self, store: Optional[SessionStore] = None):
        self.store = store if store is not None else MemorySessionStore()

    def _signer(self, app):
        return Signer(app.secret_key, salt=self.salt)

    def _new_session(self):
        return ServerSideSession(sid=secrets.token_urlsafe(32), new=True)

    def open_session(self, app, request):
        if not app.secret_key:
            return None
        cookie = request.cookies.get(self.get_cookie_name(app))
        if not cookie:
            return self._new_session()
        try:
            sid = self._signer(app).unsign(cookie).decode()
        except BadSignature:
            return self._new_session()
        data = self.store.get(sid)
        if data is None:
            return self._new_session()
        return ServerSideSession(data, sid=sid)

    def save_session(self, app, session, response):
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if not session and session.modified:
            self.store.expire(session.sid)
            response.delete_cookie(name, domain=domain, path=path)
            return

        # Every client gets a session on first contact, even an empty one.
        self.store.set(session.sid, dict(session), app.permanent_session_lifetime)
        if session.new or session.modified:
            response.set_cookie(
                name,
                self._signer(app).sign(session.sid).decode(),
                expires=self.get_expiration_time(app, session),
                httponly=self.get_cookie_httponly(app),
                domain=domain,
                path=path,
                secure=self.get_cookie_secure(app),
                samesite=self.get_cookie_samesite(app),
            )
