import hmac
import logging
from functools import wraps

from flask import redirect, session

from config import Settings
from errors import Forbidden, InvalidCredentials

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def _matches(given, expected) -> bool:
    if not isinstance(given, str) or not isinstance(expected, str):
        return False
    return hmac.compare_digest(given.encode(), expected.encode())


class SessionGate:
    """Single-admin login check and the route guards built on it."""

    def __init__(self, settings: Settings):
        self._email = settings.admin_email
        self._password = settings.admin_password

    def login(self, email, password) -> None:
        # Both compared on every attempt
        email_ok = _matches(email, self._email)
        password_ok = _matches(password, self._password)
        if not (email_ok and password_ok):
            logger.warning("Rejected admin login attempt")
            raise InvalidCredentials()
        session["isAuthenticated"] = True
        session["userRole"] = ADMIN_ROLE
        logger.info("Admin logged in")

    @staticmethod
    def is_authenticated() -> bool:
        return bool(session.get("isAuthenticated"))

    def is_admin(self) -> bool:
        return self.is_authenticated() and session.get("userRole") == ADMIN_ROLE

    def login_required(self, view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not self.is_authenticated():
                return redirect("/login")
            return view(*args, **kwargs)

        return wrapped

    def admin_required(self, view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not self.is_admin():
                raise Forbidden()
            return view(*args, **kwargs)

        return wrapped
