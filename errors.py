"""Failures the blog backend reports to its callers.

Each error carries the HTTP status it maps to and the message shown to the
client. Handlers catch these around their single delegated call.
"""


class BlogError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class InvalidIdentifier(BlogError):
    status_code = 400
    message = "Invalid post ID"


class NotFound(BlogError):
    status_code = 404
    message = "Post not found"


class InvalidCredentials(BlogError):
    status_code = 401
    message = "Invalid credentials"


class Forbidden(BlogError):
    status_code = 403
    message = "Access denied. You are not authorized to edit."


class PersistenceError(BlogError):
    status_code = 500
    message = "Database error"


class MailDeliveryError(BlogError):
    status_code = 500
    message = "Error sending email"
