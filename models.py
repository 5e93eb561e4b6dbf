import secrets
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

from config import DEFAULT_AUTHOR

db = SQLAlchemy()

# Ids look like document-store object ids: 12 random bytes, hex encoded.
POST_ID_LENGTH = 24


def new_post_id() -> str:
    return secrets.token_hex(POST_ID_LENGTH // 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat(timespec="milliseconds") + "Z" if value else None


class Post(db.Model):
    __tablename__ = "posts"

    id = db.Column(db.String(POST_ID_LENGTH), primary_key=True, default=new_post_id)
    title = db.Column(db.Text)
    summary = db.Column(db.Text)
    content = db.Column(db.Text)
    cover = db.Column(db.String(255), nullable=False, default="")  # filename under /uploads
    author = db.Column(db.String(120), nullable=False, default=DEFAULT_AUTHOR)
    tags = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "_id": self.id,
            "title": self.title,
            "summary": self.summary,
            "content": self.content,
            "cover": self.cover,
            "author": self.author,
            "tags": list(self.tags or []),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Post {self.id} {self.title!r}>"
