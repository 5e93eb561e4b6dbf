import logging
import re
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from config import DEFAULT_AUTHOR, POSTS_PER_PAGE
from errors import InvalidIdentifier, NotFound, PersistenceError
from models import POST_ID_LENGTH, Post, db

logger = logging.getLogger(__name__)

# Largest OFFSET a signed 64-bit SQL integer can hold
MAX_OFFSET = 2**63 - 1

_POST_ID_RE = re.compile(r"^[0-9a-fA-F]{%d}$" % POST_ID_LENGTH)


def is_valid_post_id(post_id) -> bool:
    return isinstance(post_id, str) and bool(_POST_ID_RE.match(post_id))


def split_tags(raw: Optional[str]) -> List[str]:
    """'a, b ,c' -> ['a', 'b', 'c']; an absent field gives []."""
    if raw is None:
        return []
    return [t.strip() for t in raw.split(",")]


class PostStore:
    """Queries over the posts table. Owns no logic beyond field shape."""

    def __init__(self, page_size: int = POSTS_PER_PAGE, default_author: str = DEFAULT_AUTHOR):
        self.page_size = page_size
        self.default_author = default_author

    def create_post(self, fields: Dict) -> str:
        post = Post(
            title=fields.get("title"),
            summary=fields.get("summary"),
            content=fields.get("content"),
            cover=fields.get("cover") or "",
            author=fields.get("author") or self.default_author,
            tags=list(fields.get("tags") or []),
        )
        try:
            db.session.add(post)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceError("Failed to create post") from e
        logger.info("Created post %s", post.id)
        return post.id

    def get_post_by_id(self, post_id: str) -> Post:
        # Validate before touching the database
        if not is_valid_post_id(post_id):
            raise InvalidIdentifier()
        try:
            post = db.session.get(Post, post_id.lower())
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceError("Failed to fetch post") from e
        if post is None:
            raise NotFound()
        return post

    def list_posts_paged(self, page: int = 1, page_size: Optional[int] = None) -> List[Post]:
        page_size = page_size or self.page_size
        offset = (page - 1) * page_size
        if offset > MAX_OFFSET:
            return []
        stmt = (
            db.select(Post)
            .order_by(Post.created_at.desc())
            .offset(offset)
            .limit(page_size)
        )
        try:
            return list(db.session.execute(stmt).scalars())
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceError("Failed to fetch posts") from e

    def list_distinct_tags(self) -> List[str]:
        try:
            rows = db.session.execute(db.select(Post.tags)).scalars()
            return sorted(_distinct(rows))
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceError("Failed to fetch unique tags") from e


def _distinct(tag_lists: Iterable[Optional[List[str]]]) -> set:
    seen = set()
    for tags in tag_lists:
        seen.update(tags or [])
    return seen
