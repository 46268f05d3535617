"""Durable queue of scheduled posts.

Every method opens its own session and commits before returning, so each
status change is on disk before the dispatcher moves on to the next post.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import select

from core.database import get_session
from core.logger import get_logger
from core.media import discard_image
from models import Post, PostStatus, to_utc

log = get_logger("PostStore")


class PostNotFoundError(LookupError):
    """Raised when a post id does not match any record."""


class PostLockedError(ValueError):
    """Raised when editing or deleting a post that already left ``scheduled``."""


def _validate_content(message: str, group_id: str, scheduled_at, image_path: str | None) -> None:
    missing = []
    if not message and not image_path:
        missing.append("message")
    if not group_id:
        missing.append("group_id")
    if scheduled_at is None:
        missing.append("scheduled_at")
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")


class PostStore:
    def __init__(self, engine: Engine | None = None):
        self.engine = engine

    # -- dispatcher queries -------------------------------------------------

    def list_due(self, now: datetime) -> List[Post]:
        """Scheduled posts whose instant has passed, earliest first, ties by id."""
        stmt = (
            select(Post)
            .where(Post.status == PostStatus.SCHEDULED.value)
            .where(Post.scheduled_at <= to_utc(now))
            .order_by(Post.scheduled_at.asc(), Post.id.asc())
        )
        with get_session(self.engine) as s:
            return list(s.exec(stmt).all())

    def mark_sent(self, post_id: int, sent_at: datetime) -> bool:
        return self._transition(post_id, PostStatus.SENT, sent_at=to_utc(sent_at))

    def mark_failed(self, post_id: int) -> bool:
        return self._transition(post_id, PostStatus.FAILED)

    def _transition(self, post_id: int, status: PostStatus, sent_at: datetime | None = None) -> bool:
        with get_session(self.engine) as s:
            post = s.get(Post, post_id)
            if post is None:
                log.warning(f"Post #{post_id} vanished before it could be marked {status.value}")
                return False
            if post.status != PostStatus.SCHEDULED:
                log.warning(
                    f"Post #{post_id} is already {post.status}; not marking {status.value}"
                )
                return False
            post.status = status.value
            if sent_at is not None:
                post.sent_at = sent_at
            s.add(post)
            s.commit()
        return True

    # -- management ---------------------------------------------------------

    def create_post(
        self,
        message: str,
        group_id: str,
        scheduled_at: datetime,
        group_name: str = "",
        image_path: str | None = None,
    ) -> Post:
        _validate_content(message, group_id, scheduled_at, image_path)
        post = Post(
            message=message or "",
            group_id=group_id,
            group_name=group_name or "",
            scheduled_at=to_utc(scheduled_at),
            status=PostStatus.SCHEDULED.value,
            image_path=image_path,
        )
        with get_session(self.engine) as s:
            s.add(post)
            s.commit()
            s.refresh(post)
        log.info(f"Post #{post.id} scheduled for {post.scheduled_at.isoformat()} → {group_id}")
        return post

    def get_post(self, post_id: int) -> Optional[Post]:
        with get_session(self.engine) as s:
            return s.get(Post, post_id)

    def list_posts(self, status: str | None = None) -> List[Post]:
        stmt = select(Post)
        if status:
            stmt = stmt.where(Post.status == PostStatus(status).value)
        stmt = stmt.order_by(Post.scheduled_at.asc(), Post.id.asc())
        with get_session(self.engine) as s:
            return list(s.exec(stmt).all())

    def update_post(
        self,
        post_id: int,
        *,
        message: str,
        group_id: str,
        scheduled_at: datetime,
        group_name: str = "",
        image_path: str | None = None,
        keep_image: bool = False,
    ) -> Post:
        """Replace a scheduled post's content.

        A new ``image_path`` replaces the old file; without one the old file is
        kept only when ``keep_image`` is set, otherwise it is deleted.
        """
        with get_session(self.engine) as s:
            post = s.get(Post, post_id)
            if post is None:
                raise PostNotFoundError(f"Post {post_id} not found.")
            if post.status != PostStatus.SCHEDULED:
                raise PostLockedError(f"Post {post_id} is {post.status} and can no longer be edited.")

            previous_image = post.image_path
            final_image = image_path
            if image_path is None and keep_image:
                final_image = previous_image

            _validate_content(message, group_id, scheduled_at, final_image)

            post.message = message or ""
            post.group_id = group_id
            post.group_name = group_name or ""
            post.scheduled_at = to_utc(scheduled_at)
            post.image_path = final_image
            s.add(post)
            s.commit()
            s.refresh(post)

        if previous_image and previous_image != final_image:
            discard_image(previous_image)
        log.info(f"Post #{post_id} updated")
        return post

    def delete_post(self, post_id: int) -> None:
        with get_session(self.engine) as s:
            post = s.get(Post, post_id)
            if post is None:
                raise PostNotFoundError(f"Post {post_id} not found.")
            if post.status != PostStatus.SCHEDULED:
                raise PostLockedError(f"Post {post_id} is {post.status} and can no longer be deleted.")
            image_path = post.image_path
            s.delete(post)
            s.commit()

        discard_image(image_path)
        log.info(f"Post #{post_id} deleted")
