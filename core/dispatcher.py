"""One pass over the due-post queue.

A tick takes a snapshot of due posts, delivers them one at a time in
(scheduled_at, id) order and commits each outcome before touching the next
post. A failure on one post never stops the rest of the snapshot.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError

from core.logger import get_logger
from models import Post, utc_now

log = get_logger("Dispatcher")


class DeliveryStore(Protocol):
    def list_due(self, now: datetime) -> list[Post]: ...
    def mark_sent(self, post_id: int, sent_at: datetime) -> bool: ...
    def mark_failed(self, post_id: int) -> bool: ...


class Deliverer(Protocol):
    def deliver(self, group_id: str, message: str, image_path: str | None = None) -> None: ...


@dataclass
class TickResult:
    due: int = 0
    sent: int = 0
    failed: int = 0
    unrecorded: int = 0
    aborted: bool = False

    def summary(self) -> str:
        if self.aborted:
            return "tick aborted; all posts left for the next run"
        return (
            f"{self.due} due, {self.sent} sent, {self.failed} failed, "
            f"{self.unrecorded} unrecorded"
        )


class Dispatcher:
    def __init__(
        self,
        store: DeliveryStore,
        client: Deliverer,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.client = client
        self.clock = clock
        self._lock = threading.Lock()

    def run_tick(self) -> TickResult:
        # Ticks are serialized; a caller arriving mid-tick waits for it to finish.
        with self._lock:
            return self._tick()

    def _tick(self) -> TickResult:
        result = TickResult()
        now = self.clock()

        try:
            posts = self.store.list_due(now)
        except Exception:  # noqa: BLE001 - nothing was touched, next tick retries.
            log.exception("Error fetching due posts; skipping this tick")
            result.aborted = True
            return result

        if not posts:
            log.info("No due posts to process")
            return result

        result.due = len(posts)
        log.info(f"Processing {len(posts)} due post(s)")

        for post in posts:
            self._dispatch(post, result)

        log.info(f"Tick complete: {result.summary()}")
        return result

    def _dispatch(self, post: Post, result: TickResult) -> None:
        log.info(
            f"Sending post #{post.id} to group {post.group_name or post.group_id}"
            f"{' (with image)' if post.image_path else ''}"
        )

        try:
            self.client.deliver(post.group_id, post.message, post.image_path)
            delivered = True
        except Exception as exc:  # noqa: BLE001 - any delivery failure is terminal for this post.
            log.error(f"Delivery of post #{post.id} failed: {exc}")
            delivered = False

        try:
            if delivered:
                recorded = self.store.mark_sent(post.id, self.clock())
            else:
                recorded = self.store.mark_failed(post.id)
        except (SQLAlchemyError, RuntimeError) as exc:
            # The post stays scheduled and is retried next tick, possibly sending twice.
            log.error(
                f"Could not record outcome of post #{post.id} "
                f"({'sent' if delivered else 'failed'}): {exc}"
            )
            result.unrecorded += 1
            return
        except Exception:  # noqa: BLE001 - one post's bookkeeping must not end the tick.
            log.exception(f"Unexpected error recording outcome of post #{post.id}")
            result.unrecorded += 1
            return

        if not recorded:
            result.unrecorded += 1
        elif delivered:
            result.sent += 1
            log.info(f"Post #{post.id} marked as sent")
        else:
            result.failed += 1
            log.error(f"Post #{post.id} marked as failed")
