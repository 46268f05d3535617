# cli.py
import argparse
import sys
from datetime import datetime
from pathlib import Path

from core.config import Config
from core.database import init_db
from core.logger import get_logger
from core.media import discard_image, save_image
from core.post_store import PostLockedError, PostNotFoundError, PostStore
from core.scheduler import build_dispatcher, start_dispatch_scheduler
from core.structure import ensure_structure
from models import PostStatus
from poster.signal_poster import DeliveryError, SignalClient
from utils.group_cache import resolve_group_name

log = get_logger("Signal Scheduler")


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; values without an offset are read as UTC."""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not an ISO-8601 timestamp: {value}") from exc


def boot():
    log.info("Booting Signal Scheduler")
    ensure_structure()
    init_db()
    log.info(f"Database: {Config.DB_URL}")
    log.info(f"Gateway: {Config.SIGNAL_API_URL} as {Config.SIGNAL_NUMBER or '<unset>'}")
    if not Config.SIGNAL_NUMBER:
        log.warning("SIGNAL_NUMBER is not set; delivery will not work until it is.")
    log.info("System ready")


def schedule(args, store: PostStore) -> int:
    group_name = args.group_name
    if group_name is None:
        try:
            group_name = resolve_group_name(args.group_id)
        except DeliveryError as exc:
            log.warning(f"Could not resolve group name for {args.group_id}: {exc}")
            group_name = ""

    image_path = None
    if args.image:
        source = Path(args.image)
        if not source.is_file():
            log.error(f"Image not found: {source}")
            return 1
        image_path = save_image(source.read_bytes(), source.name)

    try:
        post = store.create_post(
            message=args.message or "",
            group_id=args.group_id,
            scheduled_at=args.at,
            group_name=group_name,
            image_path=image_path,
        )
    except ValueError as exc:
        discard_image(image_path)
        log.error(str(exc))
        return 1

    print(f"Scheduled post #{post.id} for {post.scheduled_at.isoformat()}")
    return 0


def list_posts(args, store: PostStore) -> int:
    for post in store.list_posts(status=args.status):
        sent = f" sent={post.sent_at.isoformat()}" if post.sent_at else ""
        image = " [image]" if post.image_path else ""
        print(
            f"#{post.id} {post.status:<9} {post.scheduled_at.isoformat()} "
            f"{post.group_name or post.group_id}{image}{sent}: {post.message}"
        )
    return 0


def cancel(args, store: PostStore) -> int:
    try:
        store.delete_post(args.cancel)
    except (PostNotFoundError, PostLockedError) as exc:
        log.error(str(exc))
        return 1
    print(f"Deleted post #{args.cancel}")
    return 0


def list_groups() -> int:
    try:
        groups = SignalClient().list_groups()
    except DeliveryError as exc:
        log.error(str(exc))
        return 1
    for group in groups:
        print(f"{group.name}\t{group.id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Signal group post scheduler")
    parser.add_argument("--dispatch", action="store_true", help="Run the dispatcher every poll interval")
    parser.add_argument("--once", action="store_true", help="Run a single dispatch tick and exit")
    parser.add_argument("--schedule", action="store_true", help="Schedule a new post")
    parser.add_argument("--group-id", help="Target Signal group id")
    parser.add_argument("--group-name", help="Display name for the group (looked up when omitted)")
    parser.add_argument("--message", help="Message text")
    parser.add_argument("--image", help="Image file to attach")
    parser.add_argument("--at", type=parse_instant, help="Delivery time, ISO-8601 (UTC when no offset given)")
    parser.add_argument("--list", action="store_true", help="List posts")
    parser.add_argument("--status", choices=[s.value for s in PostStatus], help="Filter --list by status")
    parser.add_argument("--cancel", type=int, metavar="ID", help="Delete a scheduled post")
    parser.add_argument("--groups", action="store_true", help="List groups known to the gateway")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not any([args.dispatch, args.once, args.schedule, args.list, args.cancel is not None, args.groups]):
        boot()
        return 0

    if args.groups:
        return list_groups()

    init_db()
    store = PostStore()

    if args.schedule:
        if not args.group_id or args.at is None:
            parser.error("--schedule requires --group-id and --at")
        return schedule(args, store)
    if args.list:
        return list_posts(args, store)
    if args.cancel is not None:
        return cancel(args, store)

    if not Config.SIGNAL_NUMBER:
        log.error("SIGNAL_NUMBER is not set; refusing to dispatch.")
        return 1
    if args.once:
        result = build_dispatcher().run_tick()
        print(result.summary())
        return 1 if result.aborted else 0

    start_dispatch_scheduler()
    return 0


if __name__ == "__main__":
    sys.exit(main())
