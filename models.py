# models.py
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, Text
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel, Field

# Instants are stored as ISO-8601 UTC text so SQL string comparison follows time order.
ISO_UTC_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
ISO_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,6})\d*)?"
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_utc(value: str) -> datetime:
    """Read stored text, including millisecond ``.123Z`` values written by other tools."""
    match = ISO_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Unrecognized timestamp: {value!r}")
    *parts, fraction = match.groups()
    micros = int((fraction or "0").ljust(6, "0"))
    return datetime(*map(int, parts), micros, tzinfo=timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime column, ISO-8601 text on SQLite."""

    impl = DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(Text())
        return dialect.type_descriptor(DateTime(timezone=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = to_utc(value)
        if dialect.name == "sqlite":
            return value.strftime(ISO_UTC_FORMAT)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            return parse_iso_utc(value)
        return to_utc(value)


class PostStatus(str, Enum):
    SCHEDULED = "scheduled"
    SENT = "sent"
    FAILED = "failed"


class Post(SQLModel, table=True):
    __tablename__ = "posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    message: str = Field(default="")
    group_id: str
    group_name: str = Field(default="")
    scheduled_at: datetime = Field(
        sa_column=Column(UTCDateTime(), nullable=False, index=True)
    )
    status: str = Field(default=PostStatus.SCHEDULED.value, index=True)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(UTCDateTime(), nullable=False),
    )
    sent_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )
    image_path: Optional[str] = None
