"""Per-process cache of the gateway's group listing, used for display names."""

from __future__ import annotations

from functools import lru_cache
from typing import Mapping

from poster.signal_poster import SignalClient


@lru_cache(maxsize=1)
def get_group_names() -> Mapping[str, str]:
    """Return ``{group_id: name}`` for every group the sender belongs to."""

    # Groups rarely change during a CLI run, so one gateway call is enough.
    return {group.id: group.name for group in SignalClient().list_groups()}


def resolve_group_name(group_id: str) -> str:
    return get_group_names().get(group_id, "")
