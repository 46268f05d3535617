"""Signal delivery through a signal-cli-rest-api gateway."""
from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import requests

from core.config import Config
from core.logger import get_logger

log = get_logger("SignalPoster")

SEND_PATH = "/v2/send"
GROUPS_PATH = "/v1/groups/{number}"


class DeliveryError(RuntimeError):
    """Raised when a message could not be handed to the Signal gateway."""


@dataclass
class Group:
    id: str
    internal_id: str
    name: str
    description: str = ""


class SignalClient:
    """Thin synchronous client; one HTTP call per delivery, no retries."""

    def __init__(
        self,
        base_url: str | None = None,
        number: str | None = None,
        *,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or Config.SIGNAL_API_URL).rstrip("/")
        self.number = number if number is not None else Config.SIGNAL_NUMBER
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def build_payload(self, group_id: str, message: str, image_path: str | None = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "message": message,
            "recipients": [group_id],
            "number": self.number,
        }
        if image_path:
            try:
                data = Path(image_path).read_bytes()
            except OSError as exc:
                raise DeliveryError(f"Could not read attachment {image_path}: {exc}") from exc
            log.debug(f"Attaching image ({len(data)} bytes) from {image_path}")
            payload["base64_attachments"] = [base64.b64encode(data).decode("ascii")]
        return payload

    def deliver(self, group_id: str, message: str, image_path: str | None = None) -> None:
        """Send ``message`` (and optional image) to one group or raise ``DeliveryError``."""

        payload = self.build_payload(group_id, message, image_path)
        try:
            resp = self.session.post(
                f"{self.base_url}{SEND_PATH}",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log.error(f"Network error sending to group {group_id}: {exc}")
            raise DeliveryError(f"Network error communicating with Signal gateway: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            body = (resp.text or "").strip()
            log.error(f"Failed to send to group {group_id}: HTTP {resp.status_code} {body}")
            raise DeliveryError(f"Signal gateway rejected message (status={resp.status_code}): {body}")

        log.info(f"Sent message to group {group_id}{' with image' if image_path else ''}")

    def list_groups(self) -> List[Group]:
        endpoint = f"{self.base_url}{GROUPS_PATH.format(number=self.number)}"
        try:
            resp = self.session.get(endpoint, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            log.error(f"Error fetching groups: {exc}")
            raise DeliveryError(f"Failed to fetch groups: {exc}") from exc

        if not isinstance(data, list) or not all(isinstance(g, dict) for g in data):
            log.error(f"Unexpected group listing from gateway: {data!r}")
            raise DeliveryError("Failed to fetch groups: gateway did not return a list of groups")

        return [
            Group(
                id=g.get("id", ""),
                internal_id=g.get("internal_id", ""),
                name=g.get("name") or "Unnamed Group",
                description=g.get("description") or "",
            )
            for g in data
        ]


if __name__ == "__main__":
    for group in SignalClient().list_groups():
        print(f"{group.name}: {group.id}")
