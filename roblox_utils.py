import re
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from errors import (
    MismatchError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    ValidationError,
)

API_USERNAMES = "https://users.roblox.com/v1/usernames/users"
USERNAME_RE = re.compile(r"[A-Za-z0-9_]{3,20}")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: int
    name: str
    display_name: Optional[str] = None

    def to_dict(self):
        return {"id": self.user_id, "name": self.name, "displayName": self.display_name}


def validate_username(raw_name) -> str:
    if not isinstance(raw_name, str) or not USERNAME_RE.fullmatch(raw_name):
        raise ValidationError(
            "Invalid username format: 3-20 characters, letters, digits and underscore only"
        )
    return raw_name


def _json_headers():
    return {"Content-Type": "application/json"}


class IdentityVerifier:
    """Resolves a candidate username to its canonical Roblox identity."""

    def __init__(self, url: str = API_USERNAMES, timeout: float = 10.0, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def verify(self, raw_name) -> Identity:
        username = validate_username(raw_name)
        logger.info("Verifying Roblox user: %s", username)

        try:
            r = self.session.post(
                self.url,
                json={"usernames": [username]},
                headers=_json_headers(),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning("Roblox lookup timed out for %s", username)
            raise UpstreamTimeoutError("Timeout: Roblox is responding slowly, try again later")
        except requests.RequestException as e:
            logger.warning("Roblox lookup failed for %s: %s", username, e)
            raise UpstreamError(f"Failed to verify user: {e}")

        if r.status_code == 429:
            raise RateLimitError("Too many requests to Roblox, wait a moment and try again")
        if r.status_code >= 500:
            raise UpstreamUnavailableError("Roblox service is unavailable, try again later")
        if not 200 <= r.status_code < 300:
            raise UpstreamError(f"Roblox API error: {r.status_code}")

        try:
            candidates = (r.json() or {}).get("data") or []
        except (ValueError, AttributeError):
            raise UpstreamError("Roblox API returned an unreadable response")

        if not candidates:
            raise NotFoundError(f"Username {username} was not found on Roblox")

        wanted = username.lower()
        for user in candidates:
            name = user.get("name") if isinstance(user, dict) else None
            if isinstance(name, str) and name.lower() == wanted:
                identity = Identity(
                    user_id=user.get("id"),
                    name=name,
                    display_name=user.get("displayName") or name,
                )
                logger.info("Roblox user found: %s (ID: %s)", identity.name, identity.user_id)
                return identity

        raise MismatchError(f"Username {username} does not match a Roblox account exactly")
