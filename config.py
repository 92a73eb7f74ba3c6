import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_PASTEFY_BASE_URL = "https://pastefy.app/api/v2"
DEFAULT_ROBLOX_USERS_URL = "https://users.roblox.com/v1/usernames/users"


def _parse_report_times(raw: str) -> Tuple[Tuple[int, int], ...]:
    times = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            hour, minute = (int(x) for x in item.split(":", 1))
        except ValueError:
            raise RuntimeError(f"Invalid REPORT_TIMES entry: {item!r} (expected HH:MM)")
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise RuntimeError(f"Invalid REPORT_TIMES entry: {item!r}")
        times.append((hour, minute))
    return tuple(times)


@dataclass(frozen=True)
class Settings:
    pastefy_api_key: str
    pastefy_paste_id: str
    pastefy_base_url: str = DEFAULT_PASTEFY_BASE_URL
    roblox_users_url: str = DEFAULT_ROBLOX_USERS_URL
    request_timeout: float = 10.0
    whitelist_title: str = "whitelist"
    whitelist_visibility: str = "UNLISTED"
    api_token: Optional[str] = None
    timezone: str = "Asia/Jakarta"
    report_times: Tuple[Tuple[int, int], ...] = ((9, 0), (21, 0))
    port: int = 8080

    def __post_init__(self):
        if not self.pastefy_api_key:
            raise RuntimeError("Missing env: PASTEFY_API_KEY")
        if not self.pastefy_paste_id:
            raise RuntimeError("Missing env: PASTEFY_PASTE_ID")
        if self.request_timeout <= 0:
            raise RuntimeError("REQUEST_TIMEOUT must be positive")

    @classmethod
    def from_env(cls, env=None, load_dotenv_file: bool = True) -> "Settings":
        """Build settings from the process environment (or ``env``).

        Called once at startup; everything downstream receives the resulting
        object instead of reading the environment itself.
        """
        if env is None:
            if load_dotenv_file:
                load_dotenv()
            env = os.environ

        try:
            timeout = float(env.get("REQUEST_TIMEOUT", "10"))
            port = int(env.get("PORT", "8080"))
        except ValueError as e:
            raise RuntimeError(f"Invalid numeric setting: {e}")

        return cls(
            pastefy_api_key=env.get("PASTEFY_API_KEY", ""),
            pastefy_paste_id=env.get("PASTEFY_PASTE_ID", ""),
            pastefy_base_url=env.get("PASTEFY_BASE_URL", DEFAULT_PASTEFY_BASE_URL).rstrip("/"),
            roblox_users_url=env.get("ROBLOX_USERS_URL", DEFAULT_ROBLOX_USERS_URL),
            request_timeout=timeout,
            whitelist_title=env.get("WHITELIST_TITLE", "whitelist"),
            whitelist_visibility=env.get("WHITELIST_VISIBILITY", "UNLISTED"),
            api_token=env.get("WHITELIST_API_TOKEN") or None,
            timezone=env.get("TIMEZONE", "Asia/Jakarta"),
            report_times=_parse_report_times(env.get("REPORT_TIMES", "09:00,21:00")),
            port=port,
        )
