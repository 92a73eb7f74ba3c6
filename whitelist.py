import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from roblox_utils import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    is_new: bool
    total_count: int
    canonical_name: str
    identity: Identity

    def to_dict(self):
        return {
            "isNew": self.is_new,
            "totalCount": self.total_count,
            "username": self.canonical_name,
            "roblox": self.identity.to_dict(),
        }


@dataclass(frozen=True)
class WhitelistStats:
    count: int
    usernames: Tuple[str, ...]

    def to_dict(self):
        return {"count": self.count, "usernames": list(self.usernames)}


def normalize_text(text: str) -> str:
    return (text or "").strip().replace("\r", "")


def to_unique_list(text: str) -> List[str]:
    """Parse document text into entries, first occurrence of each name wins."""
    seen = set()
    out = []
    for line in normalize_text(text).split("\n"):
        line = line.strip()
        if not line:
            continue
        key = line.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(line)
    return out


def contains_name(entries: Iterable[str], name: str) -> bool:
    key = name.lower()
    return any(entry.lower() == key for entry in entries)


def join_entries(entries: Iterable[str]) -> str:
    return "\n".join(entries)


class WhitelistRegistrar:
    def __init__(self, verifier, store, serializer):
        self.verifier = verifier
        self.store = store
        self.serializer = serializer

    def _merge(self, canonical_name: str) -> Tuple[bool, int]:
        # runs inside the serializer, always against a fresh fetch
        entries = to_unique_list(self.store.fetch())
        if contains_name(entries, canonical_name):
            logger.info("%s already whitelisted (%d entries)", canonical_name, len(entries))
            return False, len(entries)
        entries.append(canonical_name)
        self.store.replace(join_entries(entries))
        logger.info("Whitelisted %s (%d entries)", canonical_name, len(entries))
        return True, len(entries)

    def register(self, raw_name) -> RegistrationResult:
        identity = self.verifier.verify(raw_name)
        is_new, total = self.serializer.submit(self._merge, identity.name)
        return RegistrationResult(
            is_new=is_new,
            total_count=total,
            canonical_name=identity.name,
            identity=identity,
        )

    def get_stats(self) -> WhitelistStats:
        entries = to_unique_list(self.store.fetch())
        return WhitelistStats(count=len(entries), usernames=tuple(entries))

    def check_membership(self, raw_name) -> bool:
        name = (raw_name or "").strip() if isinstance(raw_name, str) else ""
        if not name:
            return False
        return contains_name(self.get_stats().usernames, name)
