"""Per-key in-flight guard."""

import logging
import uuid
from collections.abc import Hashable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Generic, TypeVar


logger = logging.getLogger(__name__)

KeyT = TypeVar("KeyT", bound=Hashable)


@dataclass(frozen=True)
class InFlightToken:
    """Proof of holding a key; only the holder's token releases it."""

    value: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class KeyedGuard(Generic[KeyT]):
    """Exclusive in-flight flag per key.

    A second acquire for a held key is refused immediately rather than
    queued; the caller retries once the holder releases.
    """

    def __init__(self, name: str = "guard") -> None:
        self._name = name
        self._held: dict[KeyT, InFlightToken] = {}

    def try_acquire(self, key: KeyT) -> InFlightToken | None:
        """Take the key, or return None if it is already in flight."""
        if key in self._held:
            logger.info("In-flight operation rejected", extra={"guard": self._name, "key": str(key)})
            return None
        token = InFlightToken()
        self._held[key] = token
        return token

    def release(self, key: KeyT, token: InFlightToken) -> None:
        """Release the key if ``token`` is the current holder."""
        if self._held.get(key) is token:
            del self._held[key]
        else:
            logger.warning("Release with stale token ignored", extra={"guard": self._name, "key": str(key)})

    def is_held(self, key: KeyT) -> bool:
        """Whether an operation for ``key`` is in flight."""
        return key in self._held

    def held(self) -> set[KeyT]:
        """Keys currently in flight."""
        return set(self._held)
