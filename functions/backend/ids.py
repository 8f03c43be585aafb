"""
Uid generators for new phone identities.
"""

from __future__ import annotations

import secrets
import string
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Protocol

UID_PREFIX = "uid_"
_BASE36_ALPHABET = string.digits + string.ascii_lowercase


class UidGenerator(Protocol):
    def __call__(self) -> str:
        ...


@dataclass
class TimestampUidGenerator:
    """``uid_<epoch millis>_<random base-36 suffix>``."""

    suffix_length: int = 9
    clock: Callable[[], float] = field(default=time.time)

    def __call__(self) -> str:
        millis = int(self.clock() * 1000)
        suffix = "".join(
            secrets.choice(_BASE36_ALPHABET) for _ in range(self.suffix_length)
        )
        return f"{UID_PREFIX}{millis}_{suffix}"


class UuidUidGenerator:
    """``uid_<uuid4 hex>``; 122 random bits per uid."""

    def __call__(self) -> str:
        return f"{UID_PREFIX}{uuid.uuid4().hex}"


def build_uid_generator(strategy: str) -> UidGenerator:
    if strategy == "uuid":
        return UuidUidGenerator()
    if strategy == "timestamp":
        return TimestampUidGenerator()
    raise ValueError(f"Unknown uid strategy: {strategy}")
