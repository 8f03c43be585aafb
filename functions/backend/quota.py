"""
Daily generation quota ("dosage") kept on each phone identity.

The quota refills to the default once per calendar day in the configured
timezone; consuming it decrements the stored counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from backend.errors import NotFoundError, QuotaExhaustedError
from backend.identity import DEFAULT_DOSAGE, PhoneIdentity, PhoneIdentityStore, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaStatus:
    dosage: int

    @property
    def can_generate(self) -> bool:
        return self.dosage > 0

    def as_dict(self) -> dict:
        return {"dosage": self.dosage, "canGenerate": self.can_generate}


@dataclass
class QuotaService:
    store: PhoneIdentityStore
    default_dosage: int = DEFAULT_DOSAGE
    timezone: str = "Asia/Shanghai"
    clock: Callable[[], datetime] = field(default=utcnow)

    def _load(self, uid: str) -> PhoneIdentity:
        identity = self.store.find_by_uid(uid)
        if identity is None:
            raise NotFoundError()
        return identity

    def _is_stale(self, identity: PhoneIdentity, now: datetime) -> bool:
        if identity.resettime is None:
            return True
        zone = ZoneInfo(self.timezone)
        return identity.resettime.astimezone(zone).date() != now.astimezone(zone).date()

    def _current(self, identity: PhoneIdentity) -> int:
        """Return today's dosage, persisting a refill if the last reset is stale."""
        now = self.clock()
        if self._is_stale(identity, now):
            self.store.update(
                identity.uid, {"dosage": self.default_dosage, "resettime": now}
            )
            logger.info("Refilled quota for %s", identity.uid)
            return self.default_dosage
        if identity.dosage is None:
            return self.default_dosage
        return identity.dosage

    def check(self, uid: str) -> QuotaStatus:
        return QuotaStatus(dosage=self._current(self._load(uid)))

    def consume(self, uid: str) -> QuotaStatus:
        dosage = self._current(self._load(uid))
        if dosage <= 0:
            raise QuotaExhaustedError()
        remaining = dosage - 1
        self.store.update(uid, {"dosage": remaining})
        logger.info("Consumed quota for %s, %d left", uid, remaining)
        return QuotaStatus(dosage=remaining)

    def reset(self, uid: str) -> datetime:
        now = self.clock()
        if self.store.update(uid, {"dosage": self.default_dosage, "resettime": now}) is None:
            raise NotFoundError()
        return now
