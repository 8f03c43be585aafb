"""
Phone identity records, their stores, and the identity resolver.

The resolver maps a validated phone number to a durable ``PhoneIdentity``:
it looks the phone up first and only creates a record when none exists.
Lookup always completes before create is issued. Stores enforce one record
per phone; if a create loses a race to a concurrent request, the resolver
re-reads and returns the record that won.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional, Protocol

from dacite import Config, from_dict

from backend.errors import PhoneConflictError, UpstreamError
from backend.ids import UidGenerator
from backend.phone import mask_phone
from backend.rest import RestTable, eq

logger = logging.getLogger(__name__)

DEFAULT_DOSAGE = 10
CREATED_MESSAGE = "手机号已创建并验证成功"
VERIFIED_MESSAGE = "手机号验证成功"

TEST_PHONES = (
    "13800138000",
    "13900139000",
    "15000150000",
    "18600186000",
    "13700137000",
    "15800158000",
    "18900189000",
    "13600136000",
    "15900159000",
    "18000180000",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value):
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_ROW_CONFIG = Config(check_types=False, type_hooks={datetime: _parse_timestamp})


@dataclass
class PhoneIdentity:
    uid: str
    phone: str
    dosage: Optional[int] = None
    resettime: Optional[datetime] = None
    industry: Optional[dict] = None

    @classmethod
    def from_row(cls, row: dict) -> "PhoneIdentity":
        return from_dict(data_class=cls, data=row, config=_ROW_CONFIG)

    def as_row(self) -> dict:
        row = {"uid": self.uid, "phone": self.phone}
        if self.dosage is not None:
            row["dosage"] = self.dosage
        if self.resettime is not None:
            row["resettime"] = self.resettime.isoformat()
        if self.industry is not None:
            row["industry"] = self.industry
        return row

    def public(self) -> dict:
        return {"uid": self.uid, "phone": self.phone}


class PhoneIdentityStore(Protocol):
    """Operations the service needs from the ``user_phones`` collection."""

    def find_by_phone(self, phone: str) -> Optional[PhoneIdentity]:
        ...

    def find_by_uid(self, uid: str) -> Optional[PhoneIdentity]:
        ...

    def create(self, identity: PhoneIdentity) -> PhoneIdentity:
        ...

    def update(self, uid: str, values: dict) -> Optional[PhoneIdentity]:
        ...

    def list_all(self) -> list[PhoneIdentity]:
        ...

    def count(self) -> int:
        ...


class InMemoryPhoneIdentityStore:
    """Dict-backed store for development and tests."""

    def __init__(self):
        self.records: Dict[str, PhoneIdentity] = {}
        self.calls: list[str] = []

    def find_by_phone(self, phone: str) -> Optional[PhoneIdentity]:
        self.calls.append("find_by_phone")
        for record in self.records.values():
            if record.phone == phone:
                return PhoneIdentity(uid=record.uid, phone=record.phone)
        return None

    def find_by_uid(self, uid: str) -> Optional[PhoneIdentity]:
        self.calls.append("find_by_uid")
        record = self.records.get(uid)
        return replace(record) if record else None

    def create(self, identity: PhoneIdentity) -> PhoneIdentity:
        self.calls.append("create")
        for record in self.records.values():
            if record.phone == identity.phone and record.uid != identity.uid:
                raise PhoneConflictError(
                    f"创建失败: 409 duplicate phone {mask_phone(identity.phone)}",
                    status_code=409,
                )
        existing = self.records.get(identity.uid)
        if existing:
            # merge-duplicates on uid
            merged = {**existing.as_row(), **identity.as_row()}
            self.records[identity.uid] = PhoneIdentity.from_row(merged)
        else:
            self.records[identity.uid] = replace(identity)
        return replace(self.records[identity.uid])

    def update(self, uid: str, values: dict) -> Optional[PhoneIdentity]:
        self.calls.append("update")
        record = self.records.get(uid)
        if not record:
            return None
        for key in ("dosage", "resettime", "industry"):
            if key in values:
                setattr(record, key, values[key])
        return replace(record)

    def list_all(self) -> list[PhoneIdentity]:
        return [replace(record) for record in self.records.values()]

    def count(self) -> int:
        return len(self.records)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.records.clear()
        self.calls.clear()


class RestPhoneIdentityStore:
    """Store backed by the Supabase ``user_phones`` table over PostgREST."""

    def __init__(self, table: RestTable):
        self.table = table

    def find_by_phone(self, phone: str) -> Optional[PhoneIdentity]:
        rows = self.table.select(
            {"phone": eq(phone)}, columns="uid,phone", limit=1
        )
        return PhoneIdentity.from_row(rows[0]) if rows else None

    def find_by_uid(self, uid: str) -> Optional[PhoneIdentity]:
        rows = self.table.select({"uid": eq(uid)}, limit=1)
        return PhoneIdentity.from_row(rows[0]) if rows else None

    def create(self, identity: PhoneIdentity) -> PhoneIdentity:
        try:
            rows = self.table.insert([identity.as_row()], on_conflict="uid")
        except UpstreamError as exc:
            if exc.status_code == 409 or "23505" in (exc.body or ""):
                raise PhoneConflictError(
                    exc.message, status_code=exc.status_code, body=exc.body
                ) from exc
            raise
        return PhoneIdentity.from_row(rows[0]) if rows else identity

    def update(self, uid: str, values: dict) -> Optional[PhoneIdentity]:
        payload = dict(values)
        if isinstance(payload.get("resettime"), datetime):
            payload["resettime"] = payload["resettime"].isoformat()
        payload["updatedat"] = utcnow().isoformat()
        rows = self.table.update({"uid": eq(uid)}, payload)
        return PhoneIdentity.from_row(rows[0]) if rows else None

    def list_all(self) -> list[PhoneIdentity]:
        rows = self.table.select(columns="uid,phone")
        return [PhoneIdentity.from_row(row) for row in rows]

    def count(self) -> int:
        return self.table.count()


@dataclass(frozen=True)
class ResolveResult:
    identity: PhoneIdentity
    created: bool

    @property
    def message(self) -> str:
        return CREATED_MESSAGE if self.created else VERIFIED_MESSAGE


@dataclass
class IdentityResolver:
    store: PhoneIdentityStore
    uid_generator: UidGenerator
    default_dosage: int = DEFAULT_DOSAGE
    clock: Callable[[], datetime] = field(default=utcnow)

    def new_identity(self, phone: str) -> PhoneIdentity:
        return PhoneIdentity(
            uid=self.uid_generator(),
            phone=phone,
            dosage=self.default_dosage,
            resettime=self.clock(),
        )

    def resolve(self, phone: str) -> ResolveResult:
        """
        Return the identity for ``phone``, creating it on first sight.

        ``phone`` must already be validated. Upstream failures propagate; a
        failed lookup never falls through to create.
        """
        existing = self.store.find_by_phone(phone)
        if existing:
            logger.info("Phone %s verified as %s", mask_phone(phone), existing.uid)
            return ResolveResult(identity=existing, created=False)

        identity = self.new_identity(phone)
        try:
            stored = self.store.create(identity)
        except PhoneConflictError:
            winner = self.store.find_by_phone(phone)
            if winner is None:
                raise
            logger.info(
                "Phone %s created concurrently as %s", mask_phone(phone), winner.uid
            )
            return ResolveResult(identity=winner, created=False)

        logger.info("Phone %s created as %s", mask_phone(phone), stored.uid)
        return ResolveResult(identity=stored, created=True)

    def seed(self, phones: Iterable[str] = TEST_PHONES) -> list[PhoneIdentity]:
        """Create identities for ``phones`` if the collection is empty."""
        if self.store.count() > 0:
            return []
        return [self.store.create(self.new_identity(phone)) for phone in phones]
