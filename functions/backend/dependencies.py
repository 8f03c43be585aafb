"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import requests

from backend.config import SupabaseConfig, get_settings
from backend.identity import (
    IdentityResolver,
    InMemoryPhoneIdentityStore,
    PhoneIdentityStore,
    RestPhoneIdentityStore,
)
from backend.ids import build_uid_generator
from backend.industries import (
    IndustryCatalog,
    IndustryStore,
    InMemoryIndustryStore,
    RestIndustryStore,
)
from backend.quota import QuotaService
from backend.rest import RestTable

_session: requests.Session | None = None
_phone_store: PhoneIdentityStore | None = None
_industry_store: IndustryStore | None = None


def _get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def get_phone_store() -> PhoneIdentityStore:
    """
    Return a singleton identity store.

    Raises ``ConfigurationError`` (and caches nothing) while the Supabase
    credentials are missing, so no network call is ever attempted without them.
    """
    global _phone_store
    if _phone_store:
        return _phone_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _phone_store = InMemoryPhoneIdentityStore()
    else:
        config = SupabaseConfig.from_settings(settings)
        _phone_store = RestPhoneIdentityStore(
            RestTable(config, settings.user_phones_table, session=_get_session())
        )
    return _phone_store


def get_industry_store() -> IndustryStore:
    global _industry_store
    if _industry_store:
        return _industry_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _industry_store = InMemoryIndustryStore()
    else:
        config = SupabaseConfig.from_settings(settings)
        _industry_store = RestIndustryStore(
            RestTable(config, settings.industries_table, session=_get_session())
        )
    return _industry_store


def get_identity_resolver() -> IdentityResolver:
    settings = get_settings()
    return IdentityResolver(
        store=get_phone_store(),
        uid_generator=build_uid_generator(settings.uid_strategy),
        default_dosage=settings.default_dosage,
    )


def get_quota_service() -> QuotaService:
    settings = get_settings()
    return QuotaService(
        store=get_phone_store(),
        default_dosage=settings.default_dosage,
        timezone=settings.quota_timezone,
    )


def get_industry_catalog() -> IndustryCatalog:
    return IndustryCatalog(get_industry_store())


def reset_dependencies() -> None:
    """Drop cached stores so the next request rebuilds them from settings."""
    global _phone_store, _industry_store
    _phone_store = None
    _industry_store = None
