"""
HTTP routes for the phone identity backend.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from backend.dependencies import (
    get_identity_resolver,
    get_industry_catalog,
    get_phone_store,
    get_quota_service,
)
from backend.errors import NotFoundError
from backend.identity import IdentityResolver, PhoneIdentityStore
from backend.industries import IndustryCatalog
from backend.phone import mask_phone, parse_verify_request
from backend.quota import QuotaService
from backend.schemas import (
    ApiResponse,
    DosageOut,
    DosageResetOut,
    IndustriesOut,
    PhoneIdentityOut,
    PhoneIndustryOut,
    UidRequest,
    UpdateIndustryRequest,
    VerifyPhoneRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()
debug_router = APIRouter()


async def read_verify_request(request: Request) -> VerifyPhoneRequest:
    return parse_verify_request(await request.body())


@router.get("/health")
def health():
    return {"success": True, "message": "ok"}


@router.post("/auth/verify", response_model=ApiResponse[PhoneIdentityOut])
def verify_phone(
    # Declared first so a bad phone is rejected before any store is built.
    payload: VerifyPhoneRequest = Depends(read_verify_request),
    resolver: IdentityResolver = Depends(get_identity_resolver),
):
    """
    Resolve a phone number to its identity, creating the identity on first use.
    """
    logger.info("Verifying phone %s", mask_phone(payload.phone))
    result = resolver.resolve(payload.phone)
    return ApiResponse(
        message=result.message,
        data=PhoneIdentityOut(**result.identity.public()),
    )


@router.post("/auth/check-dosage", response_model=ApiResponse[DosageOut])
def check_dosage(
    payload: UidRequest, quota: QuotaService = Depends(get_quota_service)
):
    status = quota.check(payload.uid)
    return ApiResponse(message="检查成功", data=DosageOut(**status.as_dict()))


@router.post("/auth/consume-dosage", response_model=ApiResponse[DosageOut])
def consume_dosage(
    payload: UidRequest, quota: QuotaService = Depends(get_quota_service)
):
    status = quota.consume(payload.uid)
    return ApiResponse(message="消耗成功", data=DosageOut(**status.as_dict()))


@router.post("/auth/reset-dosage", response_model=ApiResponse[DosageResetOut])
def reset_dosage(
    payload: UidRequest, quota: QuotaService = Depends(get_quota_service)
):
    reset_at = quota.reset(payload.uid)
    return ApiResponse(
        message="重置成功",
        data=DosageResetOut(dosage=quota.default_dosage, resettime=reset_at.isoformat()),
    )


@router.put("/auth/update-industry", response_model=ApiResponse[PhoneIndustryOut])
def update_industry(
    payload: UpdateIndustryRequest,
    store: PhoneIdentityStore = Depends(get_phone_store),
):
    updated = store.update(
        payload.uid, {"industry": payload.industry.model_dump()}
    )
    if updated is None:
        raise NotFoundError()
    logger.info("Updated industry for %s", updated.uid)
    return ApiResponse(
        message="更新行业信息成功",
        data=PhoneIndustryOut(
            uid=updated.uid, phone=updated.phone, industry=updated.industry
        ),
    )


@router.get(
    "/industries",
    response_model=ApiResponse[IndustriesOut],
    response_model_exclude_none=True,
)
def list_industries(catalog: IndustryCatalog = Depends(get_industry_catalog)):
    return ApiResponse(data=IndustriesOut(**catalog.grouped()))


@router.post(
    "/industries/init",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
def init_industries(catalog: IndustryCatalog = Depends(get_industry_catalog)):
    count = catalog.reseed()
    return ApiResponse(message=f"成功初始化 {count} 条行业数据")


@debug_router.post("/auth/init", response_model=ApiResponse[list[PhoneIdentityOut]])
def init_user_phones(
    resolver: IdentityResolver = Depends(get_identity_resolver),
):
    """Seed the test phone numbers into an empty collection."""
    created = resolver.seed()
    if not created:
        return ApiResponse(message="用户手机号已存在", data=[])
    logger.info("Seeded %d test phones", len(created))
    return ApiResponse(
        message="用户手机号初始化成功",
        data=[PhoneIdentityOut(**identity.public()) for identity in created],
    )


@debug_router.get("/auth/codes", response_model=ApiResponse[list[PhoneIdentityOut]])
def list_user_phones(store: PhoneIdentityStore = Depends(get_phone_store)):
    identities = store.list_all()
    return ApiResponse(
        message="获取成功",
        data=[PhoneIdentityOut(**identity.public()) for identity in identities],
    )
