"""
Pydantic schemas for the phone identity backend.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field, StrictStr

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class VerifyPhoneRequest(BaseModel):
    phone: StrictStr


class PhoneIdentityOut(BaseModel):
    uid: str
    phone: str


class UidRequest(BaseModel):
    uid: str = Field(..., min_length=1)


class DosageOut(BaseModel):
    dosage: int
    canGenerate: bool


class DosageResetOut(BaseModel):
    dosage: int
    resettime: str


class IndustrySelection(BaseModel):
    primary: str = Field(..., min_length=1)
    secondary: str = Field(..., min_length=1)


class UpdateIndustryRequest(BaseModel):
    uid: str = Field(..., min_length=1)
    industry: IndustrySelection


class PhoneIndustryOut(BaseModel):
    uid: str
    phone: str
    industry: Optional[IndustrySelection] = None


class IndustriesOut(BaseModel):
    primaryCategories: list[str]
    secondaryCategories: dict[str, list[str]]
