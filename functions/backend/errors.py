"""
Service errors and their client-facing envelope.

Every error carries the HTTP status it maps to and a human-readable message;
the handlers in ``backend.error_handlers`` turn them into
``{"success": false, "message": ...}`` responses.
"""

from __future__ import annotations

from typing import Optional

INVALID_PHONE_MESSAGE = "请输入正确的手机号"
NOT_CONFIGURED_MESSAGE = "服务未配置"
INTERNAL_ERROR_MESSAGE = "服务器内部错误"
USER_NOT_FOUND_MESSAGE = "用户不存在"
QUOTA_EXHAUSTED_MESSAGE = "今日生成次数已用完"


class ServiceError(Exception):
    http_status: int = 500
    default_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {"success": False, "message": self.message}


class PhoneValidationError(ServiceError):
    """Malformed or absent phone number. Always the client's fault."""

    http_status = 400
    default_message = INVALID_PHONE_MESSAGE


class ConfigurationError(ServiceError):
    """Required backend credentials are missing from the environment."""

    default_message = NOT_CONFIGURED_MESSAGE


class UpstreamError(ServiceError):
    """The REST backend answered with a non-success status or was unreachable."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PhoneConflictError(UpstreamError):
    """A record for the phone was stored concurrently by another request."""


class NotFoundError(ServiceError):
    http_status = 404
    default_message = USER_NOT_FOUND_MESSAGE


class QuotaExhaustedError(ServiceError):
    http_status = 400
    default_message = QUOTA_EXHAUSTED_MESSAGE
