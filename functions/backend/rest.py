"""
Minimal PostgREST table client for the Supabase REST surface.

Only the handful of verbs the stores need are exposed. Any non-2xx response
or transport failure is raised as ``UpstreamError`` carrying the upstream
status code and body.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

import requests

from backend.config import SupabaseConfig
from backend.errors import UpstreamError

logger = logging.getLogger(__name__)

RETURN_REPRESENTATION = "return=representation"
MERGE_DUPLICATES = "resolution=merge-duplicates"


def eq(value: Any) -> str:
    return f"eq.{value}"


def _content_range_total(header: Optional[str]) -> int:
    # "0-9/42" or "*/0"
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


class RestTable:
    """One PostgREST table (``/rest/v1/<table>``)."""

    def __init__(
        self,
        config: SupabaseConfig,
        table: str,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.table = table
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.config.rest_url}/{self.table}"

    def _headers(self, *prefer: str) -> dict:
        headers = {
            "Authorization": f"Bearer {self.config.service_key}",
            "apikey": self.config.service_key,
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = ",".join(prefer)
        return headers

    def _request(
        self,
        method: str,
        action: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        prefer: Iterable[str] = (),
    ) -> requests.Response:
        try:
            response = self.session.request(
                method,
                self.url,
                params=params,
                json=json,
                headers=self._headers(*prefer),
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, self.table, exc)
            raise UpstreamError(f"{action}: {exc}") from exc

        if not response.ok:
            body = response.text.strip()
            logger.warning(
                "%s %s returned %s: %s", method, self.table, response.status_code, body
            )
            raise UpstreamError(
                f"{action}: {response.status_code} {body}".rstrip(),
                status_code=response.status_code,
                body=body,
            )
        return response

    @staticmethod
    def _rows(response: requests.Response) -> list[dict]:
        if not response.content:
            return []
        payload = response.json()
        if isinstance(payload, list):
            return payload
        return [payload] if payload else []

    def select(
        self,
        filters: Optional[Mapping[str, str]] = None,
        *,
        columns: str = "*",
        order: Optional[str] = None,
        limit: Optional[int] = None,
        action: str = "查询失败",
    ) -> list[dict]:
        params: dict[str, Any] = dict(filters or {})
        params["select"] = columns
        if order:
            params["order"] = order
        if limit:
            params["limit"] = limit
        return self._rows(self._request("GET", action, params=params))

    def count(
        self, filters: Optional[Mapping[str, str]] = None, *, action: str = "查询失败"
    ) -> int:
        params: dict[str, Any] = dict(filters or {})
        params["select"] = "*"
        response = self._request(
            "HEAD", action, params=params, prefer=("count=exact",)
        )
        return _content_range_total(response.headers.get("Content-Range"))

    def insert(
        self,
        rows: list[dict],
        *,
        on_conflict: Optional[str] = None,
        action: str = "创建失败",
    ) -> list[dict]:
        params = None
        prefer: tuple[str, ...] = (RETURN_REPRESENTATION,)
        if on_conflict:
            params = {"on_conflict": on_conflict}
            prefer = (MERGE_DUPLICATES, RETURN_REPRESENTATION)
        return self._rows(
            self._request("POST", action, params=params, json=rows, prefer=prefer)
        )

    def update(
        self,
        filters: Mapping[str, str],
        values: dict,
        *,
        action: str = "更新失败",
    ) -> list[dict]:
        return self._rows(
            self._request(
                "PATCH",
                action,
                params=dict(filters),
                json=values,
                prefer=(RETURN_REPRESENTATION,),
            )
        )

    def delete(
        self, filters: Mapping[str, str], *, action: str = "删除失败"
    ) -> None:
        # PostgREST refuses an unfiltered DELETE; callers pass an explicit filter.
        self._request("DELETE", action, params=dict(filters))
