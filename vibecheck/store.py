"""
Table Store Client
==================

Minimal client for the hosted table store (Supabase's PostgREST endpoint).
Only the access patterns the app needs are covered:
- select with equality / greater-than filters, ordering and limit
- exact row count
- insert

Every failure, whether transport or remote, surfaces as ``StoreError`` so the
gateway has a single exception type to decide on.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .config import StoreConfig
from .errors import StoreError

logger = logging.getLogger(__name__)


def eq(value: Any) -> str:
    """PostgREST equality filter."""
    return f"eq.{value}"


def gt(value: Any) -> str:
    """PostgREST strict greater-than filter."""
    return f"gt.{value}"


class TableStore:
    """
    Wrapper around the PostgREST HTTP API.

    Attributes:
        config: URL, anon key and timeout
        session: requests session reused for all calls
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        session: Optional[requests.Session] = None
    ):
        self.config = config or StoreConfig.from_env()
        self.session = session or requests.Session()

        if not self.config.is_configured:
            logger.warning("Supabase credentials missing. Set SUPABASE_URL and SUPABASE_ANON_KEY.")

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.config.anon_key,
            "Authorization": f"Bearer {self.config.anon_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        if not self.config.is_configured:
            raise StoreError("Supabase credentials missing", code="NOT_CONFIGURED")

        url = f"{self.config.rest_url}/{table}"
        logger.debug("%s %s params=%s", method, url, params)
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(headers),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"Connection Error: {e}", code="CONNECTION_ERROR") from e

        if response.status_code >= 400:
            raise self._error_from_response(response)
        return response

    @staticmethod
    def _error_from_response(response: requests.Response) -> StoreError:
        """Turn a PostgREST error body ({code, message, ...}) into a StoreError."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or response.reason or f"HTTP {response.status_code}"
        code = body.get("code") or str(response.status_code)
        return StoreError(message, code=code, status=response.status_code)

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict]:
        """
        Read rows from a table.

        Args:
            table: Table name
            columns: Column list in PostgREST syntax
            filters: Column -> filter expression (see ``eq`` / ``gt``)
            order: e.g. ``"created_at.desc"``
            limit: Maximum rows

        Returns:
            List of row dictionaries
        """
        params: Dict[str, Any] = {"select": columns}
        if filters:
            params.update(filters)
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit

        response = self._request("GET", table, params=params)
        try:
            rows = response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from table store: {e}", code="BAD_RESPONSE") from e
        if not isinstance(rows, list):
            rows = [rows]
        return [row for row in rows if isinstance(row, dict)]

    def count(self, table: str) -> int:
        """Exact row count of a table. Also serves as a cheap existence check."""
        response = self._request(
            "GET",
            table,
            params={"select": "id", "limit": 1},
            headers={"Prefer": "count=exact"},
        )
        # Content-Range: "0-0/42" or "*/0"
        content_range = response.headers.get("Content-Range", "")
        total = content_range.rsplit("/", 1)[-1]
        return int(total) if total.isdigit() else 0

    def insert(self, table: str, row: Dict[str, Any]) -> None:
        """Insert one row. The store fills id and created_at."""
        self._request(
            "POST",
            table,
            json_body=row,
            headers={"Prefer": "return=minimal"},
        )
