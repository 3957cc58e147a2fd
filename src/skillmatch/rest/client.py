"""Blocking HTTP client for the hosted REST + storage backend."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import requests

from skillmatch.config import BackendConfig
from skillmatch.rest.errors import ApiError, MalformedResponseError, TransportError
from skillmatch.rest.query import Query
from skillmatch.session import SessionContext

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"
RETURN_REPRESENTATION = "return=representation"


class RestClient:
    """Thin wrapper around ``requests.Session`` speaking PostgREST conventions.

    Every method either returns decoded JSON or raises a ``RestError``
    subclass; turning those into caller-facing results is the DAL's job.
    """

    def __init__(
        self,
        config: BackendConfig,
        session: SessionContext | None = None,
        http: requests.Session | None = None,
    ) -> None:
        self._config = config
        self.session = session or SessionContext()
        self._http = http or requests.Session()

    @property
    def base_url(self) -> str:
        return self._config.effective_url

    def headers(self, prefer: str | None = RETURN_REPRESENTATION, json_body: bool = True) -> dict[str, str]:
        anon_key = self._config.effective_anon_key
        token = self.session.access_token or anon_key
        headers = {"apikey": anon_key, "Authorization": f"Bearer {token}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Sequence[tuple[str, str]] | dict | None = None,
        json: Any = None,
        files: dict | None = None,
        prefer: str | None = RETURN_REPRESENTATION,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = self.headers(prefer=prefer, json_body=files is None)
        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = self._http.request(
                method,
                url,
                params=params,
                json=json,
                files=files,
                headers=headers,
                timeout=self._config.timeout_sec,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if not response.ok:
            error = ApiError.from_response(response)
            logger.debug("%s %s -> %s", method, path, error)
            raise error
        return response

    @staticmethod
    def decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Response is not JSON: {exc}") from exc

    def _rows(self, response: requests.Response) -> list[dict]:
        payload = self.decode(response)
        if payload is None:
            return []
        if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
            raise MalformedResponseError(f"Expected a list of rows, got {type(payload).__name__}")
        return payload

    # --- Resource operations ---

    def select(self, query: Query) -> list[dict]:
        response = self.request("GET", f"{REST_PATH}/{query.table}", params=query.params(), prefer=None)
        return self._rows(response)

    def count(self, query: Query) -> int:
        """Exact row count from the ``Content-Range`` header of a HEAD request."""
        response = self.request(
            "HEAD", f"{REST_PATH}/{query.table}", params=query.params(), prefer="count=exact"
        )
        content_range = response.headers.get("Content-Range", "")
        _, _, total = content_range.partition("/")
        try:
            return int(total)
        except ValueError as exc:
            raise MalformedResponseError(f"Unexpected Content-Range: {content_range!r}") from exc

    def insert(self, table: str, row: dict, *, on_conflict: Sequence[str] | None = None) -> list[dict]:
        """POST a row. With ``on_conflict`` the insert becomes an upsert on that key."""
        params = None
        prefer = RETURN_REPRESENTATION
        if on_conflict:
            params = [("on_conflict", ",".join(on_conflict))]
            prefer = f"resolution=merge-duplicates,{RETURN_REPRESENTATION}"
        response = self.request("POST", f"{REST_PATH}/{table}", params=params, json=row, prefer=prefer)
        return self._rows(response)

    def update(self, query: Query, values: dict) -> list[dict]:
        response = self.request(
            "PATCH", f"{REST_PATH}/{query.table}", params=query.filter_params(), json=values
        )
        return self._rows(response)

    def delete(self, query: Query) -> None:
        self.request("DELETE", f"{REST_PATH}/{query.table}", params=query.filter_params(), prefer=None)
