"""Email/password authentication against the backend's auth endpoints."""

from __future__ import annotations

import logging

from skillmatch.dal.base import run_sync
from skillmatch.dal.result import Result, dal_operation
from skillmatch.rest.client import RestClient
from skillmatch.rest.errors import ErrorKind
from skillmatch.session import LocalStore

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth/v1"


class AuthClient:
    """Signs users in and out, keeping the session context and local store in step."""

    def __init__(self, client: RestClient, store: LocalStore | None = None):
        self.client = client
        self.store = store

    @property
    def session(self):
        return self.client.session

    def _post(self, path: str, body: dict, params: dict | None = None) -> dict:
        response = self.client.request("POST", f"{AUTH_PATH}/{path}", params=params, json=body, prefer=None)
        payload = self.client.decode(response)
        return payload if isinstance(payload, dict) else {}

    def _remember(self, payload: dict) -> None:
        token = payload.get("access_token")
        user = payload.get("user")
        if not token or not isinstance(user, dict):
            return
        self.session.login(token, user)
        if self.store:
            self.store.save_session(self.session)
        logger.info("Signed in as %s", user.get("email") or user.get("id"))

    @dal_operation()
    async def sign_up(self, email: str, password: str, metadata: dict | None = None) -> Result[dict]:
        body = {"email": email, "password": password, "data": metadata or {}}
        payload = await run_sync(self._post, "signup", body)
        # Projects with email confirmation return the user without a session
        self._remember(payload)
        return Result.success(payload)

    @dal_operation()
    async def sign_in(self, email: str, password: str) -> Result[dict]:
        payload = await run_sync(
            self._post, "token", {"email": email, "password": password}, {"grant_type": "password"}
        )
        if not payload.get("access_token"):
            return Result.failure("Login failed", ErrorKind.MALFORMED)
        self._remember(payload)
        return Result.success(payload)

    @dal_operation()
    async def reset_password(self, email: str) -> Result[dict]:
        payload = await run_sync(self._post, "recover", {"email": email})
        return Result.success(payload)

    @dal_operation()
    async def update_password(self, password: str) -> Result[dict]:
        if not self.session.is_authenticated:
            return Result.failure("Not signed in", ErrorKind.CONSTRAINT)
        response = await run_sync(
            self.client.request, "PUT", f"{AUTH_PATH}/user", json={"password": password}, prefer=None
        )
        payload = self.client.decode(response)
        return Result.success(payload if isinstance(payload, dict) else {})

    def sign_out(self) -> None:
        self.session.logout()
        if self.store:
            self.store.clear_session()
