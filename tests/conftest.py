"""Shared pytest fixtures for all tests."""

import asyncio
import base64
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from dal.local_storage_dal import LocalStorageDAL
from models.drive_file import AIAnalysis, DriveFile
from utils.database_init import AsyncDatabaseInitializer


class FakeUpload:
    """Stand-in for FastAPI's UploadFile."""

    def __init__(self, filename: str, content: bytes, content_type: str = "text/plain", fail: bool = False):
        self.filename = filename
        self.content_type = content_type
        self._content = content
        self._fail = fail

    async def read(self) -> bytes:
        if self._fail:
            raise OSError("disk went away")
        return self._content


class FakeAnalyzer:
    """Content analyzer double.

    Returns `result`, raises `error`, and when `hold` is set waits for
    `release` before answering.
    """

    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None, hold: bool = False):
        self.result = result or {"summary": "hello", "tags": ["x", "y"]}
        self.error = error
        self.release = asyncio.Event() if hold else None
        self.calls: List[Dict[str, Any]] = []

    async def analyze(self, payload_b64: str, mime_type: str, name: str = "") -> Dict[str, Any]:
        self.calls.append({"payload": payload_b64, "mime_type": mime_type, "name": name})
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


def make_record(
    file_id: str,
    name: str = "file.txt",
    upload_date: int = 0,
    kind: str = "text",
    notes: str = "",
    summary: str = "",
    tags: Optional[List[str]] = None,
    size: int = 10,
) -> DriveFile:
    return DriveFile(
        id=file_id,
        name=name,
        kind=kind,
        mime_type="text/plain",
        size=size,
        upload_date=upload_date,
        data=base64.b64encode(b"0123456789").decode("ascii"),
        notes=notes,
        ai_data=AIAnalysis(is_analyzing=False, summary=summary, tags=tags or []),
    )


@pytest.fixture
def db_initializer(tmp_path):
    """
    Create a database initializer rooted in a temporary directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        AsyncDatabaseInitializer for tmp_path/db
    """
    return AsyncDatabaseInitializer(tmp_path / "db")


@pytest.fixture
def storage(db_initializer):
    return LocalStorageDAL(db_initializer)


class FakeIdentityBackend:
    """In-memory identity REST API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.requests: List[tuple] = []
        self.fail_delete = False
        self._next_uid = 1

    def add_account(self, email: str, password: str, verified: bool = True) -> str:
        uid = f"uid-{self._next_uid}"
        self._next_uid += 1
        self.accounts[email] = {"localId": uid, "email": email, "password": password, "emailVerified": verified}
        return uid

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content or b"{}")
        self.requests.append((endpoint, body))
        route = {
            "accounts:signUp": self._sign_up,
            "accounts:signInWithPassword": self._sign_in,
            "accounts:lookup": self._lookup,
            "accounts:sendOobCode": self._send_oob_code,
            "accounts:signInWithIdp": self._sign_in_with_idp,
            "accounts:delete": self._delete,
        }.get(endpoint)
        if route is None:
            return self._error("NOT_FOUND", status=404)
        return route(body)

    def endpoints(self) -> List[str]:
        return [endpoint for endpoint, _ in self.requests]

    @staticmethod
    def _error(message: str, status: int = 400) -> httpx.Response:
        return httpx.Response(status, json={"error": {"code": status, "message": message}})

    def _session(self, account: Dict[str, Any]) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "localId": account["localId"],
                "email": account["email"],
                "idToken": f"token-{account['localId']}",
                "refreshToken": f"refresh-{account['localId']}",
            },
        )

    def _by_token(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        for account in self.accounts.values():
            if f"token-{account['localId']}" == token:
                return account
        return None

    def _sign_up(self, body: Dict[str, Any]) -> httpx.Response:
        if body["email"] in self.accounts:
            return self._error("EMAIL_EXISTS")
        if len(body["password"]) < 6:
            return self._error("WEAK_PASSWORD : Password should be at least 6 characters")
        self.add_account(body["email"], body["password"], verified=False)
        return self._session(self.accounts[body["email"]])

    def _sign_in(self, body: Dict[str, Any]) -> httpx.Response:
        account = self.accounts.get(body["email"])
        if account is None or account["password"] != body["password"]:
            return self._error("INVALID_LOGIN_CREDENTIALS")
        return self._session(account)

    def _lookup(self, body: Dict[str, Any]) -> httpx.Response:
        account = self._by_token(body.get("idToken"))
        if account is None:
            return self._error("INVALID_ID_TOKEN")
        return httpx.Response(
            200,
            json={"users": [{"localId": account["localId"], "email": account["email"], "emailVerified": account["emailVerified"]}]},
        )

    def _send_oob_code(self, body: Dict[str, Any]) -> httpx.Response:
        if body["requestType"] == "PASSWORD_RESET":
            if body["email"] not in self.accounts:
                return self._error("EMAIL_NOT_FOUND")
            return httpx.Response(200, json={"email": body["email"]})
        account = self._by_token(body.get("idToken"))
        if account is None:
            return self._error("INVALID_ID_TOKEN")
        return httpx.Response(200, json={"email": account["email"]})

    def _sign_in_with_idp(self, body: Dict[str, Any]) -> httpx.Response:
        if "id_token=good" not in body.get("postBody", ""):
            return self._error("INVALID_IDP_RESPONSE : bad token")
        email = "federated@example.com"
        if email not in self.accounts:
            self.add_account(email, "", verified=False)
        return self._session(self.accounts[email])

    def _delete(self, body: Dict[str, Any]) -> httpx.Response:
        if self.fail_delete:
            return self._error("CREDENTIAL_TOO_OLD_LOGIN_AGAIN")
        account = self._by_token(body.get("idToken"))
        if account is None:
            return self._error("INVALID_ID_TOKEN")
        del self.accounts[account["email"]]
        return httpx.Response(200, json={})


@pytest.fixture
def identity_backend():
    return FakeIdentityBackend()


@pytest.fixture
def identity_http(identity_backend):
    return httpx.AsyncClient(transport=httpx.MockTransport(identity_backend.handler))
