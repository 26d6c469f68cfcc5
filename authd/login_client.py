"""Login client for the identity provider (service account login)."""

from __future__ import annotations

import json
import os
import ssl
import time
from typing import Any, Protocol, runtime_checkable

import aiohttp
import jwt
from cryptography.hazmat.primitives.serialization import load_der_private_key
from pydantic import BaseModel, ValidationError

from .constants import (
    ASSERTION_ALGORITHM,
    ASSERTION_LIFETIME_SECONDS,
    DEFAULT_UID,
    LOGIN_TIMEOUT_SECONDS,
)
from .errors import AssertionEncodingError, TokenStoreError, TransportError
from .logs.logger import logger


@runtime_checkable
class LoginClientProtocol(Protocol):
    """The single capability the refresh loop needs from a login client."""

    async def login(self) -> str: ...  # noqa: D401,E701


class LoginResponse(BaseModel):
    """Body returned by the identity provider on a successful login."""

    token: str


def load_secret(path: str | os.PathLike[str]) -> Any:
    """Load the service account private key.

    PEM files are returned as raw bytes; anything else is parsed as a DER
    encoded key.

    Raises:
        TokenStoreError: If the file cannot be read.
        AssertionEncodingError: If a DER key cannot be parsed.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise TokenStoreError(
            f"Cannot read signing secret {path}: {e}", data={"path": str(path)}
        ) from e
    if data.lstrip().startswith(b"-----BEGIN"):
        return data
    try:
        return load_der_private_key(data, password=None)
    except (ValueError, TypeError) as e:
        raise AssertionEncodingError(
            f"Cannot parse signing secret {path}: {e}", data={"path": str(path)}
        ) from e


def build_ssl_context(cert_path: str | os.PathLike[str] | None) -> ssl.SSLContext:
    """Return a default SSL context trusting ``cert_path`` in addition.

    Raises:
        TokenStoreError: If the certificate cannot be loaded.
    """
    context = ssl.create_default_context()
    if cert_path is not None:
        try:
            context.load_verify_locations(cafile=os.fspath(cert_path))
        except (OSError, ssl.SSLError) as e:
            raise TokenStoreError(
                f"Cannot load certificate {cert_path}: {e}",
                data={"path": str(cert_path)},
            ) from e
    return context


class LoginClient:
    """Performs one authenticated login exchange per ``login()`` call.

    The client signs a short-lived assertion with the service account key,
    posts it together with the user id and returns the token issued in the
    response. Errors are raised, never retried here.

    Args:
        endpoint: Login URL of the identity provider.
        secret: Private key (PEM bytes or key object) signing the assertion.
        uid: Service account user id.
        cert_path: Optional custom CA certificate trusted for the endpoint.
        session: Optional session to use instead of an owned one.
        timeout: Total timeout of one login request in seconds.
    """

    def __init__(
        self,
        endpoint: str,
        secret: Any,
        uid: str = DEFAULT_UID,
        *,
        cert_path: str | os.PathLike[str] | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout: float = LOGIN_TIMEOUT_SECONDS,
    ) -> None:
        self.endpoint = endpoint
        self.secret = secret
        self.uid = uid
        self.cert_path = cert_path
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> LoginClient:
        if self.session is None:
            connector = aiohttp.TCPConnector(ssl=build_ssl_context(self.cert_path))
            self.session = aiohttp.ClientSession(connector=connector)
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    def login_assertion(self) -> str:
        """Return the signed assertion proving possession of the secret.

        Raises:
            AssertionEncodingError: If the assertion cannot be signed.
        """
        claim = {"uid": self.uid, "exp": int(time.time()) + ASSERTION_LIFETIME_SECONDS}
        try:
            return jwt.encode(claim, self.secret, algorithm=ASSERTION_ALGORITHM)
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise AssertionEncodingError(f"Cannot sign login assertion: {e}") from e

    async def login(self) -> str:
        """Log in and return the raw token issued by the identity provider.

        Raises:
            AssertionEncodingError: If the assertion cannot be signed.
            TransportError: On network failures, non-2xx responses or a
                response without a token.
        """
        if self.session is None:
            raise TransportError("Login client session is not open")
        body = {"uid": self.uid, "token": self.login_assertion()}
        logger.log_event("login", "request", uid=self.uid, endpoint=self.endpoint)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        context = {"endpoint": self.endpoint, "uid": self.uid}
        try:
            async with self.session.post(
                self.endpoint, json=body, timeout=timeout
            ) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    raise TransportError(
                        f"Login failed with HTTP {resp.status}: {text[:200]}",
                        data={**context, "http_status": resp.status},
                    )
                payload = await resp.json(content_type=None)
        except TimeoutError as e:
            raise TransportError(
                f"Login timed out after {self.timeout}s", data=context
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Login request failed: {e}", data=context) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(
                f"Login response is not valid JSON: {e}", data=context
            ) from e
        try:
            token = LoginResponse.model_validate(payload).token
        except ValidationError as e:
            raise TransportError(
                "Login response does not contain a token", data=context
            ) from e
        logger.log_event("login", "success", uid=self.uid)
        return token


__all__ = [
    "LoginClient",
    "LoginClientProtocol",
    "LoginResponse",
    "build_ssl_context",
    "load_secret",
]
