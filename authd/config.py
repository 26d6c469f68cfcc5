"""Daemon configuration: command line arguments with environment defaults."""

from __future__ import annotations

import argparse
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import DEFAULT_UID, LOGIN_TIMEOUT_SECONDS
from .errors import ConfigError, TokenStoreError

# (option, environment variable, help)
_OPTIONS: tuple[tuple[str, str, str], ...] = (
    ("endpoint", "AUTHD_ENDPOINT", "Login URL of the identity provider"),
    ("secret_path", "AUTHD_SECRET", "Service account private key (PEM or DER)"),
    ("token_path", "AUTHD_TOKEN_PATH", "File the active token is written to"),
    ("cert_path", "AUTHD_CERT", "Custom CA certificate (PEM) for the endpoint"),
    ("verify_key_path", "AUTHD_VERIFY_KEY", "Public key verifying issued tokens"),
    ("uid", "AUTHD_UID", "Service account user id"),
    ("refresh_margin", "AUTHD_REFRESH_MARGIN", "Seconds before expiry to refresh"),
    ("login_attempts", "AUTHD_LOGIN_ATTEMPTS", "Attempts per login (1 = fail-stop)"),
    ("login_timeout", "AUTHD_LOGIN_TIMEOUT", "Timeout of one login request"),
)


class DaemonConfig(BaseModel):
    """Resolved configuration of the authentication daemon.

    Attributes:
        endpoint: Login URL of the identity provider.
        secret_path: Service account private key signing the login assertion.
        token_path: File the active token is persisted to.
        cert_path: Optional custom CA certificate trusted for the endpoint.
        verify_key_path: Optional public key; when set, issued tokens are
            signature-verified before their expiry is trusted.
        uid: Service account user id.
        refresh_margin: Seconds before expiry at which to refresh.
        login_attempts: Login attempts per refresh cycle.
        login_timeout: Total timeout of one login request in seconds.
    """

    endpoint: str
    secret_path: Path
    token_path: Path
    cert_path: Path | None = None
    verify_key_path: Path | None = None
    uid: str = Field(default=DEFAULT_UID, min_length=1)
    refresh_margin: float = Field(default=0.0, ge=0)
    login_attempts: int = Field(default=1, ge=1)
    login_timeout: float = Field(default=LOGIN_TIMEOUT_SECONDS, gt=0)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("endpoint must be an http(s) URL")
        return v

    def read_verify_key(self) -> str | None:
        """Return the PEM text of the verification key, if configured.

        Raises:
            TokenStoreError: If the key file cannot be read.
        """
        if self.verify_key_path is None:
            return None
        try:
            return self.verify_key_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TokenStoreError(
                f"Cannot read verification key {self.verify_key_path}: {e}",
                data={"path": str(self.verify_key_path)},
            ) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authd",
        description="Keep a valid identity provider token on disk.",
    )
    for name, env, text in _OPTIONS:
        parser.add_argument(
            f"--{name.replace('_', '-')}",
            dest=name,
            default=None,
            help=f"{text} (env: {env})",
        )
    return parser


def load_config(
    argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None
) -> DaemonConfig:
    """Resolve the configuration from ``argv`` falling back to ``environ``.

    Raises:
        ConfigError: If a required value is missing or a value is invalid.
    """
    env = os.environ if environ is None else environ
    args = build_parser().parse_args(argv)
    values: dict[str, str] = {}
    for name, var, _text in _OPTIONS:
        value = getattr(args, name)
        if value is None:
            value = env.get(var) or None
        if value is not None:
            values[name] = value
    try:
        return DaemonConfig.model_validate(values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e


__all__ = ["DaemonConfig", "build_parser", "load_config"]
