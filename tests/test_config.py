from pathlib import Path

import pytest

from authd.config import DaemonConfig, build_parser, load_config
from authd.errors import ConfigError, TokenStoreError

ENV = {
    "AUTHD_ENDPOINT": "https://idp.example.test/acs/api/v1/auth/login",
    "AUTHD_SECRET": "/etc/authd/usi.private.pem",
    "AUTHD_TOKEN_PATH": "/run/authd/token",
}


def test_environment_defaults():
    config = load_config([], ENV)
    assert config.endpoint == ENV["AUTHD_ENDPOINT"]
    assert config.secret_path == Path("/etc/authd/usi.private.pem")
    assert config.token_path == Path("/run/authd/token")
    assert config.cert_path is None
    assert config.verify_key_path is None
    assert config.uid == "strict-usi"
    assert config.refresh_margin == 0
    assert config.login_attempts == 1


def test_arguments_override_environment():
    config = load_config(
        [
            "--token-path",
            "/tmp/token",
            "--cert-path",
            "dcos-ca.crt",
            "--uid",
            "other-usi",
            "--login-attempts",
            "3",
            "--refresh-margin",
            "30.5",
        ],
        ENV,
    )
    assert config.token_path == Path("/tmp/token")
    assert config.cert_path == Path("dcos-ca.crt")
    assert config.uid == "other-usi"
    assert config.login_attempts == 3
    assert config.refresh_margin == 30.5


def test_empty_environment_values_are_unset():
    config = load_config([], {**ENV, "AUTHD_CERT": ""})
    assert config.cert_path is None


def test_missing_required_values():
    with pytest.raises(ConfigError) as exc:
        load_config([], {})
    message = str(exc.value)
    assert "endpoint" in message
    assert "secret_path" in message
    assert "token_path" in message
    assert exc.value.category == "config"


@pytest.mark.parametrize(
    "override",
    [
        {"AUTHD_ENDPOINT": "ftp://idp.example.test"},
        {"AUTHD_LOGIN_ATTEMPTS": "0"},
        {"AUTHD_LOGIN_ATTEMPTS": "many"},
        {"AUTHD_REFRESH_MARGIN": "-1"},
        {"AUTHD_LOGIN_TIMEOUT": "0"},
    ],
)
def test_invalid_values(override):
    with pytest.raises(ConfigError):
        load_config([], {**ENV, **override})


def test_empty_uid_argument():
    with pytest.raises(ConfigError):
        load_config(["--uid", ""], ENV)


def test_parser_help_mentions_environment():
    help_text = build_parser().format_help()
    assert "AUTHD_ENDPOINT" in help_text
    assert "--token-path" in help_text


def test_read_verify_key(tmp_path, public_pem):
    key = tmp_path / "idp.pub.pem"
    key.write_text(public_pem)
    config = DaemonConfig(
        endpoint=ENV["AUTHD_ENDPOINT"],
        secret_path="secret",
        token_path="token",
        verify_key_path=key,
    )
    assert config.read_verify_key() == public_pem


def test_read_verify_key_unset():
    config = load_config([], ENV)
    assert config.read_verify_key() is None


def test_read_verify_key_missing(tmp_path):
    config = load_config(["--verify-key-path", str(tmp_path / "nope.pem")], ENV)
    with pytest.raises(TokenStoreError):
        config.read_verify_key()
