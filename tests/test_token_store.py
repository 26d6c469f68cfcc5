"""Tests for token persistence."""

import pytest

from authd.errors import TokenStoreError
from authd.models import Token
from authd.token_store import TokenStore


def test_persist_writes_exact_bytes(token_path):
    store = TokenStore(token_path)
    store.persist(Token("abc.def.ghi"))
    assert token_path.read_bytes() == b"abc.def.ghi"
    assert store.current() == Token("abc.def.ghi")


@pytest.mark.parametrize(
    "raw",
    [
        "eyJ0eXAiOiJKV1QifQ.e30.c2ln",
        "with spaces and\ttabs",
        "line\nbreak\r\nwindows",
        "ünïcödé-✓-токен",
        "trailing-newline\n",
    ],
)
def test_persist_has_no_added_delimiters(token_path, raw):
    store = TokenStore(token_path)
    store.persist(Token(raw))
    assert token_path.read_bytes() == raw.encode("utf-8")
    assert store.read() == raw


def test_persist_truncates_previous_contents(token_path):
    token_path.write_text("a-much-longer-previous-token-value" * 10)
    store = TokenStore(token_path)
    store.persist(Token("short"))
    assert token_path.read_text() == "short"


def test_persist_replaces_current(token_path):
    store = TokenStore(token_path)
    store.persist(Token("first"))
    store.persist(Token("second"))
    assert store.current().raw == "second"
    assert store.read() == "second"


def test_current_is_none_before_persist(token_path):
    assert TokenStore(token_path).current() is None


def test_read_missing_file(token_path):
    assert TokenStore(token_path).read() is None


def test_persist_missing_directory_fails(tmp_path):
    store = TokenStore(tmp_path / "missing" / "token")
    with pytest.raises(TokenStoreError) as exc:
        store.persist(Token("abc"))
    assert exc.value.category == "io"
    assert store.current() is None


def test_failed_persist_keeps_previous_current(tmp_path):
    target = tmp_path / "token"
    store = TokenStore(target)
    store.persist(Token("good"))
    target.unlink()
    target.mkdir()  # a directory cannot be opened for writing
    with pytest.raises(TokenStoreError):
        store.persist(Token("bad"))
    assert store.current() == Token("good")


def test_token_repr_hides_value():
    token = Token("super-secret-token")
    assert "super-secret-token" not in repr(token)
    assert token.fingerprint in repr(token)
