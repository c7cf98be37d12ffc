import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from mixarchive.api.auth import require_invoke_token


def _creds(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_require_invoke_token_fails_closed_when_token_missing(monkeypatch):
    monkeypatch.delenv("INVOKE_TOKEN", raising=False)

    with pytest.raises(HTTPException) as e:
        require_invoke_token(_creds("anything"))

    assert e.value.status_code == 503


def test_require_invoke_token_rejects_wrong_token(monkeypatch):
    monkeypatch.setenv("INVOKE_TOKEN", "secret")

    with pytest.raises(HTTPException) as e:
        require_invoke_token(_creds("wrong"))

    assert e.value.status_code == 401


def test_require_invoke_token_allows_correct_token(monkeypatch):
    monkeypatch.setenv("INVOKE_TOKEN", "secret")

    assert require_invoke_token(_creds("secret")) is True
