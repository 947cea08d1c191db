from __future__ import annotations

import pytest
from pydantic import ValidationError

from tally.core.config import Settings


def test_production_requires_session_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SESSION_SECRET", raising=False)
    with pytest.raises(ValidationError, match="SESSION_SECRET"):
        Settings(app_env="production", _env_file=None)


def test_development_generates_ephemeral_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SESSION_SECRET", raising=False)
    first = Settings(app_env="development", _env_file=None)
    second = Settings(app_env="development", _env_file=None)
    assert first.session_secret
    assert first.session_secret != second.session_secret


def test_cookie_is_secure_only_in_production() -> None:
    assert Settings(app_env="production", session_secret="s", _env_file=None).cookie_secure
    assert not Settings(app_env="development", _env_file=None).cookie_secure


def test_derived_sizes() -> None:
    current = Settings(max_upload_size_mb=2, session_ttl_days=1, _env_file=None)
    assert current.max_upload_size_bytes == 2 * 1024 * 1024
    assert current.session_ttl_seconds == 86400
