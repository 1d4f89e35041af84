import pytest
from pydantic import ValidationError

from nvisy_docstore.config import EngineSettings, RetryPolicy


def test_defaults() -> None:
    settings = EngineSettings()
    assert settings.default_page_size == 100
    assert settings.max_page_size == 1000
    assert settings.default_chunk_size == 500
    assert settings.max_chunk_size == 1000
    assert settings.retry_policy().max_attempts == 3
    assert settings.mutation_retry_policy().max_attempts == 10
    assert settings.cursor_secret is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NVISY_DOCSTORE_DEFAULT_CHUNK_SIZE", "250")
    monkeypatch.setenv("NVISY_DOCSTORE_CURSOR_SECRET", "s3cret")
    settings = EngineSettings()
    assert settings.default_chunk_size == 250
    assert settings.cursor_secret is not None
    assert settings.cursor_secret.get_secret_value() == "s3cret"


def test_default_may_not_exceed_max() -> None:
    with pytest.raises(ValidationError):
        _ = EngineSettings(default_page_size=50, max_page_size=10)


def test_retry_policy_bounds() -> None:
    assert RetryPolicy.no_retry().max_attempts == 1
    with pytest.raises(ValidationError):
        _ = RetryPolicy(max_attempts=0)
