"""
Unit tests for settings and store selection.
"""

import pytest

from config import Settings
from prepsync.db.database import build_store
from prepsync.db.postgrest_store import PostgrestStore
from prepsync.db.store import MemoryStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "STORE_BACKEND",
        "DATABASE_URL",
        "POSTGREST_URL",
        "POSTGREST_API_KEY",
        "LOG_LEVEL",
        "DEFAULT_OVERWRITE_EXISTING",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.store_backend == "sql"
        assert settings.log_level == "INFO"
        assert settings.default_overwrite_existing is False
        assert settings.has_postgrest_configured() is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "memory")
        monkeypatch.setenv("DEFAULT_OVERWRITE_EXISTING", "true")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)
        assert settings.store_backend == "memory"
        assert settings.default_overwrite_existing is True
        assert settings.log_level == "DEBUG"

    def test_postgrest_needs_url_and_key(self):
        assert Settings(_env_file=None, postgrest_url="https://x.supabase.co").has_postgrest_configured() is False
        settings = Settings(_env_file=None, postgrest_url="https://x.supabase.co", postgrest_api_key="k")
        assert settings.has_postgrest_configured() is True


class TestBuildStore:
    """Backend selection."""

    def test_memory(self):
        assert isinstance(build_store(Settings(_env_file=None, store_backend="memory")), MemoryStore)

    def test_postgrest(self):
        settings = Settings(
            _env_file=None,
            store_backend="postgrest",
            postgrest_url="https://x.supabase.co/",
            postgrest_api_key="k",
        )
        store = build_store(settings)
        assert isinstance(store, PostgrestStore)
        assert store.base_url == "https://x.supabase.co"
        store.close()

    def test_postgrest_unconfigured(self):
        with pytest.raises(ValueError, match="POSTGREST_URL"):
            build_store(Settings(_env_file=None, store_backend="postgrest"))
