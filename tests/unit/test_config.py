"""Unit tests for settings and error types."""

from rentledger.config import Settings
from rentledger.errors import (
    ConflictError,
    LedgerError,
    NotFoundError,
    StateError,
    ValidationError,
    error_response,
)


class TestSettings:
    """Tests for Settings loading."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in ("DATABASE_URL", "DATABASE_ECHO", "LOG_LEVEL", "LOG_FILE"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.database_url == "sqlite+aiosqlite:///./rentledger.db"
        assert settings.database_echo is False
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://ledger@db/ledger")
        monkeypatch.setenv("DATABASE_ECHO", "true")

        settings = Settings()

        assert settings.database_url == "postgresql+asyncpg://ledger@db/ledger"
        assert settings.database_echo is True

    def test_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        (tmp_path / ".env").write_text("LOG_LEVEL=DEBUG\n")

        assert Settings().log_level == "DEBUG"


class TestErrors:
    """Each ledger error carries its code and HTTP status."""

    def test_status_codes(self):
        assert ValidationError().http_status == 400
        assert NotFoundError().http_status == 404
        assert ConflictError().http_status == 409
        assert StateError().http_status == 409

    def test_all_derive_from_ledger_error(self):
        for error in (ValidationError(), NotFoundError(), ConflictError(), StateError()):
            assert isinstance(error, LedgerError)

    def test_error_response(self):
        body = error_response(ConflictError("Bill for 2024-03 already exists"))
        assert body == {
            "error": {"code": "conflict", "message": "Bill for 2024-03 already exists"}
        }
