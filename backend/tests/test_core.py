"""
Tests per configurazione, verifica dei token e commit della richiesta.
"""

import datetime
import uuid

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import Settings
from app.core.database import commit
from app.core.exceptions import ConflictError, PersistenceError
from app.core.security import create_access_token, decode_token


class TestSettings:

    def test_defaults(self):
        settings = Settings()

        assert settings.retention_days == 30
        assert settings.status_cycle_mode == "three_state"
        assert settings.analytics_week_start == 6
        assert str(settings.tzinfo) == "America/Sao_Paulo"

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            Settings(analytics_timezone="Mars/Olympus")

    def test_production_rejects_defaults(self):
        """Test in produzione la chiave di default non è ammessa."""
        with pytest.raises(ValidationError):
            Settings(app_env="production")

    def test_production_with_safe_values(self):
        settings = Settings(
            app_env="production",
            secret_key="x" * 40,
            database_url="postgresql+asyncpg://budget:s3cret@db:5432/budget_db",
            cors_origins=["https://orcamentos.example.com"],
        )

        assert settings.is_production


class TestTokens:

    def test_roundtrip_subject(self):
        user_id = uuid.uuid4()

        payload = decode_token(create_access_token(str(user_id)))

        assert payload.sub == str(user_id)
        assert payload.type == "access"

    def test_expired_token(self):
        token = create_access_token(str(uuid.uuid4()), expires_delta=datetime.timedelta(seconds=-10))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401

    def test_tampered_token(self):
        token = create_access_token(str(uuid.uuid4()))

        with pytest.raises(HTTPException):
            decode_token(token[:-2] + "xx")


class TestCommit:
    """Tests per il commit di fine richiesta con sessione mock."""

    async def test_commit_success(self, mock_db):
        await commit(mock_db)

        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_awaited()

    async def test_storage_failure_becomes_persistence_error(self, mock_db):
        mock_db.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))

        with pytest.raises(PersistenceError):
            await commit(mock_db)

        mock_db.rollback.assert_awaited_once()

    async def test_stale_data_becomes_conflict(self, mock_db):
        mock_db.commit.side_effect = StaleDataError("version mismatch")

        with pytest.raises(ConflictError):
            await commit(mock_db)

        mock_db.rollback.assert_awaited_once()
