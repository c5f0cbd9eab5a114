"""
Tests per ProfileService.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import PersistenceError
from app.schemas.profile import ProfileUpdate
from app.services.profile_service import ProfileService


@pytest.fixture
def service() -> ProfileService:
    return ProfileService()


class TestProfileService:

    async def test_get_or_create_creates_empty_profile(self, service, db_session, owner_id):
        """Test al primo accesso il profilo viene creato vuoto."""
        profile = await service.get_or_create(db_session, owner_id)

        assert profile.owner_id == owner_id
        assert profile.full_name is None
        assert profile.logo_url is None

    async def test_get_or_create_is_idempotent(self, service, db_session, owner_id):
        first = await service.get_or_create(db_session, owner_id)
        second = await service.get_or_create(db_session, owner_id)

        assert first.id == second.id

    async def test_update_sets_only_provided_fields(self, service, db_session, owner_id):
        await service.update(db_session, owner_id, ProfileUpdate(full_name="Souza Reformas", phone="11912345678"))

        profile = await service.update(db_session, owner_id, ProfileUpdate(email="contato@souza.com.br"))

        assert profile.full_name == "Souza Reformas"
        assert profile.phone == "11912345678"
        assert profile.email == "contato@souza.com.br"

    async def test_update_logo_url(self, service, db_session, owner_id):
        profile = await service.update(
            db_session, owner_id, ProfileUpdate(logo_url="https://cdn.example.com/logos/souza.png")
        )

        assert profile.logo_url == "https://cdn.example.com/logos/souza.png"

    async def test_storage_failure_rolls_back(self, service, mock_db, owner_id):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = result
        mock_db.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(PersistenceError):
            await service.get_or_create(mock_db, owner_id)

        mock_db.rollback.assert_awaited_once()

    def test_invalid_email_is_rejected(self):
        with pytest.raises(ValueError):
            ProfileUpdate(email="non-una-email")
