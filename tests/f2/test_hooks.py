"""Tests for the account provisioning hook (F2)."""

import pytest

from studytrack.backend.base import USER_SETTINGS_TABLE, USERS_TABLE, BackendError
from studytrack.backend.hooks import default_settings_row, profile_row, provision_user
from studytrack.backend.memory import MemoryBackend


class TestRows:
    def test_profile_name_from_metadata(self):
        row = profile_row({"id": "u1", "email": "a@b.co", "raw_user_meta_data": {"name": "Ana"}})
        assert row == {"id": "u1", "email": "a@b.co", "name": "Ana"}

    def test_profile_name_default(self):
        """Missing metadata falls back to 'User'."""
        assert profile_row({"id": "u1", "email": "a@b.co"})["name"] == "User"

    def test_default_settings(self):
        row = default_settings_row("u1")
        assert row["user_id"] == "u1"
        assert row["focus_time"] == 25
        assert row["short_break"] == 5
        assert row["long_break"] == 15
        assert row["notification_sound"] == "bell"


class TestProvisionUser:
    """Tests for provision_user."""

    @pytest.mark.asyncio
    async def test_creates_profile_and_settings(self):
        backend = MemoryBackend()
        result = await provision_user(backend, {"id": "u1", "email": "a@b.co"})

        assert result == {"message": "User profile and settings created successfully"}
        assert len(await backend.select(USERS_TABLE, {"id": "u1"})) == 1
        assert len(await backend.select(USER_SETTINGS_TABLE, {"user_id": "u1"})) == 1

    @pytest.mark.asyncio
    async def test_missing_id(self):
        with pytest.raises(BackendError, match="Missing user id"):
            await provision_user(MemoryBackend(), {"email": "a@b.co"})

    @pytest.mark.asyncio
    async def test_duplicate_profile_propagates(self):
        backend = MemoryBackend()
        await provision_user(backend, {"id": "u1", "email": "a@b.co"})
        with pytest.raises(BackendError, match="duplicate key"):
            await provision_user(backend, {"id": "u1", "email": "a@b.co"})
