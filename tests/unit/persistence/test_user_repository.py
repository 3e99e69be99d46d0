"""Unit tests for the user repository."""

import uuid

import pytest

from authgate.domain.entities.user import User
from authgate.infrastructure.persistence.repositories import UserRepository


@pytest.mark.asyncio
async def test_update_profile_changes_only_given_fields(db_session):
    repo = UserRepository(db_session)
    user = await repo.create(
        User(
            id=str(uuid.uuid4()),
            email="alice@example.com",
            name="Alice",
            organization="Acme",
            image="https://cdn.example.com/a.png",
        )
    )

    updated = await repo.update_profile(user.id, organization="Initech", image=None)

    assert updated.name == "Alice"
    assert updated.organization == "Initech"
    assert updated.image is None


@pytest.mark.asyncio
async def test_update_profile_unknown_user(db_session):
    repo = UserRepository(db_session)

    assert await repo.update_profile("missing", name="Nobody") is None
