from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from myebb.app.schemas.auth import UserProfile
from myebb.app.services.credentials import TOKEN_KEY, USER_KEY, CredentialStorage
from myebb.app.services.session import SessionStore


class _BrokenStorage:
    async def get(self, key: str) -> str | None:
        raise OperationalError("SELECT value FROM credentials", {}, Exception("disk I/O error"))


@pytest.mark.anyio
async def test_login_persists_and_notifies(temp_session_factory, user: UserProfile) -> None:
    storage = CredentialStorage(temp_session_factory)
    store = await SessionStore.open(storage)
    seen: list[bool] = []
    store.subscribe(seen.append)

    assert store.is_authenticated is False
    assert store.current_credential() is None

    await store.login("t1", user)

    assert store.is_authenticated is True
    assert store.current_credential() == "t1"
    assert store.current_user == user
    assert seen == [True]
    assert await storage.get(TOKEN_KEY) == "t1"
    assert UserProfile.model_validate_json(await storage.get(USER_KEY)) == user


@pytest.mark.anyio
async def test_update_user_keeps_token(temp_session_factory, user: UserProfile) -> None:
    storage = CredentialStorage(temp_session_factory)
    store = await SessionStore.open(storage)
    await store.login("t1", user)
    seen: list[bool] = []
    store.subscribe(seen.append)

    renamed = user.model_copy(update={"name": "Nari B.", "avatar_url": "https://cdn.example/a.png"})
    await store.update_user(renamed)
    await store.update_user(renamed)

    assert store.current_user == renamed
    assert store.is_authenticated is True
    assert await storage.get(TOKEN_KEY) == "t1"
    assert seen == []


@pytest.mark.anyio
async def test_update_user_survives_restart(temp_session_factory, user: UserProfile) -> None:
    storage = CredentialStorage(temp_session_factory)
    store = await SessionStore.open(storage)
    await store.login("t1", user)
    updated = user.model_copy(update={"provider": None, "provider_id": None, "name": None})
    await store.update_user(updated)

    reloaded = await SessionStore.open(CredentialStorage(temp_session_factory))

    assert reloaded.is_authenticated is True
    assert reloaded.current_user == updated
    assert reloaded.current_credential() == "t1"


@pytest.mark.anyio
async def test_logout_is_idempotent(temp_session_factory, user: UserProfile) -> None:
    storage = CredentialStorage(temp_session_factory)
    store = await SessionStore.open(storage)
    await store.login("t1", user)
    seen: list[bool] = []
    store.subscribe(seen.append)

    await store.logout()
    first = store.session
    await store.logout()

    assert store.session == first
    assert store.is_authenticated is False
    assert store.current_user is None
    assert seen == [False]
    assert await storage.get(TOKEN_KEY) is None
    assert await storage.get(USER_KEY) is None


@pytest.mark.anyio
async def test_restore_with_corrupt_user_fails_closed(temp_session_factory) -> None:
    storage = CredentialStorage(temp_session_factory)
    await storage.set_many({TOKEN_KEY: "t1", USER_KEY: "{not json"})

    store = await SessionStore.open(storage)

    assert store.is_authenticated is False
    assert store.current_credential() is None
    assert store.current_user is None


@pytest.mark.anyio
async def test_restore_with_token_only_fails_closed(temp_session_factory) -> None:
    storage = CredentialStorage(temp_session_factory)
    await storage.set(TOKEN_KEY, "t1")

    store = await SessionStore.open(storage)

    assert store.is_authenticated is False


@pytest.mark.anyio
async def test_restore_with_empty_token_fails_closed(temp_session_factory, user) -> None:
    storage = CredentialStorage(temp_session_factory)
    await storage.set_many({TOKEN_KEY: "", USER_KEY: user.model_dump_json()})

    store = await SessionStore.open(storage)

    assert store.is_authenticated is False


@pytest.mark.anyio
async def test_restore_swallows_storage_failure() -> None:
    store = await SessionStore.open(_BrokenStorage())  # type: ignore[arg-type]

    assert store.is_authenticated is False
    assert store.current_credential() is None


@pytest.mark.anyio
async def test_failing_observer_does_not_block_others(temp_session_factory, user) -> None:
    store = await SessionStore.open(CredentialStorage(temp_session_factory))
    seen: list[bool] = []

    def _explode(authenticated: bool) -> None:
        raise RuntimeError("observer bug")

    store.subscribe(_explode)
    store.subscribe(seen.append)
    await store.login("t1", user)

    assert seen == [True]
    assert store.is_authenticated is True


@pytest.mark.anyio
async def test_unsubscribe_stops_notifications(temp_session_factory, user) -> None:
    store = await SessionStore.open(CredentialStorage(temp_session_factory))
    seen: list[bool] = []
    unsubscribe = store.subscribe(seen.append)

    await store.login("t1", user)
    unsubscribe()
    unsubscribe()
    await store.logout()

    assert seen == [True]


@pytest.mark.anyio
async def test_update_user_while_logged_out_stays_logged_out(temp_session_factory, user) -> None:
    storage = CredentialStorage(temp_session_factory)
    store = await SessionStore.open(storage)
    seen: list[bool] = []
    store.subscribe(seen.append)

    await store.update_user(user)

    assert store.is_authenticated is False
    assert seen == []
    reloaded = await SessionStore.open(storage)
    assert reloaded.is_authenticated is False


@pytest.mark.anyio
async def test_second_login_replaces_session(temp_session_factory, user) -> None:
    storage = CredentialStorage(temp_session_factory)
    store = await SessionStore.open(storage)
    other = user.model_copy(update={"id": 8, "email": "other@example.com"})

    await store.login("t1", user)
    await store.login("t2", other)

    assert store.current_credential() == "t2"
    assert store.current_user == other
    reloaded = await SessionStore.open(storage)
    assert reloaded.current_user == other
