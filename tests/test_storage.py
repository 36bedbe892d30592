"""
Tests for the in-memory store and the credential store adapter.
"""

import asyncio
from datetime import timedelta

import pytest

from lessonhub.auth.jwt import hash_password
from lessonhub.core.errors import DuplicateEmailError
from lessonhub.core.models import UserInDB, UserRole
from lessonhub.core.utils import utc_now
from lessonhub.storage import DuplicateKeyError, InMemoryMetadataStorage

PASSWORD_HASH = hash_password("secret123")


def _user(email: str, role: UserRole = UserRole.STUDENT) -> UserInDB:
    return UserInDB(
        email=email,
        full_name="Store Test",
        phone="555-0101",
        password_hash=PASSWORD_HASH,
        role=role,
        is_verified=True,
    )


# =============================================================================
# MetadataStorage primitives
# =============================================================================


class TestInMemoryMetadataStorage:
    @pytest.mark.asyncio
    async def test_insert_rejects_duplicate_unique_field(self):
        store = InMemoryMetadataStorage()
        await store.insert("users", "u1", {"email": "a@x.com"}, unique=("email",))

        with pytest.raises(DuplicateKeyError) as exc:
            await store.insert("users", "u2", {"email": "a@x.com"}, unique=("email",))
        assert exc.value.field == "email"

    @pytest.mark.asyncio
    async def test_concurrent_inserts_only_one_wins(self):
        store = InMemoryMetadataStorage()

        results = await asyncio.gather(
            *[
                store.insert("users", f"u{i}", {"email": "same@x.com"}, unique=("email",))
                for i in range(10)
            ],
            return_exceptions=True,
        )

        assert sum(r is None for r in results) == 1
        assert all(isinstance(r, DuplicateKeyError) for r in results if r is not None)
        assert len(await store.query("users")) == 1

    @pytest.mark.asyncio
    async def test_update_if_requires_expected_values(self):
        store = InMemoryMetadataStorage()
        await store.save("users", "u1", {"token": "abc", "n": 1})

        assert await store.update_if("users", "u1", {"token": "zzz"}, {"n": 2}) is False
        assert await store.update_if("users", "u1", {"token": "abc"}, {"n": 3}) is True
        assert (await store.get("users", "u1"))["n"] == 3

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self):
        store = InMemoryMetadataStorage()
        await store.save("users", "u1", {"tags": ["a"]})

        doc = await store.get("users", "u1")
        doc["tags"].append("b")

        assert (await store.get("users", "u1"))["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_query_filters(self):
        store = InMemoryMetadataStorage()
        await store.save("users", "u1", {"role": "teacher"})
        await store.save("users", "u2", {"role": "student"})

        docs = await store.query("users", {"role": "teacher"})
        assert [d["_id"] for d in docs] == ["u1"]


# =============================================================================
# UserStore
# =============================================================================


class TestUserStore:
    @pytest.mark.asyncio
    async def test_create_and_lookup(self, users):
        created = await users.create(_user("ann@x.com"))

        assert (await users.get_by_id(created.id)).email == "ann@x.com"
        assert (await users.get_by_email("ann@x.com")).id == created.id
        assert await users.get_by_email("nobody@x.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, users):
        await users.create(_user("ann@x.com"))
        with pytest.raises(DuplicateEmailError):
            await users.create(_user("ann@x.com"))

    @pytest.mark.asyncio
    async def test_list_by_role(self, users):
        await users.create(_user("t@x.com", UserRole.TEACHER))
        await users.create(_user("s@x.com", UserRole.STUDENT))

        teachers = await users.list(UserRole.TEACHER)
        everyone = await users.list()

        assert [u.email for u in teachers] == ["t@x.com"]
        assert {u.email for u in everyone} == {"t@x.com", "s@x.com"}

    @pytest.mark.asyncio
    async def test_list_reads_every_page(self, users):
        users.page_size = 3
        for i in range(7):
            await users.create(_user(f"s{i}@x.com"))
        await users.create(_user("t@x.com", UserRole.TEACHER))

        students = await users.list(UserRole.STUDENT)

        assert len(students) == 7
        assert len({u.id for u in students}) == 7
        assert len(await users.list()) == 8

    @pytest.mark.asyncio
    async def test_list_is_not_capped(self, users):
        for i in range(1005):
            await users.create(_user(f"s{i}@x.com"))

        assert len(await users.list(UserRole.STUDENT)) == 1005

    @pytest.mark.asyncio
    async def test_update_bumps_updated_at(self, users):
        created = await users.create(_user("ann@x.com"))
        updated = await users.update(created.id, full_name="Ann B")

        assert updated.full_name == "Ann B"
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_update_missing_user(self, users):
        assert await users.update("user_missing", full_name="x") is None

    @pytest.mark.asyncio
    async def test_check_password(self, users):
        created = await users.create(_user("ann@x.com"))
        assert users.check_password(created, "secret123")
        assert not users.check_password(created, "secret124")


class TestResetTokenStorage:
    @pytest.mark.asyncio
    async def test_consume_once(self, users):
        user = await users.create(_user("ann@x.com"))
        await users.set_reset_token(user.id, "tok1", utc_now() + timedelta(minutes=10))

        first = await users.consume_reset_token("tok1", hash_password("newpass1"))
        second = await users.consume_reset_token("tok1", hash_password("newpass2"))

        assert first is not None
        assert first.reset_password_token is None
        assert first.reset_password_expire is None
        assert second is None
        assert users.check_password(await users.get_by_id(user.id), "newpass1")

    @pytest.mark.asyncio
    async def test_expired_not_consumed(self, users):
        user = await users.create(_user("ann@x.com"))
        await users.set_reset_token(user.id, "tok1", utc_now() - timedelta(seconds=1))

        assert await users.consume_reset_token("tok1", hash_password("newpass1")) is None
        assert users.check_password(await users.get_by_id(user.id), "secret123")

    @pytest.mark.asyncio
    async def test_expiry_boundary_is_exclusive(self, users):
        user = await users.create(_user("ann@x.com"))
        expires = utc_now() + timedelta(minutes=10)
        await users.set_reset_token(user.id, "tok1", expires)

        assert await users.consume_reset_token("tok1", hash_password("x" * 8), now=expires) is None

    @pytest.mark.asyncio
    async def test_concurrent_consumers_only_one_wins(self, users):
        user = await users.create(_user("ann@x.com"))
        await users.set_reset_token(user.id, "tok1", utc_now() + timedelta(minutes=10))

        results = await asyncio.gather(
            *[users.consume_reset_token("tok1", hash_password(f"newpass{i}")) for i in range(5)]
        )

        assert sum(r is not None for r in results) == 1

    @pytest.mark.asyncio
    async def test_clear_with_stale_token_keeps_newer(self, users):
        user = await users.create(_user("ann@x.com"))
        expires = utc_now() + timedelta(minutes=10)
        await users.set_reset_token(user.id, "old", expires)
        await users.set_reset_token(user.id, "new", expires)

        assert await users.clear_reset_token(user.id, token="old") is False
        assert (await users.get_by_id(user.id)).reset_password_token == "new"

        assert await users.clear_reset_token(user.id, token="new") is True
        stored = await users.get_by_id(user.id)
        assert stored.reset_password_token is None
        assert stored.reset_password_expire is None
