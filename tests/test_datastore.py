import asyncio
from contextlib import asynccontextmanager

import pytest

from petstore.errors import ConstraintError, QueryError
from petstore.schemas import PetFilter
from petstore.sql.datastore import DataStore, merge_update_parameters
from petstore.sql.filters import compile_pet_filter


class TestMergeUpdateParameters:
    """SET / WHERE parameter collision handling"""

    def test_colliding_where_key_is_renamed(self):
        where, merged = merge_update_parameters(
            {"status": "active"},
            {"status": "active"},
            "status = :status AND id = :id",
            {"status": "pending", "id": "7"},
        )

        assert where == "status = :status_where AND id = :id"
        assert merged == {"status": "active", "status_where": "pending", "id": "7"}

    def test_no_collision_leaves_where_untouched(self):
        where, merged = merge_update_parameters(
            {"likes": 11}, {"likes": 11}, "id = :id", {"id": "pet-1"}
        )

        assert where == "id = :id"
        assert merged == {"likes": 11, "id": "pet-1"}

    def test_only_whole_placeholders_are_rewritten(self):
        where, merged = merge_update_parameters(
            {"id": "new"},
            {"id": "new"},
            "id = :id AND ref = :id_ref AND kind = 'x::id'",
            {"id": "old", "id_ref": "r"},
        )

        assert where == "id = :id_where AND ref = :id_ref AND kind = 'x::id'"
        assert merged == {"id": "new", "id_where": "old", "id_ref": "r"}

    def test_renamed_key_does_not_clash_with_existing_where_key(self):
        where, merged = merge_update_parameters(
            {"status": "a"},
            {"status": "a"},
            "status = :status OR status = :status_where",
            {"status": "b", "status_where": "c"},
        )

        assert where == "status = :status_where_where OR status = :status_where"
        assert merged == {"status": "a", "status_where_where": "b", "status_where": "c"}

    def test_every_placeholder_has_one_value(self):
        set_values = {"a": 1, "b": 2}
        where, merged = merge_update_parameters(
            set_values, set_values, "a = :a AND b = :b AND c = :c", {"a": 10, "b": 20, "c": 30}
        )

        assert merged == {"a": 1, "b": 2, "a_where": 10, "b_where": 20, "c": 30}
        for key in merged:
            if key in set_values:
                continue
            assert f":{key}" in where


class TestDataStoreReads:
    async def test_insert_then_select_by_compiled_filter(self, store):
        values = {
            "id": "pet-9",
            "name": "Momo",
            "breed": "Corgi",
            "gender": "Female",
            "price": 800.0,
            "reference_number": "REF009",
        }
        await store.insert("pets", values, skip_identity=False)

        compiled = compile_pet_filter(PetFilter(gender="female", name="Momo", breed="Corgi"))
        rows = await store.select_where("pets", compiled.where_clause, compiled.params)

        assert len(rows) == 1
        assert {column: rows[0][column] for column in values} == values

    async def test_select_where_without_predicate_returns_everything(self, store):
        await store.insert("notifications", {"title": "a"})
        await store.insert("notifications", {"title": "b"})

        rows = await store.select_where("notifications")

        assert sorted(row["title"] for row in rows) == ["a", "b"]

    async def test_select_all_orders_rows(self, store):
        for title in ("first", "second", "third"):
            await store.insert("notifications", {"title": title})

        rows = await store.select_all("notifications", "id desc")

        assert [row["title"] for row in rows] == ["third", "second", "first"]

    async def test_count(self, store):
        await store.insert("notifications", {"title": "a", "unread": True})
        await store.insert("notifications", {"title": "b", "unread": False})

        assert await store.count("notifications") == 2
        assert await store.count("notifications", "unread = :unread", {"unread": True}) == 1

    async def test_missing_bound_parameter_raises_query_error(self, store):
        with pytest.raises(QueryError) as exc_info:
            await store.select_where("pets", "name = :name", {})

        assert exc_info.value.code == "10001E"
        assert exc_info.value.original_error is not None

    async def test_malformed_order_raises_query_error(self, store):
        with pytest.raises(QueryError):
            await store.select_all("pets", "name descc nonsense")


class TestDataStoreWrites:
    async def test_insert_skips_identity(self, store):
        await store.insert("notifications", {"id": 999, "title": "a"})

        rows = await store.select_where("notifications")

        assert rows[0]["id"] != 999

    async def test_duplicate_insert_raises_constraint_error(self, store):
        await store.insert("favorites", {"pet_id": "pet-1", "user_id": "u1"})

        with pytest.raises(ConstraintError) as exc_info:
            await store.insert("favorites", {"pet_id": "pet-1", "user_id": "u1"})

        assert exc_info.value.status_code == 409
        assert exc_info.value.is_public

    async def test_update_with_same_column_in_set_and_where(self, store):
        await store.insert("notifications", {"title": "a", "unread": True})
        await store.insert("notifications", {"title": "b", "unread": True})
        await store.insert("notifications", {"title": "c", "unread": False})

        updated = await store.update(
            "notifications", {"unread": False}, "unread = :unread", {"unread": True}
        )

        assert updated == 2
        assert await store.count("notifications", "unread = :unread", {"unread": True}) == 0

    async def test_update_matching_nothing_is_not_an_error(self, store):
        updated = await store.update("notifications", {"title": "x"}, "id = :id", {"id": 42})

        assert updated == 0

    async def test_update_without_values_raises(self, store):
        with pytest.raises(QueryError):
            await store.update("notifications", {"title": None}, "id = :id", {"id": 1})

    async def test_update_without_where_raises(self, store):
        with pytest.raises(QueryError):
            await store.update("notifications", {"title": "x"}, "")

    async def test_delete_matches_every_value(self, store):
        await store.insert("favorites", {"pet_id": "pet-1", "user_id": "u1"})
        await store.insert("favorites", {"pet_id": "pet-2", "user_id": "u1"})
        await store.insert("favorites", {"pet_id": "pet-1", "user_id": "u2"})

        deleted = await store.delete("favorites", {"pet_id": "pet-1", "user_id": "u1"})

        assert deleted == 1
        remaining = await store.select_where("favorites")
        assert {(row["pet_id"], row["user_id"]) for row in remaining} == {
            ("pet-2", "u1"),
            ("pet-1", "u2"),
        }

    async def test_delete_without_match_values_raises(self, store):
        with pytest.raises(QueryError):
            await store.delete("favorites", {"pet_id": None})


class TestTransaction:
    async def test_commits_on_success(self, store):
        async with store.transaction() as tx:
            await tx.insert("notifications", {"title": "a"})
            await tx.insert("notifications", {"title": "b"})

        assert await store.count("notifications") == 2

    async def test_rolls_back_on_error(self, store):
        with pytest.raises(RuntimeError):
            async with store.transaction() as tx:
                await tx.insert("notifications", {"title": "a"})
                raise RuntimeError("boom")

        assert await store.count("notifications") == 0

    async def test_nested_transaction_reuses_connection(self, store):
        async with store.transaction() as tx:
            async with tx.transaction() as inner:
                assert inner is tx


class SlowConnectStore(DataStore):
    """Waits before the statement is sent."""

    @asynccontextmanager
    async def _connection(self):
        await asyncio.sleep(1)
        async with super()._connection() as conn:
            yield conn


class SlowCommitStore(DataStore):
    """Sends the statement, then stalls before the commit."""

    @asynccontextmanager
    async def _connection(self):
        async with super()._connection() as conn:
            yield conn
            await asyncio.sleep(1)


class TestStatementTimeout:
    async def test_slow_call_raises_query_error(self, engine):
        store = SlowConnectStore(engine, statement_timeout=0.05)

        with pytest.raises(QueryError) as exc_info:
            await store.select_where("pets")

        assert exc_info.value.detail == "statement timed out"
        assert exc_info.value.code == "10001E"

    async def test_timed_out_insert_leaves_no_row(self, engine, store):
        slow = SlowCommitStore(engine, statement_timeout=0.05)

        with pytest.raises(QueryError) as exc_info:
            await slow.insert("notifications", {"title": "late"})

        assert exc_info.value.detail == "statement timed out"
        assert await store.count("notifications") == 0

    async def test_fast_call_within_timeout(self, engine):
        store = DataStore(engine, statement_timeout=5)

        await store.insert("notifications", {"title": "on time"})

        assert await store.count("notifications") == 1
