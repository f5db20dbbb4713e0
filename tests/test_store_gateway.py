"""
MouzaForm Backend — Store Gateway Tests
=========================================

What we test:
    ✅ Inserts return store-assigned, increasing ids
    ✅ Foreign key rejects entries for a missing parent
    ✅ Reads are ordered and filtered by parent
    ✅ Cascade delete leaves no orphans; deletes are idempotent
    ✅ Children-only delete keeps the parent
    ✅ SQLAlchemy errors are translated (read/write/unavailable)
"""

import sqlite3

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from mouzaform.exceptions import StoreReadError, StoreUnavailableError, StoreWriteError
from mouzaform.services.store_gateway import store_gateway


LOCATION = {"division": "Dhaka", "district": "Dhaka", "upazila": "Savar", "union": "Ashulia"}


def entry(name, survey="RS", sheet="1"):
    return {"mouza_name": name, "survey_type": survey, "sheet_number": sheet}


class TestInsert:

    @pytest.mark.asyncio
    async def test_insert_location_assigns_increasing_ids(self, database):
        async with database.transaction() as db:
            first = await store_gateway.insert_location(db, LOCATION)
            second = await store_gateway.insert_location(db, LOCATION)
        assert first >= 1
        assert second > first

    @pytest.mark.asyncio
    async def test_ids_are_not_reused_after_delete(self, database):
        async with database.transaction() as db:
            first = await store_gateway.insert_location(db, LOCATION)
        async with database.transaction() as db:
            await store_gateway.delete_location(db, first)
        async with database.transaction() as db:
            second = await store_gateway.insert_location(db, LOCATION)
        assert second > first

    @pytest.mark.asyncio
    async def test_insert_survey_entry_for_missing_parent_fails(self, database):
        """Foreign keys are enforced: no orphan can be created."""
        with pytest.raises(StoreWriteError) as exc_info:
            async with database.transaction() as db:
                await store_gateway.insert_survey_entry(db, 4242, entry("Ghost"))

        assert exc_info.value.context["original_error"] == "IntegrityError"
        assert exc_info.value.context["form_data_id"] == 4242

    @pytest.mark.asyncio
    async def test_insert_location_flush_failure(self, mock_db_session):
        mock_db_session.flush.side_effect = IntegrityError("INSERT", {}, sqlite3.IntegrityError("boom"))

        with pytest.raises(StoreWriteError, match="form_data"):
            await store_gateway.insert_location(mock_db_session, LOCATION)


class TestRead:

    @pytest.mark.asyncio
    async def test_list_survey_entries_filters_by_parent_in_insert_order(self, database):
        async with database.transaction() as db:
            parent = await store_gateway.insert_location(db, LOCATION)
            other = await store_gateway.insert_location(db, LOCATION)
            await store_gateway.insert_survey_entry(db, parent, entry("A"))
            await store_gateway.insert_survey_entry(db, other, entry("X"))
            await store_gateway.insert_survey_entry(db, parent, entry("B"))

        async with database.transaction() as db:
            rows = await store_gateway.list_survey_entries(db, parent)

        assert [row.mouza_name for row in rows] == ["A", "B"]
        assert all(row.form_data_id == parent for row in rows)

    @pytest.mark.asyncio
    async def test_get_location_unknown_id_returns_none(self, database):
        async with database.transaction() as db:
            assert await store_gateway.get_location(db, 999) is None

    @pytest.mark.asyncio
    async def test_list_locations_ordered_by_id(self, database):
        async with database.transaction() as db:
            ids = [await store_gateway.insert_location(db, LOCATION) for _ in range(3)]
        async with database.transaction() as db:
            rows = await store_gateway.list_locations(db)
        assert [row.id for row in rows] == ids

    @pytest.mark.asyncio
    async def test_read_failure_becomes_store_read_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError(
            "SELECT", {}, sqlite3.OperationalError("database is locked")
        )
        with pytest.raises(StoreReadError):
            await store_gateway.list_locations(mock_db_session)

    @pytest.mark.asyncio
    async def test_connection_failure_becomes_store_unavailable(self, mock_db_session):
        mock_db_session.execute.side_effect = InterfaceError(
            "SELECT", {}, sqlite3.InterfaceError("connection is closed")
        )
        with pytest.raises(StoreUnavailableError):
            await store_gateway.list_survey_entries(mock_db_session, 1)


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_location_removes_children(self, database):
        async with database.transaction() as db:
            parent = await store_gateway.insert_location(db, LOCATION)
            await store_gateway.insert_survey_entry(db, parent, entry("A"))
            await store_gateway.insert_survey_entry(db, parent, entry("B"))

        async with database.transaction() as db:
            removed = await store_gateway.delete_location(db, parent)

        async with database.transaction() as db:
            assert removed == 1
            assert await store_gateway.get_location(db, parent) is None
            assert await store_gateway.list_survey_entries(db, parent) == []

    @pytest.mark.asyncio
    async def test_delete_location_twice_is_a_no_op(self, database):
        async with database.transaction() as db:
            parent = await store_gateway.insert_location(db, LOCATION)

        async with database.transaction() as db:
            assert await store_gateway.delete_location(db, parent) == 1
        async with database.transaction() as db:
            assert await store_gateway.delete_location(db, parent) == 0
            assert await store_gateway.list_locations(db) == []

    @pytest.mark.asyncio
    async def test_store_level_cascade_is_enforced(self, database):
        """A raw parent delete still removes children (ON DELETE CASCADE)."""
        async with database.transaction() as db:
            parent = await store_gateway.insert_location(db, LOCATION)
            await store_gateway.insert_survey_entry(db, parent, entry("A"))

        async with database.transaction() as db:
            await db.execute(text("DELETE FROM form_data WHERE id = :id"), {"id": parent})

        async with database.transaction() as db:
            count = (await db.execute(text("SELECT COUNT(*) FROM mouza_info"))).scalar()
        assert count == 0

    @pytest.mark.asyncio
    async def test_delete_children_only_keeps_parent(self, database):
        async with database.transaction() as db:
            parent = await store_gateway.insert_location(db, LOCATION)
            await store_gateway.insert_survey_entry(db, parent, entry("A"))
            await store_gateway.insert_survey_entry(db, parent, entry("B"))

        async with database.transaction() as db:
            removed = await store_gateway.delete_survey_entries_by_parent(db, parent)

        async with database.transaction() as db:
            assert removed == 2
            assert (await store_gateway.get_location(db, parent)).id == parent
            assert await store_gateway.list_survey_entries(db, parent) == []

    @pytest.mark.asyncio
    async def test_delete_children_of_unknown_parent(self, database):
        async with database.transaction() as db:
            assert await store_gateway.delete_survey_entries_by_parent(db, 777) == 0

    @pytest.mark.asyncio
    async def test_delete_failure_becomes_store_write_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError(
            "DELETE", {}, sqlite3.OperationalError("database is locked")
        )
        with pytest.raises(StoreWriteError, match="mouza_info"):
            await store_gateway.delete_location(mock_db_session, 1)
