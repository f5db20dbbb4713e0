"""
MouzaForm Backend — Store Gateway
===================================

What:  Every statement the service issues against form_data / mouza_info.
Why:   One place owns the SQL; services and routes never build statements.
How:   Stateless methods that take the request's AsyncSession first. All
       statements are SQLAlchemy constructs (bound parameters only).
       SQLAlchemy errors are translated into the application hierarchy:
       reads → StoreReadError, writes → StoreWriteError, connection
       problems → StoreUnavailableError.
"""

import logging
from typing import List, Mapping, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mouzaform.database import translate_store_error
from mouzaform.exceptions import StoreReadError, StoreWriteError
from mouzaform.models.form_data import FormData, MouzaInfo

logger = logging.getLogger(__name__)


class StoreGateway:
    """Parameterized CRUD for location records and their survey entries."""

    # ── Inserts ───────────────────────────────────────────────────────────

    async def insert_location(self, db: AsyncSession, fields: Mapping[str, Optional[str]]) -> int:
        """Insert a form_data row and return its store-assigned id."""
        location = FormData(
            division=fields.get("division"),
            district=fields.get("district"),
            upazila=fields.get("upazila"),
            union=fields.get("union"),
        )
        try:
            db.add(location)
            await db.flush()  # Assigns the id without committing
        except SQLAlchemyError as e:
            logger.error("Error inserting form_data: %s", e)
            raise translate_store_error(
                e, StoreWriteError, "Error inserting data into form_data"
            ) from e
        logger.info("Inserted form_data with ID: %s", location.id)
        return location.id

    async def insert_survey_entry(
        self,
        db: AsyncSession,
        parent_id: int,
        fields: Mapping[str, Optional[str]],
    ) -> int:
        """
        Insert a mouza_info row under `parent_id` and return its id.

        A missing parent is rejected by the foreign key and surfaces as
        StoreWriteError.
        """
        entry = MouzaInfo(
            form_data_id=parent_id,
            mouza_name=fields.get("mouza_name"),
            survey_type=fields.get("survey_type"),
            sheet_number=fields.get("sheet_number"),
        )
        try:
            db.add(entry)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error inserting mouza data: %s", e)
            raise translate_store_error(
                e, StoreWriteError, "Error inserting mouza data", form_data_id=parent_id
            ) from e
        return entry.id

    # ── Reads ─────────────────────────────────────────────────────────────
    # populate_existing: rows are re-loaded from the store even when the
    # session already holds them (read-after-write verification).

    async def list_locations(self, db: AsyncSession) -> List[FormData]:
        try:
            result = await db.execute(
                select(FormData)
                .order_by(FormData.id)
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching form data: %s", e)
            raise translate_store_error(e, StoreReadError, "Error fetching form data") from e

    async def get_location(self, db: AsyncSession, location_id: int) -> Optional[FormData]:
        try:
            result = await db.execute(
                select(FormData)
                .where(FormData.id == location_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Error fetching form_data %s: %s", location_id, e)
            raise translate_store_error(
                e, StoreReadError, "Error fetching form_data", form_data_id=location_id
            ) from e

    async def list_survey_entries(self, db: AsyncSession, parent_id: int) -> List[MouzaInfo]:
        try:
            result = await db.execute(
                select(MouzaInfo)
                .where(MouzaInfo.form_data_id == parent_id)
                .order_by(MouzaInfo.id)
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching mouza_info for %s: %s", parent_id, e)
            raise translate_store_error(
                e, StoreReadError, "Error fetching mouza_info", form_data_id=parent_id
            ) from e

    # ── Deletes ───────────────────────────────────────────────────────────

    async def delete_survey_entries_by_parent(self, db: AsyncSession, parent_id: int) -> int:
        """Delete every mouza_info row of `parent_id`; returns rows removed."""
        try:
            result = await db.execute(
                delete(MouzaInfo)
                .where(MouzaInfo.form_data_id == parent_id)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Error deleting mouza_info for %s: %s", parent_id, e)
            raise translate_store_error(
                e, StoreWriteError, "Error deleting mouza_info", form_data_id=parent_id
            ) from e
        return result.rowcount or 0

    async def delete_location(self, db: AsyncSession, location_id: int) -> int:
        """
        Delete a form_data row and its mouza_info rows.

        Children go first in the same transaction, so no orphan survives
        even on a store without cascade enforcement. Returns parent rows
        removed (0 for an unknown id).
        """
        await self.delete_survey_entries_by_parent(db, location_id)
        try:
            result = await db.execute(
                delete(FormData)
                .where(FormData.id == location_id)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Error deleting form_data %s: %s", location_id, e)
            raise translate_store_error(
                e, StoreWriteError, "Error deleting form_data", form_data_id=location_id
            ) from e
        return result.rowcount or 0


# Stateless; shared by every service
store_gateway = StoreGateway()
