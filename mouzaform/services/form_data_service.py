"""
MouzaForm Backend — Form Data Query/Delete Service
====================================================

What:  list-all-with-children, delete-with-children, delete-children-only.
Who:   Called by the /data and /delete-mouza-info route handlers.
How:   Each call runs inside the request's single transaction, so a listing
       sees one consistent snapshot and a cascade delete is all-or-nothing.
"""

import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from mouzaform.models.form_data import FormData, MouzaInfo
from mouzaform.schemas.form_data import (
    FormDataListResponse,
    FormDataRecord,
    MessageResponse,
    MouzaInfoRecord,
)
from mouzaform.services.store_gateway import store_gateway

logger = logging.getLogger(__name__)


def build_form_data_record(location: FormData, entries: Sequence[MouzaInfo]) -> FormDataRecord:
    """Merge a form_data row with its mouza_info rows into the API shape."""
    return FormDataRecord(
        id=location.id,
        division=location.division,
        district=location.district,
        upazila=location.upazila,
        union=location.union,
        mouza_data=[
            MouzaInfoRecord(
                id=entry.id,
                form_data_id=entry.form_data_id,
                mouza_name=entry.mouza_name,
                survey_type=entry.survey_type,
                sheet_number=entry.sheet_number,
            )
            for entry in entries
        ],
    )


class FormDataService:
    """Read and delete operations over location records."""

    async def list_all(self, db: AsyncSession) -> FormDataListResponse:
        """
        Every location record with its entries.

        Child reads are awaited one after another on the request session;
        the first failure aborts the listing (no partial results).
        """
        locations = await store_gateway.list_locations(db)
        records = []
        for location in locations:
            entries = await store_gateway.list_survey_entries(db, location.id)
            records.append(build_form_data_record(location, entries))
        return FormDataListResponse(data=records)

    async def delete_location_cascade(self, db: AsyncSession, location_id: int) -> MessageResponse:
        """Delete a location and its entries. Unknown ids succeed as no-ops."""
        removed = await store_gateway.delete_location(db, location_id)
        if not removed:
            logger.info("form_data %s did not exist; nothing deleted", location_id)
        return MessageResponse(
            message=f"Data with ID {location_id} and associated mouza info deleted successfully"
        )

    async def delete_children_only(self, db: AsyncSession, parent_id: int) -> MessageResponse:
        """Delete a location's entries and keep the location itself."""
        removed = await store_gateway.delete_survey_entries_by_parent(db, parent_id)
        logger.info("Deleted %d mouza_info rows for form_data %s", removed, parent_id)
        return MessageResponse(
            message=f"All mouza_info data with form_data_id {parent_id} deleted successfully"
        )


form_data_service = FormDataService()
