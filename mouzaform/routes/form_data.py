"""
MouzaForm Backend — Form Data Route Handlers
==============================================

What:  GET /data, DELETE /data/{id}, DELETE /delete-mouza-info/{form_data_id}.
Why:   Listing and clean-up for stored forms.
How:   Thin handlers; FormDataService does the work inside one transaction
       that is committed before the handler returns. Path ids must be
       integers within SQLite's signed 64-bit INTEGER range (otherwise 400).

Both deletes are idempotent: an unknown id still answers 200.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path

from mouzaform.database import Database, get_database
from mouzaform.schemas.form_data import ErrorResponse, FormDataListResponse, MessageResponse
from mouzaform.services.form_data_service import form_data_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Form Data"])

_ERRORS = {
    400: {"description": "Malformed id", "model": ErrorResponse},
    500: {"description": "Store failure", "model": ErrorResponse},
}

# Larger values cannot be bound as an SQLite INTEGER
StoreId = Annotated[int, Path(ge=-(2**63), le=2**63 - 1)]


@router.get(
    "/data",
    response_model=FormDataListResponse,
    responses={500: _ERRORS[500]},
    summary="List every form with its mouza entries",
)
async def list_form_data(database: Database = Depends(get_database)) -> FormDataListResponse:
    async with database.transaction() as db:
        result = await form_data_service.list_all(db)
    return result


@router.delete(
    "/data/{id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete a form and its mouza entries",
)
async def delete_form_data(
    id: StoreId,
    database: Database = Depends(get_database),
) -> MessageResponse:
    async with database.transaction() as db:
        result = await form_data_service.delete_location_cascade(db, id)
    return result


@router.delete(
    "/delete-mouza-info/{form_data_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete only the mouza entries of a form",
)
async def delete_mouza_info(
    form_data_id: StoreId,
    database: Database = Depends(get_database),
) -> MessageResponse:
    async with database.transaction() as db:
        result = await form_data_service.delete_children_only(db, form_data_id)
    return result
