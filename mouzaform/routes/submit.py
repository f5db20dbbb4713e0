"""
MouzaForm Backend — Submit Route Handler
==========================================

What:  POST /submit — store a form with its mouza entries and return what the
       store now holds.
How:   FastAPI validates the JSON body into SubmissionRequest; the
       SubmissionService runs the workflow in one transaction, committed
       before the response is returned.

Error responses (global exception handlers):
    HTTP 400: malformed body (validation_error)
    HTTP 500: store_write_error, partial_write_error, store_read_error,
              store_unavailable
"""

import logging

from fastapi import APIRouter, Depends

from mouzaform.database import Database, get_database
from mouzaform.schemas.form_data import ErrorResponse, SubmissionRequest, SubmissionResponse
from mouzaform.services.submission_service import submission_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Submit"])


@router.post(
    "/submit",
    response_model=SubmissionResponse,
    responses={
        200: {"description": "Form stored", "model": SubmissionResponse},
        400: {"description": "Malformed submission", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Submit a location form with its mouza entries",
)
async def submit_form(
    payload: SubmissionRequest,
    database: Database = Depends(get_database),
) -> SubmissionResponse:
    logger.info(
        "Received submission: %s/%s/%s/%s with %d mouza entries",
        payload.division, payload.district, payload.upazila, payload.union,
        len(payload.mouza_data),
    )
    async with database.transaction() as db:
        result = await submission_service.submit(db, payload)
    return result
