"""
MouzaForm Backend — Submission Workflow
=========================================

What:  Inserts one form_data row and its mouza_info rows, then re-reads both
       from the store to build the confirmation payload.
Who:   Called by the POST /submit route handler.

Workflow states:
    parent_insert_pending → parent_inserted → children_insert_pending
        → children_inserted → verifying → complete
    failed is reachable from every non-terminal state.

    ┌──────────┐   ┌────────────┐   ┌──────────────┐   ┌───────────┐
    │ Validate │──▶│ Insert     │──▶│ Insert each  │──▶│ Re-read   │
    │ payload  │   │ form_data  │   │ mouza_info   │   │ both      │
    └──────────┘   └────────────┘   │ (SAVEPOINT)  │   └───────────┘
                                    └──────────────┘

Child failures:
    Each child insert runs in its own SAVEPOINT, so one failure is counted
    and the remaining children are still attempted. If any failed:
    - atomic (default): the transaction is rolled back; nothing persists
    - best-effort: parent and successful children are committed first
    Either way the caller gets PartialWriteError with the failure count.

Why re-read rather than echo the input:
    The response reflects exactly what the store holds, at the cost of two
    extra round-trips.
"""

import logging
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mouzaform.config import settings
from mouzaform.database import translate_store_error
from mouzaform.exceptions import (
    PartialWriteError,
    StoreReadError,
    StoreWriteError,
    ValidationError,
)
from mouzaform.schemas.form_data import SubmissionRequest, SubmissionResponse
from mouzaform.services.form_data_service import build_form_data_record
from mouzaform.services.store_gateway import store_gateway

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    PARENT_INSERT_PENDING = "parent_insert_pending"
    PARENT_INSERTED = "parent_inserted"
    CHILDREN_INSERT_PENDING = "children_insert_pending"
    CHILDREN_INSERTED = "children_inserted"
    VERIFYING = "verifying"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SubmissionState.COMPLETE, SubmissionState.FAILED})


def validate_submission(payload: Union[SubmissionRequest, Mapping[str, Any]]) -> SubmissionRequest:
    """
    Coerce a raw payload into a SubmissionRequest.

    Raises:
        ValidationError: a location field or mouzaData is missing, or an
                         entry lacks one of its three fields
    """
    if isinstance(payload, SubmissionRequest):
        return payload
    try:
        return SubmissionRequest.model_validate(payload)
    except PydanticValidationError as e:
        errors = [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError(
            message="Invalid submission payload",
            context={"errors": errors},
        ) from e


class SubmissionWorkflow:
    """
    One submission run against one session.

    Attributes:
        state:            current SubmissionState
        history:          every state visited, in order
        location_id:      id of the inserted form_data row (once known)
        failed_children:  number of mouza_info inserts that failed
    """

    def __init__(
        self,
        db: AsyncSession,
        payload: Union[SubmissionRequest, Mapping[str, Any]],
        atomic: bool = True,
    ):
        self.db = db
        self.payload = payload
        self.atomic = atomic
        self.state = SubmissionState.PARENT_INSERT_PENDING
        self.history: List[SubmissionState] = [self.state]
        self.location_id: Optional[int] = None
        self.failed_children = 0

    def _transition(self, new_state: SubmissionState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Submission already {self.state.value}; cannot move to {new_state.value}")
        logger.debug("Submission %s → %s", self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)

    async def run(self) -> SubmissionResponse:
        try:
            return await self._run()
        except Exception:
            if self.state not in TERMINAL_STATES:
                self._transition(SubmissionState.FAILED)
            raise

    async def _run(self) -> SubmissionResponse:
        # ── Step 1: Validate (no writes on failure) ───────────────────────
        request = validate_submission(self.payload)

        # ── Step 2: Parent ────────────────────────────────────────────────
        self.location_id = await store_gateway.insert_location(self.db, request.location_fields())
        self._transition(SubmissionState.PARENT_INSERTED)

        # ── Step 3: Children, in input order ──────────────────────────────
        self._transition(SubmissionState.CHILDREN_INSERT_PENDING)
        for position, entry in enumerate(request.mouza_data):
            try:
                async with self.db.begin_nested():
                    await store_gateway.insert_survey_entry(
                        self.db, self.location_id, entry.model_dump()
                    )
            except StoreWriteError as e:
                self.failed_children += 1
                logger.error(
                    "Error inserting mouza data #%d for form_data %s: %s",
                    position, self.location_id, e.message,
                )

        # ── Step 4: Any child failure fails the submission ────────────────
        if self.failed_children:
            await self._finish_partial_failure()

        self._transition(SubmissionState.CHILDREN_INSERTED)

        # ── Step 5: Round-trip verification ───────────────────────────────
        self._transition(SubmissionState.VERIFYING)
        location = await store_gateway.get_location(self.db, self.location_id)
        if location is None:
            raise StoreReadError(
                message="Error fetching form_data",
                context={"form_data_id": self.location_id},
            )
        entries = await store_gateway.list_survey_entries(self.db, self.location_id)

        self._transition(SubmissionState.COMPLETE)
        logger.info(
            "Submission complete: form_data %s with %d mouza entries",
            self.location_id, len(entries),
        )
        return SubmissionResponse(
            message="Data inserted successfully",
            data=build_form_data_record(location, entries),
        )

    async def _finish_partial_failure(self) -> None:
        persisted = not self.atomic
        try:
            if persisted:
                await self.db.commit()
            else:
                await self.db.rollback()
        except SQLAlchemyError as e:
            raise translate_store_error(
                e, StoreWriteError, "Error finalizing submission",
                form_data_id=self.location_id,
            ) from e

        self._transition(SubmissionState.FAILED)
        context = {"form_data_id": self.location_id} if persisted else {}
        raise PartialWriteError(
            failed_count=self.failed_children,
            persisted=persisted,
            context=context,
        )


class SubmissionService:
    """
    Entry point for submissions.

    `atomic=None` follows settings.atomic_submissions at call time.
    """

    def __init__(self, atomic: Optional[bool] = None):
        self._atomic = atomic

    @property
    def atomic(self) -> bool:
        return settings.atomic_submissions if self._atomic is None else self._atomic

    async def submit(
        self,
        db: AsyncSession,
        payload: Union[SubmissionRequest, Mapping[str, Any]],
    ) -> SubmissionResponse:
        workflow = SubmissionWorkflow(db, payload, atomic=self.atomic)
        return await workflow.run()


submission_service = SubmissionService()
