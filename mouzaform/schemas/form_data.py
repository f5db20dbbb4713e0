"""
MouzaForm Backend — Pydantic Request/Response Schemas
=======================================================

What:  The API contract for /submit, /data and the delete endpoints.
Why:   Request bodies are validated (with number → string coercion) before the
       workflow starts; responses are serialized with the exact JSON keys the
       frontend uses (mouzaData, mouzaName, ...).
How:   Python fields are snake_case with camelCase aliases; FastAPI serializes
       responses by alias.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


_ALIASED = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class MouzaEntryIn(BaseModel):
    """One survey-sheet entry in a submission."""
    model_config = _ALIASED

    mouza_name: str = Field(alias="mouzaName", description="Mouza / area name")
    survey_type: str = Field(alias="surveyType", description="Survey type, e.g. RS, CS, SA")
    sheet_number: str = Field(alias="sheetNumber", description="Map sheet number")


class SubmissionRequest(BaseModel):
    """
    Body of POST /submit.

    All four location fields and `mouzaData` must be present; `mouzaData`
    may be an empty list.
    """
    model_config = _ALIASED

    division: str
    district: str
    upazila: str
    union: str
    mouza_data: List[MouzaEntryIn] = Field(alias="mouzaData")

    def location_fields(self) -> dict:
        return {
            "division": self.division,
            "district": self.district,
            "upazila": self.upazila,
            "union": self.union,
        }


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class MouzaInfoRecord(BaseModel):
    """A stored mouza_info row, keyed exactly as the table columns."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    form_data_id: int
    mouza_name: Optional[str] = Field(default=None, alias="mouzaName")
    survey_type: Optional[str] = Field(default=None, alias="surveyType")
    sheet_number: Optional[str] = Field(default=None, alias="sheetNumber")


class FormDataRecord(BaseModel):
    """A stored form_data row merged with its mouza_info rows."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    division: Optional[str] = None
    district: Optional[str] = None
    upazila: Optional[str] = None
    union: Optional[str] = None
    mouza_data: List[MouzaInfoRecord] = Field(default_factory=list, alias="mouzaData")


class SubmissionResponse(BaseModel):
    """Returned by POST /submit after the round-trip re-read."""
    message: str = Field(default="Data inserted successfully")
    data: FormDataRecord


class FormDataListResponse(BaseModel):
    """Returned by GET /data."""
    data: List[FormDataRecord]


class MessageResponse(BaseModel):
    """Returned by the delete endpoints."""
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error body for every failure.

    Example:
        {
            "message": "Error inserting some mouza data",
            "error": {"code": "partial_write_error", "failed_count": 1, "persisted": false},
            "request_id": "a1b2c3d4"
        }
    """
    message: str = Field(description="Human-readable error description")
    error: dict = Field(description="Error code plus context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
