"""Pydantic models for API request payloads."""

from pydantic import BaseModel, Field


class RecordHoursRequest(BaseModel):
    """Payload for logging study hours on a date."""

    date: str = Field(description="Calendar date as YYYY-MM-DD")
    category: str
    hours: float


class RecordHoursResponse(BaseModel):
    """Identifier of the entry the hours were recorded on."""

    entry_id: str


class DeleteHourResponse(BaseModel):
    """Outcome of an hour deletion."""

    deleted: bool
