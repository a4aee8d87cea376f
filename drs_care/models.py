"""Pydantic models for API request/response validation."""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class BookingRequest(BaseModel):
    """Request body for POST /booking. Unknown fields are kept and stored."""
    treatment: str = Field(..., min_length=1, description="Service name being booked")
    date: str = Field(..., min_length=1, description="Calendar date label", examples=["Dec 17, 2022"])
    slot: str = Field(..., min_length=1, description="Slot label", examples=["10:00 AM - 10:30 AM"])
    patient_email: Optional[str] = Field(None, alias="patientEmail")
    patient_name: Optional[str] = Field(None, alias="patientName")

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        json_schema_extra={
            "example": {
                "treatment": "Teeth Cleaning",
                "date": "Dec 17, 2022",
                "slot": "10:00 AM - 10:30 AM",
                "patientEmail": "patient@example.com",
                "patientName": "Jane Doe"
            }
        }
    )

    def extra_fields(self) -> Dict[str, Any]:
        """Fields sent by the client beyond the known booking attributes."""
        return {k: v for k, v in (self.model_extra or {}).items() if k != "_id"}


class DoctorRequest(BaseModel):
    """Request body for POST /doctor. Profile fields are free-form."""
    email: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="allow")

    def profile(self) -> Dict[str, Any]:
        return {k: v for k, v in (self.model_extra or {}).items() if k not in ("_id", "email")}


class InsertResult(BaseModel):
    acknowledged: bool = True
    inserted_id: Any = Field(..., alias="insertedId")

    model_config = ConfigDict(populate_by_name=True)


class UpdateResult(BaseModel):
    acknowledged: bool = True
    matched_count: int = Field(0, alias="matchedCount")
    modified_count: int = Field(0, alias="modifiedCount")
    upserted_id: Any = Field(None, alias="upsertedId")

    model_config = ConfigDict(populate_by_name=True)


class DeleteResult(BaseModel):
    acknowledged: bool = True
    deleted_count: int = Field(0, alias="deletedCount")

    model_config = ConfigDict(populate_by_name=True)


class ServiceName(BaseModel):
    name: str


class AvailableService(BaseModel):
    """Service with only its still-free slots for the queried date."""
    name: str
    slots: List[str] = Field(default_factory=list)


class BookingResponse(BaseModel):
    """Outcome of POST /booking.

    success=True carries the insert result; success=False carries the
    existing booking that blocked the new one.
    """
    success: bool
    result: Optional[InsertResult] = None
    booking: Optional[Dict[str, Any]] = None


class UserUpsertResponse(BaseModel):
    result: UpdateResult
    token: str


class RoleUpdateResponse(BaseModel):
    result: UpdateResult


class AdminStatus(BaseModel):
    admin: bool


class MessageResponse(BaseModel):
    """Error response schema."""
    message: str = Field(..., description="Error message")
    detail: Optional[Any] = Field(None, description="Detailed error information")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"message": "forbidden access"}
        }
    )
