from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SubmissionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    claimed_points: Optional[int] = Field(default=None, ge=0)
    file_ref: str = Field(min_length=1, max_length=1000)
    activity_type_id: Optional[int] = None
    description: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _points_or_activity_type(self):
        if self.claimed_points is None and self.activity_type_id is None:
            raise ValueError("claimed_points is required when no activity_type_id is given")
        return self


class DecisionForm(BaseModel):
    decision: Literal["verified", "rejected"]
    awarded_points: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    activity_type_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    claimed_points: int
    file_ref: str
    status: str
    verified_points: Optional[int] = None
    submitted_at: datetime
    verified_by_id: Optional[int] = None
    verified_at: Optional[datetime] = None
    faculty_notes: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="extra")
    revision: int


class VerificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    submission_id: int
    faculty_id: Optional[int] = None
    decision: str
    awarded_points: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime


class DownloadResponse(BaseModel):
    url: str
    expires_at: datetime
