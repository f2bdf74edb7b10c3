from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ActivityTypeForm(BaseModel):
    key: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=200)
    default_points: int = Field(default=0, ge=0)
    description: Optional[str] = None


class ActivityTypeResponse(ActivityTypeForm):
    model_config = ConfigDict(from_attributes=True)

    id: int
