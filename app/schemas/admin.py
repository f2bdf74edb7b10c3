from typing import Optional

from pydantic import BaseModel


class DriftItem(BaseModel):
    user_id: int
    cached_points: Optional[int] = None
    actual_points: int


class ReconcileResponse(BaseModel):
    users_checked: int
    rows_created: int
    consistent: bool
    drift: list[DriftItem]
