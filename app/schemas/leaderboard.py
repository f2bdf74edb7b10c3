from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    name: str
    points: int


class FacultyLeaderboardEntry(LeaderboardEntry):
    user_id: int
    submissions_url: str
