from datetime import datetime

from app.election.model.schemas.schemas import ElectionSchema
from app.election.model.enums import PostNameEnum


class CandidateTally(ElectionSchema):
    candidate_id: int
    name: str
    votes: int


class ResultOut(ElectionSchema):
    """
    Schema for an announced result.
    """
    post: PostNameEnum
    winner_id: int
    winner_name: str
    total_votes_per_candidate: list[CandidateTally]
    announced_at: datetime | None = None


class CommitteeSeatOut(ElectionSchema):
    post: PostNameEnum
    candidate_id: int
    name: str
    dept: str
    year: str
    announced_at: datetime | None = None
