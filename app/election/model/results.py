from sqlalchemy import Column, Integer, String, DateTime, JSON
from app.database import Base
from app.database.custom_fields import post_name_field
from app.election import utils


class Result(Base):
    __tablename__ = "election_result"

    id = Column(Integer, primary_key=True, index=True)
    post = Column(post_name_field(), nullable=False, unique=True)
    winner_id = Column(Integer, nullable=False)
    winner_name = Column(String(200), nullable=False)

    # [{"candidateId": ..., "name": ..., "votes": ...}] in ranking order
    total_votes_per_candidate = Column(JSON, nullable=False)
    announced_at = Column(DateTime, default=utils.tz_now)

    def content(self):
        """The announced outcome, without the announcement time."""
        return {
            "post": utils.post_label(self.post),
            "winnerId": self.winner_id,
            "winnerName": self.winner_name,
            "totalVotesPerCandidate": self.total_votes_per_candidate,
        }


class CommitteeSeat(Base):
    __tablename__ = "election_committee_seat"

    id = Column(Integer, primary_key=True, index=True)
    post = Column(post_name_field(), nullable=False, unique=True)
    candidate_id = Column(Integer, nullable=False)
    name = Column(String(200), nullable=False)
    dept = Column(String(200), nullable=False)
    year = Column(String(50), nullable=False)
    announced_at = Column(DateTime, default=utils.tz_now)
