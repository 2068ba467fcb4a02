"""
SQLAlchemy Models for the forum election.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, Integer, String, Text, Enum, DateTime, JSON
from werkzeug.security import check_password_hash

from app.election import utils
from app.election.model.enums import SessionStatusEnum
from app.database import Base
from app.database.custom_fields import post_name_field

# Registers the result tables on Base
from app.election.model.results import Result, CommitteeSeat  # noqa: F401


class Post(Base):
    __tablename__ = "election_post"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(post_name_field(), nullable=False, unique=True)
    order = Column(Integer, nullable=False, unique=True)


class Candidate(Base):
    __tablename__ = "election_candidate"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    post = Column(post_name_field(), nullable=False, index=True)
    department = Column(String(200), nullable=False)
    year = Column(String(50), nullable=False)
    manifesto = Column(Text, nullable=False)
    photo_url = Column(String(500), nullable=False, default="")

    # Cache of the Vote rows pointing to this candidate
    vote_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utils.tz_now)


class Student(Base):
    __tablename__ = "election_student"

    id = Column(Integer, primary_key=True, index=True)
    register_no = Column(String(100), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    department = Column(String(200), nullable=False)
    year = Column(String(50), nullable=False)
    password = Column(String(200), nullable=False)

    has_voted_all = Column(Boolean, nullable=False, default=False)
    # post name -> candidate id, one entry per post
    voted_posts = Column(JSON, nullable=False, default=dict)

    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password, password)

    def has_voted_for(self, post: str) -> bool:
        return utils.post_label(post) in (self.voted_posts or {})

    def covers_posts(self, post_names) -> bool:
        """
        True when there is a vote for every given post, an
        empty post set never counts as complete.
        """
        post_names = {utils.post_label(post) for post in post_names}
        return len(post_names) > 0 and post_names <= set(self.voted_posts or {})


class Vote(Base):
    __tablename__ = "election_vote"
    __table_args__ = (
        UniqueConstraint("student_id", "post", name="uq_election_vote_student_post"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(
        Integer,
        ForeignKey("election_student.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    student_register_no = Column(String(100), nullable=False)
    post = Column(post_name_field(), nullable=False)
    candidate_id = Column(
        Integer,
        ForeignKey("election_candidate.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=utils.tz_now)


class SessionControl(Base):
    __tablename__ = "election_session_control"

    SINGLETON_ID = 1

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    status = Column(Enum(SessionStatusEnum), nullable=False, default=SessionStatusEnum.not_started)
    current_post = Column(post_name_field(), nullable=True)
    current_post_index = Column(Integer, nullable=False, default=0)
    post_start_at = Column(DateTime, nullable=True)

    # Bumped on every transition, timers compare against it
    version = Column(Integer, nullable=False, default=0)

    @property
    def is_open(self):
        return self.status == SessionStatusEnum.in_progress and self.current_post is not None

    def accepts_votes_for(self, post: str) -> bool:
        return self.is_open and self.current_post == post

    def to_dict(self):
        return {
            "status": self.status,
            "currentPost": self.current_post,
            "currentPostIndex": self.current_post_index,
            "postStartAt": self.post_start_at,
        }


class ElectionLog(Base):
    __tablename__ = "election_logs"

    id = Column(Integer, primary_key=True, index=True)

    log_level = Column(String(200), nullable=False)

    event = Column(String(200), nullable=False)
    event_params = Column(Text, nullable=False)

    created_at = Column(DateTime, default=utils.tz_now)
