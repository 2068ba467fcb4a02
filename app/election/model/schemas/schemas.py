"""
Pydantic schemas (FastAPI) for the forum election.


Pydantic schemas are a way to give a 'type' to a group
of related data.

When we deal with SQLAlchemy we must note the following:

    Let 'TestModel' be a SQLAlchemy model, the API can:
        - Create/modify an instance of TestModel.
        - Out an instance of TestModel.

    To achieve this we must create 3 schemas:
        - TestModelBase: Inherits from ElectionSchema and holds
          the common data from both creating and returning
          an instance of TestModel.

        - TestModelIn: Inherits from TestModelBase and
          contains the specific data needed to create/modify an
          instance of TestModel.

        - TestModelOut: Inherits from TestModelBase and contains
          the data that we want the API to return to the user.

    By doing this we explicitly separate between creation data,
    which could be sensitive, and return data, improving the
    overall security of the API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.election.model.enums import PostNameEnum, SessionStatusEnum


class ElectionSchema(BaseModel):
    """
    Base class for an election schema, speaks camelCase to the clients.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ------------------ model-related schemas ------------------

#  Post-related schemas


class PostOut(ElectionSchema):
    name: PostNameEnum
    order: int


class PostTotal(ElectionSchema):
    post: PostNameEnum
    total_votes: int


#  Student-related schemas


class StudentBase(ElectionSchema):
    register_no: str
    name: str
    department: str
    year: str


class StudentIn(StudentBase):
    password: str


class StudentOut(StudentBase):
    id: int
    has_voted_all: bool
    voted_posts: dict[str, int]


#  Candidate-related schemas


class CandidateBase(ElectionSchema):
    name: str
    post: PostNameEnum
    department: str
    year: str
    manifesto: str
    photo_url: str | None = ""


class CandidateIn(CandidateBase):
    pass


class CandidateEdit(ElectionSchema):
    """
    Partial update, only the given fields change.
    """
    name: str | None = None
    post: PostNameEnum | None = None
    department: str | None = None
    year: str | None = None
    manifesto: str | None = None
    photo_url: str | None = None


class CandidatePublic(CandidateBase):
    """
    Candidate as shown to the voters, without the vote count.
    """
    id: int


class CandidateOut(CandidatePublic):
    vote_count: int


#  Vote-related schemas


class CastVoteIn(ElectionSchema):
    """
    Every field is optional here, missing ones are
    reported by the vote ledger itself.
    """
    student_register_no: str | None = None
    post: str | None = None
    candidate_id: int | None = None


class CastVoteOut(ElectionSchema):
    message: str
    has_voted_all: bool


#  Session-related schemas


class SessionControlOut(ElectionSchema):
    status: SessionStatusEnum
    current_post: PostNameEnum | None = None
    current_post_index: int
    post_start_at: datetime | None = None
    remaining_time: int = 0


class ElectionLogOut(ElectionSchema):
    log_level: str
    event: str
    event_params: str
    created_at: datetime | None = None


class CurrentPostOut(ElectionSchema):
    """
    The open post as seen by a student.
    """
    current_post: PostNameEnum | None = None
    remaining_time: int = 0
    has_voted: bool = False
    candidates: list[CandidatePublic] = []
