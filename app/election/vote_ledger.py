"""
Vote ledger: one vote per student per post.

The checks and the writes of a vote run in a single transaction.
The (student_id, post) unique constraint on the vote table catches
the concurrent requests that get past the checks, and the student's
version column catches concurrent changes to the student row.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from app.config import VOTE_MAX_RETRIES
from app.database import db_handler
from app.election import utils
from app.election.exceptions import (
    AlreadyVotedError,
    DuplicateVoteError,
    ElectionError,
    InvalidCandidateError,
    NotFoundError,
    StorageError,
    ValidationError,
    VotingClosedError,
)
from app.election.model import models
from app.election.model.cruds import crud
from app.election.model.enums import ElectionPublicEventEnum
from app.election.realtime import RealtimeEvent
from app.logger import election_logger, logger


async def _record_vote(session, student_register_no: str, post: str, candidate_id: int):
    control = await crud.get_session_control(session)
    if not control.is_open:
        raise VotingClosedError()
    if not control.accepts_votes_for(post):
        raise VotingClosedError(f"Voting for {post} is not currently open")

    student = await crud.get_student_by_register_no(session=session, register_no=student_register_no)
    if student is None:
        raise NotFoundError("Student not found")
    if student.has_voted_all:
        raise AlreadyVotedError()
    if student.has_voted_for(post):
        raise DuplicateVoteError()

    candidate = await crud.get_candidate_by_id(session=session, candidate_id=candidate_id)
    if candidate is None:
        raise InvalidCandidateError("Candidate not found")
    if utils.post_label(candidate.post) != post:
        raise InvalidCandidateError()

    db_handler.add(session, models.Vote(
        student_id=student.id,
        student_register_no=student.register_no,
        post=post,
        candidate_id=candidate.id,
        created_at=utils.tz_now(),
    ))
    await crud.increment_vote_count(session=session, candidate_id=candidate.id)

    # A new dict, so the JSON column is flagged as changed
    student.voted_posts = {**(student.voted_posts or {}), post: candidate.id}
    posts = await crud.get_posts(session=session)
    student.has_voted_all = student.covers_posts(db_post.name for db_post in posts)

    await db_handler.commit(session)
    return student


async def cast_vote(session, student_register_no: str, post: str, candidate_id: int, notifier, max_retries: int = VOTE_MAX_RETRIES):
    """
    Records the vote of a student for a candidate of the open post.

    Returns the student once the vote is committed, raises one
    of the election exceptions otherwise, with nothing written.
    """
    if not student_register_no or not post or not candidate_id:
        raise ValidationError()
    post = utils.post_label(post)

    for attempt in range(1, max_retries + 1):
        try:
            student = await _record_vote(session, student_register_no, post, candidate_id)
            break
        except IntegrityError:
            await db_handler.rollback(session)
            logger.warning("Duplicate vote rejected by the database: %s (%s)" % (student_register_no, post))
            raise DuplicateVoteError()
        except StaleDataError:
            await db_handler.rollback(session)
            logger.warning("Concurrent update of student %s, retry %d" % (student_register_no, attempt))
        except SQLAlchemyError:
            await db_handler.rollback(session)
            logger.exception("Vote of %s (%s) could not be stored" % (student_register_no, post))
            raise StorageError()
        except ElectionError:
            await db_handler.rollback(session)
            raise
    else:
        raise StorageError()

    logger.log("ELECTION", "Vote stored: %s (%s)" % (student_register_no, post))
    if student.has_voted_all:
        await notifier.emit(
            RealtimeEvent.STUDENT_COMPLETED, {"registerNo": student.register_no, "name": student.name}
        )
        await election_logger.info(
            event=ElectionPublicEventEnum.STUDENT_COMPLETED, register_no=student.register_no
        )
    return student
