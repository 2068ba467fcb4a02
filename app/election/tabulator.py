"""
Result tabulation per post.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.database import db_handler
from app.election import utils
from app.election.exceptions import NotFoundError, StorageError
from app.election.model.cruds import crud
from app.election.model.enums import PostNameEnum, ElectionPublicEventEnum
from app.election.model.results import Result, CommitteeSeat
from app.election.realtime import RealtimeEvent
from app.logger import election_logger, logger


def rank_candidates(candidates) -> list[dict]:
    return [
        {"candidateId": c.id, "name": c.name, "votes": c.vote_count}
        for c in candidates
    ]


async def _upsert(session, model, post: str, fields: dict):
    query = select(model).where(model.post == post)
    result = await db_handler.execute(session, query)
    instance = result.scalars().first()
    if instance is None:
        instance = model(post=post)
        db_handler.add(session, instance)
    for key, value in fields.items():
        setattr(instance, key, value)
    return instance


async def announce(session, post: str, notifier):
    """
    Picks the winner of a post from the current tallies, the
    highest vote count wins and ties go to the lowest candidate id.

    Announcing again recomputes and overwrites the stored result.
    """
    if not post or not PostNameEnum.has_value(utils.post_label(post)):
        raise NotFoundError("No candidates found for this post")
    post = utils.post_label(post)

    await crud.reconcile_vote_counts(session=session, post=post)
    candidates = await crud.get_ranked_candidates_by_post(session=session, post=post)
    if not candidates:
        await db_handler.rollback(session)
        raise NotFoundError("No candidates found for this post")

    winner = candidates[0]
    tally = rank_candidates(candidates)
    announced_at = utils.tz_now()

    await _upsert(session, Result, post, {
        "winner_id": winner.id,
        "winner_name": winner.name,
        "total_votes_per_candidate": tally,
        "announced_at": announced_at,
    })
    await _upsert(session, CommitteeSeat, post, {
        "candidate_id": winner.id,
        "name": winner.name,
        "dept": winner.department,
        "year": winner.year,
        "announced_at": announced_at,
    })
    try:
        await db_handler.commit(session)
    except IntegrityError:
        await db_handler.rollback(session)
        raise StorageError("The result of this post is being announced, try again")

    winner_data = {
        "id": winner.id,
        "name": winner.name,
        "department": winner.department,
        "year": winner.year,
    }
    await notifier.emit(RealtimeEvent.RESULT_ANNOUNCED, {
        "post": post,
        "winner": winner_data,
        "totalVotesPerCandidate": tally,
        "announcedAt": announced_at,
    })

    logger.log("ELECTION", "Result announced for %s: %s" % (post, winner.name))
    await election_logger.info(
        event=ElectionPublicEventEnum.RESULT_ANNOUNCED, post=post, winner_id=winner.id
    )
    return {
        "post": post,
        "winner": winner_data,
        "totalVotesPerCandidate": tally,
        "announcedAt": announced_at,
    }


async def post_totals(session):
    """
    Votes per post, without the split between candidates.
    """
    posts = await crud.get_posts(session=session)
    return [
        {"post": db_post.name, "totalVotes": await crud.count_votes_by_post(session=session, post=db_post.name)}
        for db_post in posts
    ]
