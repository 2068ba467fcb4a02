"""
CRUD utils for the forum election
(Create - Read - Update - delete)
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy import select, update, delete, func

from app.election.model import models
from app.election.model.schemas import schemas
from app.election.model.enums import DEFAULT_POSTS
from app.database import db_handler


# ----- Post CRUD Utils -----


async def get_posts(session: Session | AsyncSession):
    query = select(models.Post).order_by(models.Post.order)
    result = await db_handler.execute(session, query)
    return result.scalars().all()


async def restore_posts(session: Session | AsyncSession, posts: list[dict] = DEFAULT_POSTS):
    """
    Creates the missing posts and puts the existing ones back in order.
    """
    query = select(models.Post)
    result = await db_handler.execute(session, query)
    existing = {post.name: post for post in result.scalars().all()}

    # Clear the orders first so swapping them does not hit the unique index
    for db_post in existing.values():
        db_post.order = -db_post.id
    if existing:
        await db_handler.flush(session)

    for post in posts:
        db_post = existing.get(post["name"])
        if db_post is None:
            db_handler.add(session, models.Post(name=post["name"], order=post["order"]))
        else:
            db_post.order = post["order"]
    await db_handler.commit(session)
    return await get_posts(session=session)


# ----- Student CRUD Utils -----


async def get_student_by_register_no(session: Session | AsyncSession, register_no: str):
    query = select(models.Student).where(models.Student.register_no == register_no)
    result = await db_handler.execute(session, query)
    return result.scalars().first()


async def get_students(session: Session | AsyncSession):
    query = select(models.Student).order_by(models.Student.register_no)
    result = await db_handler.execute(session, query)
    return result.scalars().all()


async def create_student(session: Session | AsyncSession, student: schemas.StudentIn, hashed_password: str):
    db_student = models.Student(
        **student.model_dump(exclude={"password"}),
        password=hashed_password,
        has_voted_all=False,
        voted_posts={},
    )
    db_handler.add(session, db_student)
    await db_handler.commit(session)
    await db_handler.refresh(session, db_student)
    return db_student


# ----- Candidate CRUD Utils -----


async def get_candidate_by_id(session: Session | AsyncSession, candidate_id: int):
    query = select(models.Candidate).where(models.Candidate.id == candidate_id).execution_options(
        populate_existing=True
    )
    result = await db_handler.execute(session, query)
    return result.scalars().first()


async def get_candidates(session: Session | AsyncSession):
    query = select(models.Candidate).order_by(models.Candidate.post, models.Candidate.name)
    result = await db_handler.execute(session, query)
    return result.scalars().all()


async def get_candidates_by_post(session: Session | AsyncSession, post: str):
    query = select(models.Candidate).where(models.Candidate.post == post).order_by(models.Candidate.id)
    result = await db_handler.execute(session, query)
    return result.scalars().all()


async def get_ranked_candidates_by_post(session: Session | AsyncSession, post: str):
    """
    Candidates of a post by vote count, ties broken by the lowest id.
    """
    query = select(models.Candidate).where(models.Candidate.post == post).order_by(
        models.Candidate.vote_count.desc(), models.Candidate.id.asc()
    ).execution_options(populate_existing=True)
    result = await db_handler.execute(session, query)
    return result.scalars().all()


async def create_candidate(session: Session | AsyncSession, candidate: schemas.CandidateIn):
    fields = candidate.model_dump()
    fields["photo_url"] = fields.get("photo_url") or ""
    db_candidate = models.Candidate(**fields, vote_count=0)
    db_handler.add(session, db_candidate)
    await db_handler.commit(session)
    await db_handler.refresh(session, db_candidate)
    return db_candidate


async def edit_candidate(session: Session | AsyncSession, candidate_id: int, fields: dict):
    if fields:
        query = update(models.Candidate).where(
            models.Candidate.id == candidate_id
        ).values(fields)
        await db_handler.execute(session, query)
    await reconcile_vote_counts(session=session, candidate_id=candidate_id)
    await db_handler.commit(session)

    db_candidate = await get_candidate_by_id(session=session, candidate_id=candidate_id)
    await db_handler.refresh(session, db_candidate)
    return db_candidate


async def delete_candidate(session: Session | AsyncSession, candidate_id: int):
    await db_handler.execute(session, delete(models.Vote).where(models.Vote.candidate_id == candidate_id))
    await db_handler.execute(session, delete(models.Candidate).where(models.Candidate.id == candidate_id))
    await db_handler.commit(session)


# ----- Vote CRUD Utils -----


async def increment_vote_count(session: Session | AsyncSession, candidate_id: int):
    query = update(models.Candidate).where(
        models.Candidate.id == candidate_id
    ).values(vote_count=models.Candidate.vote_count + 1)
    await db_handler.execute(session, query)


async def count_votes_by_post(session: Session | AsyncSession, post: str):
    query = select(func.count(models.Vote.id)).where(models.Vote.post == post)
    result = await db_handler.execute(session, query)
    return result.scalar_one()


async def reconcile_vote_counts(session: Session | AsyncSession, post: str = None, candidate_id: int = None):
    """
    Rewrites the cached Candidate.vote_count from the Vote rows.
    Does not commit, the caller owns the transaction.
    """
    counted_votes = (
        select(func.count(models.Vote.id))
        .where(models.Vote.candidate_id == models.Candidate.id)
        .scalar_subquery()
    )
    query = update(models.Candidate).values(vote_count=counted_votes)
    if post is not None:
        query = query.where(models.Candidate.post == post)
    if candidate_id is not None:
        query = query.where(models.Candidate.id == candidate_id)
    await db_handler.execute(session, query.execution_options(synchronize_session=False))


# ----- SessionControl CRUD Utils -----


async def get_session_control(session: Session | AsyncSession):
    """
    Returns the singleton control row, creating it on first use.
    """
    query = select(models.SessionControl).where(
        models.SessionControl.id == models.SessionControl.SINGLETON_ID
    ).execution_options(populate_existing=True)
    result = await db_handler.execute(session, query)
    control = result.scalars().first()
    if control is not None:
        return control

    control = models.SessionControl(id=models.SessionControl.SINGLETON_ID)
    db_handler.add(session, control)
    try:
        await db_handler.commit(session)
    except IntegrityError:
        # Someone else created it first
        await db_handler.rollback(session)
        result = await db_handler.execute(session, query)
        return result.scalars().one()
    await db_handler.refresh(session, control)
    return control


# ----- ElectionLog CRUD Utils -----


async def log_to_db(session: Session | AsyncSession, log_level: str, event: str, event_params: str, created_at):
    db_log = models.ElectionLog(
        log_level=log_level,
        event=event,
        event_params=event_params,
        created_at=created_at,
    )
    db_handler.add(session, db_log)
    await db_handler.commit(session)
    await db_handler.refresh(session, db_log)
    return db_log


async def get_logs(session: Session | AsyncSession, offset=0, page_size=None):
    query = select(models.ElectionLog).order_by(models.ElectionLog.id).offset(offset).limit(page_size)
    result = await db_handler.execute(session, query)
    return result.scalars().all()
