from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy import select

from app.election.model import models
from app.election.model.results import Result, CommitteeSeat
from app.database import db_handler


async def get_results(session: Session | AsyncSession):
    query = select(Result).join(models.Post, models.Post.name == Result.post).order_by(models.Post.order)
    result = await db_handler.execute(session, query)
    return result.scalars().all()


async def get_committee(session: Session | AsyncSession):
    query = select(CommitteeSeat).join(
        models.Post, models.Post.name == CommitteeSeat.post
    ).order_by(models.Post.order)
    result = await db_handler.execute(session, query)
    return result.scalars().all()
