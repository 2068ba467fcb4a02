from app.database import Base, engine, db_handler
from app.config import USE_ASYNC_ENGINE
from app.election.model import models  # noqa: F401
from app.election.model.cruds import crud
from app.election_auth.model import models as auth_models  # noqa: F401
from app.election_auth.utils import create_user
import asyncio
import os

ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@forum.local")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "12345")


@db_handler.func_with_session
async def seed_posts(session):
    await crud.restore_posts(session=session)


async def init_models():
    if USE_ASYNC_ENGINE:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    else:
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)

    await seed_posts()
    await create_user(ADMIN_EMAIL, ADMIN_PASSWORD)

if __name__ == "__main__":
    asyncio.run(init_models())
