from app.database import db_handler
from app.election.model.cruds import crud
from app.election_auth.utils import create_user
import asyncio
import sys

async def init_models():
    method = sys.argv[1] if len(sys.argv) > 1 else None
    methods = {
        "create_admin": create_admin,
        "restore_posts": restore_posts,
    }
    if method not in methods:
        print(f"Unknown method: {method}. Available methods: {', '.join(methods.keys())}")
        return

    await methods[method](*sys.argv[2:])

async def create_admin(email: str, password: str):
    await create_user(email, password)
    print(f"Admin user {email} is ready")

@db_handler.func_with_session
async def restore_posts(session):
    posts = await crud.restore_posts(session=session)
    print(f"{len(posts)} posts restored: {', '.join(post.name.value for post in posts)}")

if __name__ == "__main__":
    asyncio.run(init_models())
