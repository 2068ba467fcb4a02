import uuid

from app.database import db_handler
from app.logger import logger

from app.election_auth.model import crud as auth_crud
from app.election_auth.model import schemas as auth_schemas
from app.election_auth.model.enums import UserRole

from werkzeug.security import generate_password_hash

PASSWORD_HASH_METHOD = "scrypt:32768:8:1"


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


@db_handler.func_with_session
async def create_user(session, email: str, password: str) -> str:
    """
    Create a new admin user, or reset the password of an existing one
    :param email: email of the user
    :param password: password of the user
    """
    if await auth_crud.get_user_by_email(session=session, email=email):
        await auth_crud.update_user(session=session, email=email, fields={"password": hash_password(password)})
        logger.info("Admin %s already exists, password updated" % email)
        return email

    user = auth_schemas.UserIn(
        email=email,
        password=hash_password(password),
        public_id=str(uuid.uuid4()),
        role=UserRole.admin,
    )
    await auth_crud.create_user(session=session, user=user)
    logger.info("Admin %s created successfully!" % email)
    return email
