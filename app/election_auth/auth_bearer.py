from datetime import datetime, timedelta, timezone

from fastapi import Request, Depends
from fastapi.security import HTTPBearer
from app.config import SECRET_KEY, TOKEN_EXPIRATION_HOURS
from sqlalchemy.orm import Session
from app.dependencies import get_session
from sqlalchemy.ext.asyncio import AsyncSession

from app.election.exceptions import AuthError, PermissionDeniedError
from app.election.model.cruds import crud
from app.election_auth.model import crud as auth_crud
from app.election_auth.model.enums import UserRole

import jwt

ALGORITHM = "HS256"


def encodeJWT(payload: dict, expires_in: timedelta = None) -> str:
    expires_in = expires_in or timedelta(hours=TOKEN_EXPIRATION_HOURS)
    payload = {**payload, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decodeJWT(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired. Please login again.")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token. Please login again.")


class AuthBearer(HTTPBearer):

    """
    HTTPBearer class for authentication with Bearer tokens,
    subclasses pick the role and load the matching account.

    """

    role: UserRole = None
    permission_message = "You are not allowed to perform this action"

    def __init__(self):
        super(AuthBearer, self).__init__(auto_error=False)

    async def __call__(self, request: Request, session: Session | AsyncSession = Depends(get_session)):
        credentials = await super(AuthBearer, self).__call__(request)
        if not credentials or not credentials.credentials:
            raise AuthError("No token provided. Please login again.")

        payload = decodeJWT(credentials.credentials)
        if payload.get("role") != self.role.value:
            raise PermissionDeniedError(self.permission_message)

        account = await self.get_account(payload, session)
        if not account:
            raise AuthError("Invalid token. Please login again.")
        return account

    async def get_account(self, payload: dict, session: Session | AsyncSession):
        raise NotImplementedError


class AuthAdmin(AuthBearer):
    role = UserRole.admin
    permission_message = "Admin permission required. Please login as admin."

    async def get_account(self, payload: dict, session: Session | AsyncSession):
        return await auth_crud.get_user_by_public_id(session=session, public_id=payload.get("public_id"))


class AuthStudent(AuthBearer):
    role = UserRole.student
    permission_message = "Student permission required. Please login as student."

    async def get_account(self, payload: dict, session: Session | AsyncSession):
        return await crud.get_student_by_register_no(session=session, register_no=payload.get("register_no"))
