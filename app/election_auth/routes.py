from fastapi import APIRouter, Depends

from app.dependencies import get_session

from app.election.exceptions import AlreadyVotedError, AuthError, ValidationError
from app.election.model.cruds import crud
from app.election.model.enums import ElectionAdminEventEnum
from app.election.model.schemas import schemas
from app.election_auth.auth_bearer import encodeJWT
from app.election_auth.model import crud as auth_crud
from app.election_auth.model import schemas as auth_schemas
from app.election_auth.model.enums import UserRole
from app.logger import election_logger, logger

auth_router = APIRouter(prefix="/auth")


@auth_router.post("/admin/login", status_code=200)
async def login_admin(data: auth_schemas.AdminLoginIn, session=Depends(get_session)):
    """
    Login an admin user
    """
    if not data.email or not data.password:
        raise ValidationError("Email and password are required")

    user = await auth_crud.get_user_by_email(session=session, email=data.email)
    if not user or user.role != UserRole.admin or not user.check_password(data.password):
        logger.warning("Failed admin login for %s" % data.email)
        await election_logger.warning(event=ElectionAdminEventEnum.ADMIN_LOGIN_FAIL, email=data.email)
        raise AuthError("Invalid credentials")

    token = encodeJWT({"public_id": user.public_id, "role": UserRole.admin.value})
    await election_logger.info(event=ElectionAdminEventEnum.ADMIN_LOGIN, email=user.email)
    return {
        "token": token,
        "admin": auth_schemas.UserOut.model_validate(user).model_dump(),
    }


@auth_router.post("/student/login", status_code=200)
async def login_student(data: auth_schemas.StudentLoginIn, session=Depends(get_session)):
    """
    Login a student, a student that already voted
    for every post cannot log in again
    """
    if not data.register_no or not data.password:
        raise ValidationError("Register number and password are required")

    student = await crud.get_student_by_register_no(session=session, register_no=data.register_no)
    if not student or not student.check_password(data.password):
        logger.warning("Failed student login for %s" % data.register_no)
        await election_logger.warning(
            event=ElectionAdminEventEnum.STUDENT_LOGIN_FAIL, register_no=data.register_no
        )
        raise AuthError("Invalid credentials")

    if student.has_voted_all:
        raise AlreadyVotedError("You have already cast your vote.")

    token = encodeJWT({"register_no": student.register_no, "role": UserRole.student.value})
    await election_logger.info(event=ElectionAdminEventEnum.STUDENT_LOGIN, register_no=student.register_no)
    return {
        "token": token,
        "student": schemas.StudentOut.model_validate(student).model_dump(by_alias=True),
    }
