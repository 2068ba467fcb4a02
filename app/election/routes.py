import app.celery_worker.election.tasks as tasks

from fastapi import Depends, APIRouter, UploadFile, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import db_handler
from app.dependencies import get_session
from app.election import tabulator, utils as election_utils
from app.election import vote_ledger
from app.election.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.election.model import models
from app.election.model.cruds import crud
from app.election.model.cruds import results as results_crud
from app.election.model.enums import PostNameEnum, ElectionPublicEventEnum, ElectionAdminEventEnum
from app.election.model.schemas import schemas
from app.election.model.schemas import results as results_schemas
from app.election.realtime import notifier as realtime_notifier
from app.election.session_controller import session_controller
from app.election_auth.auth_bearer import AuthAdmin, AuthStudent
from app.election_auth.utils import hash_password
from app.election_auth.model.models import User

from app.logger import election_logger, logger

api_router = APIRouter()


def validate_post(post: str) -> str:
    if not PostNameEnum.has_value(post):
        raise NotFoundError(f"Post {post} does not exist")
    return post


# ----- Admin Student Routes -----


@api_router.post("/admin/students", response_model=schemas.StudentOut, status_code=201)
async def create_student(
    student_in: schemas.StudentIn,
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Admin's route for adding a single student
    """
    if not all(student_in.model_dump().values()):
        raise ValidationError()

    if await crud.get_student_by_register_no(session=session, register_no=student_in.register_no):
        raise ValidationError("Student already exists")

    student = await crud.create_student(
        session=session, student=student_in, hashed_password=hash_password(student_in.password)
    )
    await election_logger.info(event=ElectionPublicEventEnum.STUDENT_CREATED, register_no=student.register_no)
    return student


@api_router.get("/admin/students", response_model=list[schemas.StudentOut], status_code=200)
async def get_students(
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    return await crud.get_students(session=session)


@api_router.post("/admin/students/import", status_code=200)
async def import_students(
    file: UploadFile,
    current_user: User = Depends(AuthAdmin()),
):
    """
    Admin's route for uploading a CSV file of students
    """
    try:
        file_content = file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("The file must be a UTF-8 CSV")

    task = tasks.import_students.delay(file_content=file_content)
    imported, total, errors = task.get()

    await election_logger.info(
        event=ElectionPublicEventEnum.STUDENTS_IMPORTED, imported=imported, total=total
    )
    return {
        "message": f"[{imported}/{total}] students were successfully imported",
        "imported": imported,
        "total": total,
        "errors": errors,
    }


# ----- Admin Candidate Routes -----


@api_router.post("/admin/candidates", response_model=schemas.CandidateOut, status_code=201)
async def create_candidate(
    candidate_in: schemas.CandidateIn,
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    if not candidate_in.name or not candidate_in.department or not candidate_in.year or not candidate_in.manifesto:
        raise ValidationError()

    candidate = await crud.create_candidate(session=session, candidate=candidate_in)
    await election_logger.info(
        event=ElectionPublicEventEnum.CANDIDATE_CREATED,
        candidate_id=candidate.id,
        post=election_utils.post_label(candidate.post),
    )
    return candidate


@api_router.get("/admin/candidates", response_model=list[schemas.CandidateOut], status_code=200)
async def get_candidates(
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    return await crud.get_candidates(session=session)


@api_router.put("/admin/candidates/{candidate_id}", response_model=schemas.CandidateOut, status_code=200)
async def edit_candidate(
    candidate_id: int,
    candidate_in: schemas.CandidateEdit,
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Admin's route for editing a candidate, only the non empty fields
    change and the cached vote count is recounted from the votes
    """
    if not await crud.get_candidate_by_id(session=session, candidate_id=candidate_id):
        raise NotFoundError("Candidate not found")

    fields = {
        key: value for key, value in candidate_in.model_dump(exclude_none=True).items() if value != ""
    }
    candidate = await crud.edit_candidate(session=session, candidate_id=candidate_id, fields=fields)
    await election_logger.info(
        event=ElectionPublicEventEnum.CANDIDATE_EDITED, candidate_id=candidate_id, fields=list(fields)
    )
    return candidate


@api_router.delete("/admin/candidates/{candidate_id}", status_code=200)
async def delete_candidate(
    candidate_id: int,
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Admin's route for deleting a candidate together with its votes
    """
    if not await crud.get_candidate_by_id(session=session, candidate_id=candidate_id):
        raise NotFoundError("Candidate not found")

    await crud.delete_candidate(session=session, candidate_id=candidate_id)
    await election_logger.info(event=ElectionPublicEventEnum.CANDIDATE_DELETED, candidate_id=candidate_id)
    return {"message": "Candidate deleted successfully"}


# ----- Admin Post Routes -----


@api_router.get("/admin/posts", response_model=list[schemas.PostOut], status_code=200)
async def get_admin_posts(
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    return await crud.get_posts(session=session)


@api_router.post("/admin/posts/restore", response_model=list[schemas.PostOut], status_code=200)
async def restore_posts(
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Admin's route for seeding the posts, existing posts are kept
    """
    posts = await crud.restore_posts(session=session)
    await election_logger.info(event=ElectionPublicEventEnum.POSTS_RESTORED, total=len(posts))
    return posts


# ----- Admin Session Control Routes -----


@api_router.get("/admin/control", response_model=schemas.SessionControlOut, status_code=200)
async def get_control(current_user: User = Depends(AuthAdmin())):
    control = await session_controller.state()
    return session_controller.describe(control)


@api_router.post("/admin/control/start", response_model=schemas.SessionControlOut, status_code=200)
async def start_voting(current_user: User = Depends(AuthAdmin())):
    control = await session_controller.start()
    return session_controller.describe(control)


@api_router.post("/admin/control/next", response_model=schemas.SessionControlOut, status_code=200)
async def next_post(current_user: User = Depends(AuthAdmin())):
    control = await session_controller.advance()
    return session_controller.describe(control)


@api_router.post("/admin/control/end", response_model=schemas.SessionControlOut, status_code=200)
async def end_voting(current_user: User = Depends(AuthAdmin())):
    control = await session_controller.end()
    return session_controller.describe(control)


# ----- Admin Result Routes -----


@api_router.post("/admin/announce/{post}", status_code=200)
async def announce_result(
    post: str,
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Admin's route for announcing the winner of a post
    """
    return await tabulator.announce(session=session, post=post, notifier=realtime_notifier)


@api_router.get("/admin/post-totals", response_model=list[schemas.PostTotal], status_code=200)
async def get_post_totals(
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    return await tabulator.post_totals(session=session)


@api_router.post("/admin/reconcile", response_model=list[schemas.CandidateOut], status_code=200)
async def reconcile_vote_counts(
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Admin's route for recounting every cached vote count from the votes
    """
    await crud.reconcile_vote_counts(session=session)
    await db_handler.commit(session)
    await election_logger.info(event=ElectionAdminEventEnum.VOTE_COUNTS_RECONCILED)
    candidates = await crud.get_candidates(session=session)
    for candidate in candidates:
        await db_handler.refresh(session, candidate)
    return candidates


@api_router.get("/admin/logs", response_model=list[schemas.ElectionLogOut], status_code=200)
async def get_logs(
    page: int = 0,
    page_size: int = 50,
    current_user: User = Depends(AuthAdmin()),
    session: Session | AsyncSession = Depends(get_session),
):
    return await crud.get_logs(session=session, offset=page * page_size, page_size=page_size)


# ----- Student Routes -----


@api_router.get("/student/posts/current", response_model=schemas.CurrentPostOut, status_code=200)
async def get_current_post(
    student: models.Student = Depends(AuthStudent()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Student's route for the open post and its candidates
    """
    control = await crud.get_session_control(session=session)
    if not control.is_open:
        return schemas.CurrentPostOut()

    post = election_utils.post_label(control.current_post)
    candidates = await crud.get_candidates_by_post(session=session, post=post)
    return schemas.CurrentPostOut(
        current_post=post,
        remaining_time=session_controller.remaining_time(control),
        has_voted=student.has_voted_for(post),
        candidates=[schemas.CandidatePublic.model_validate(candidate) for candidate in candidates],
    )


@api_router.post("/vote", response_model=schemas.CastVoteOut, status_code=200)
async def cast_vote(
    vote_in: schemas.CastVoteIn,
    student: models.Student = Depends(AuthStudent()),
    session: Session | AsyncSession = Depends(get_session),
):
    """
    Student's route for casting a vote for the open post
    """
    if vote_in.student_register_no and vote_in.student_register_no != student.register_no:
        raise PermissionDeniedError("You can only vote as yourself")

    student = await vote_ledger.cast_vote(
        session=session,
        student_register_no=vote_in.student_register_no,
        post=vote_in.post,
        candidate_id=vote_in.candidate_id,
        notifier=realtime_notifier,
    )
    return schemas.CastVoteOut(message="Vote submitted successfully", has_voted_all=student.has_voted_all)


# ----- Public Routes -----


@api_router.get("/posts", response_model=list[schemas.PostOut], status_code=200)
async def get_posts(session: Session | AsyncSession = Depends(get_session)):
    return await crud.get_posts(session=session)


@api_router.get("/candidates/{post}", response_model=list[schemas.CandidatePublic], status_code=200)
async def get_candidates_by_post(post: str, session: Session | AsyncSession = Depends(get_session)):
    """
    Candidates of a post, without their vote counts
    """
    return await crud.get_candidates_by_post(session=session, post=validate_post(post))


@api_router.get("/forum-committee", response_model=list[results_schemas.CommitteeSeatOut], status_code=200)
async def get_forum_committee(session: Session | AsyncSession = Depends(get_session)):
    return await results_crud.get_committee(session=session)


@api_router.get("/results", response_model=list[results_schemas.ResultOut], status_code=200)
async def get_results(session: Session | AsyncSession = Depends(get_session)):
    return await results_crud.get_results(session=session)


# ----- Realtime -----


@api_router.websocket("/ws")
async def realtime(websocket: WebSocket):
    await session_controller.join(websocket)
    try:
        while True:
            raw_message = await websocket.receive_text()
            try:
                message = election_utils.from_json(raw_message) or {}
            except ValueError:
                logger.warning("Ignoring a malformed realtime message")
                continue
            if isinstance(message, dict) and message.get("event") == "joinVoting":
                data = message.get("data")
                register_no = data.get("registerNo") if isinstance(data, dict) else None
                logger.info("Student %s joined the voting room" % register_no)
    except WebSocketDisconnect:
        realtime_notifier.disconnect(websocket)
