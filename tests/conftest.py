import os
import tempfile
import uuid

# The app reads its configuration at import time
_tmp_dir = tempfile.mkdtemp(prefix="forum-election-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp_dir, "election.db")
os.environ["USE_ASYNC_ENGINE"] = "0"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-bytes-for-hs256"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["LOG_PATH"] = os.path.join(_tmp_dir, "election.log")

import pytest

from fastapi.encoders import jsonable_encoder
from fastapi.testclient import TestClient

from app.database import Base, engine, SessionLocal
from app.election import utils
from app.election.model import models
from app.election.model.enums import SessionStatusEnum
from app.election_auth.auth_bearer import encodeJWT
from app.election_auth.model import models as auth_models
from app.election_auth.model.enums import UserRole
from app.election_auth.utils import hash_password
from app.main import app

ADMIN_EMAIL = "admin@forum.test"
ADMIN_PASSWORD = "admin-password"
STUDENT_PASSWORD = "student-password"

# Students that never log in share one hash, scrypt is slow
_UNUSED_PASSWORD_HASH = hash_password("unused")


class RecordingNotifier(object):
    """
    Stands in for the websocket notifier and keeps what was emitted.
    """

    def __init__(self):
        self.events = []

    async def emit(self, event, data=None):
        self.events.append((event, jsonable_encoder(data or {})))

    def names(self):
        return [event for event, _ in self.events]

    def of(self, name):
        return [data for event, data in self.events if event == name]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()


@pytest.fixture
def db_session():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


# ----- Seeding helpers -----


def add_posts(*names):
    with SessionLocal() as session:
        for index, name in enumerate(names):
            session.add(models.Post(name=name, order=index + 1))
        session.commit()


def add_candidate(name, post, department="CSE", year="3"):
    with SessionLocal() as session:
        candidate = models.Candidate(
            name=name, post=post, department=department, year=year, manifesto=f"{name} for {post}", vote_count=0
        )
        session.add(candidate)
        session.commit()
        return candidate.id


def add_student(register_no, name=None, password=None, voted_posts=None, has_voted_all=False):
    with SessionLocal() as session:
        student = models.Student(
            register_no=register_no,
            name=name or f"Student {register_no}",
            department="CSE",
            year="2",
            password=hash_password(password) if password else _UNUSED_PASSWORD_HASH,
            has_voted_all=has_voted_all,
            voted_posts=voted_posts or {},
        )
        session.add(student)
        session.commit()
        return student.id


def add_vote(student_id, register_no, post, candidate_id):
    with SessionLocal() as session:
        session.add(models.Vote(
            student_id=student_id,
            student_register_no=register_no,
            post=post,
            candidate_id=candidate_id,
            created_at=utils.tz_now(),
        ))
        session.commit()


def open_post(post, index=0):
    """Puts the session control row in progress on the given post."""
    with SessionLocal() as session:
        control = session.get(models.SessionControl, models.SessionControl.SINGLETON_ID)
        if control is None:
            control = models.SessionControl(id=models.SessionControl.SINGLETON_ID)
            session.add(control)
        control.status = SessionStatusEnum.in_progress
        control.current_post = post
        control.current_post_index = index
        control.post_start_at = utils.tz_now()
        control.version = (control.version or 0) + 1
        session.commit()


def get_student(register_no):
    with SessionLocal() as session:
        return session.query(models.Student).filter_by(register_no=register_no).one()


def get_candidate(candidate_id):
    with SessionLocal() as session:
        return session.get(models.Candidate, candidate_id)


def count_votes():
    with SessionLocal() as session:
        return session.query(models.Vote).count()


def add_admin(email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    with SessionLocal() as session:
        user = auth_models.User(
            email=email,
            password=hash_password(password),
            public_id=str(uuid.uuid4()),
            role=UserRole.admin,
        )
        session.add(user)
        session.commit()
        return user.public_id


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


# ----- HTTP fixtures -----


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    public_id = add_admin()
    return bearer(encodeJWT({"public_id": public_id, "role": UserRole.admin.value}))


def student_headers(register_no):
    return bearer(encodeJWT({"register_no": register_no, "role": UserRole.student.value}))
