from app.election.model import models
from sqlalchemy import select
from sqlalchemy.orm import Session


def get_register_nos(session: Session, register_nos: list[str]) -> set[str]:
    query = select(models.Student.register_no).where(models.Student.register_no.in_(register_nos))
    result = session.execute(query)
    return set(result.scalars().all())


def create_students(session: Session, students: list[models.Student]):
    session.add_all(students)
    session.commit()
