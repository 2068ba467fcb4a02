"""
celery tasks for the forum election (election module)

lib: celery
"""

import csv

from io import StringIO

from app.celery_worker import celery
from app.database import SessionLocal
from app.election import utils as election_utils
from app.election.model import models
from app.election_auth.utils import hash_password
from .model import crud


@celery.task(name="import_students")
def import_students(file_content: str):
    """
    Handles the upload of a student CSV file with the columns
    registerNo, name, Password, year and department.

    Students already registered are skipped, returns the number of
    imported students, the number of rows and the row errors.
    """
    rows = list(csv.DictReader(StringIO(file_content)))
    students, errors = election_utils.read_student_rows(rows)

    with SessionLocal() as session:
        existing = crud.get_register_nos(
            session=session, register_nos=[student["register_no"] for student in students]
        )
        new_students = []
        for student in students:
            if student["register_no"] in existing:
                errors.append(f"Student {student['register_no']} already exists")
                continue
            existing.add(student["register_no"])
            new_students.append(models.Student(
                register_no=student["register_no"],
                name=student["name"],
                department=student["department"],
                year=student["year"],
                password=hash_password(student["password"]),
                has_voted_all=False,
                voted_posts={},
            ))
        crud.create_students(session=session, students=new_students)

    return len(new_students), len(rows), errors
