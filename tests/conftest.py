from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import Base, get_db
from main import app
from models.classes import Class as ClassModel
from models.grade_entries import GradeEntry as GradeEntryModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel
from models.teachers import Teacher as TeacherModel
from schemas.grades import AssessmentKind, GradeEntry

# ✅ 테스트 전용 인메모리 SQLite (모든 커넥션이 같은 DB를 보도록 StaticPool)
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_entry(student_id, subject, score, coefficient=1, day=date(2025, 10, 1), kind=AssessmentKind.HOMEWORK):
    return GradeEntry(
        student_id=student_id,
        subject=subject,
        kind=kind,
        date=day,
        score=score,
        coefficient=coefficient,
    )


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def seeded(db):
    """
    6ème A (담임: Jean Kouassi)
    - Awa Koné     : 기간 내 Mathématiques 12/15/9 (계수 2), Français 14 (계수 3) + 기간 밖 Mathématiques 20
    - Bamba Yao    : Mathématiques 16 (계수 2), Français 10 (계수 3)
    - Claire Diallo: Inactif (집계 제외)
    """
    main_teacher = TeacherModel(id=1, first_name="Jean", last_name="Kouassi")
    math_teacher = TeacherModel(id=2, first_name="Ali", last_name="Traoré", subject="Mathématiques")
    db.add_all([main_teacher, math_teacher])
    db.add(ClassModel(id=1, class_name="6ème A", cycle="Secondaire", main_teacher_id=1))
    db.add(ClassModel(id=2, class_name="5ème B", cycle="Secondaire"))
    db.add_all([
        StudentModel(id=1, student_name="Awa Koné", matricule="M001", class_id=1, status="Actif"),
        StudentModel(id=2, student_name="Bamba Yao", matricule="M002", class_id=1, status="Actif"),
        StudentModel(id=3, student_name="Claire Diallo", matricule="M003", class_id=1, status="Inactif"),
    ])
    db.add_all([
        SubjectModel(name="Mathématiques", coefficient=4),
        SubjectModel(name="Français", coefficient=3),
    ])

    def entry(student_id, subject, score, coefficient, day):
        return GradeEntryModel(
            student_id=student_id, subject=subject, kind=AssessmentKind.HOMEWORK.value,
            date=day, score=score, coefficient=coefficient,
        )

    db.add_all([
        entry(1, "Mathématiques", 12, 2, date(2025, 10, 1)),
        entry(1, "Mathématiques", 15, 2, date(2025, 10, 15)),
        entry(1, "Mathématiques", 9, 2, date(2025, 11, 5)),
        entry(1, "Français", 14, 3, date(2025, 10, 20)),
        entry(1, "Mathématiques", 20, 2, date(2026, 1, 10)),
        entry(2, "Mathématiques", 16, 2, date(2025, 10, 1)),
        entry(2, "Français", 10, 3, date(2025, 10, 20)),
        entry(3, "Mathématiques", 20, 2, date(2025, 10, 1)),
    ])
    db.commit()
    return {"class_id": 1, "empty_class_id": 2, "awa": 1, "bamba": 2, "claire": 3}


@pytest.fixture()
def fake_pdf(monkeypatch):
    """WeasyPrint 대신 HTML 을 그대로 담은 가짜 PDF 바이트 반환"""
    from services.pdf_service import PDFService

    rendered = []

    def _fake(self, html_content):
        rendered.append(html_content)
        return b"%PDF-1.7\n" + html_content.encode("utf-8")

    monkeypatch.setattr(PDFService, "_html_to_pdf", _fake)
    return rendered
