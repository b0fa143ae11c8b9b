"""
services/ledger.py

- 집계 엔진이 소비하는 외부 협력자(collaborator) 인터페이스와 구현
  1) GradeLedger      : 평가 원장 조회 (학생 1명 / 여러 명, 기간 필터 선택)
  2) Roster           : 학급의 재학(Actif) 학생 명단
  3) StudentDirectory : 성적표 머리말에 들어갈 학생 신원 정보
- SQL 구현은 요청 세션(Session)을 그대로 사용하며, 스레드 간에 공유하지 않습니다.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from sqlalchemy.orm import Session

from models.classes import Class as ClassModel
from models.grade_entries import GradeEntry as GradeEntryModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel
from models.teachers import Teacher as TeacherModel
from schemas.bulletins import StudentIdentity
from schemas.grades import GradeEntry
from services.bulletin_calculator import in_period
from services.exceptions import ClassNotFoundError, StudentNotFoundError

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "Actif"

# 담임 1명이 모든 과목을 가르치는 과정
SINGLE_TEACHER_CYCLES = ("Maternelle", "Enseignement Primaire")


# ==========================================================
# [인터페이스]
# ==========================================================
class GradeLedger(Protocol):
    def fetch_entries(
        self, student_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[GradeEntry]: ...

    def fetch_entries_for_students(
        self, student_ids: Sequence[int], start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> Dict[int, List[GradeEntry]]: ...


class Roster(Protocol):
    def fetch_active_students(self, class_id: int) -> List[int]: ...


class StudentDirectory(Protocol):
    def get_student(self, student_id: int) -> StudentIdentity: ...

    def teacher_names(self, class_id: int, subjects: Iterable[str]) -> Dict[str, str]: ...


# ==========================================================
# [메모리 원장] 스크립트/테스트에서 사용
# ==========================================================
class InMemoryGradeLedger:
    def __init__(self, entries: Iterable[GradeEntry] = ()):
        self._entries: List[GradeEntry] = list(entries)

    def add(self, entry: GradeEntry) -> None:
        self._entries.append(entry)

    def fetch_entries(self, student_id, start_date=None, end_date=None):
        return [
            e for e in self._entries
            if e.student_id == student_id and in_period(e.date, start_date, end_date)
        ]

    def fetch_entries_for_students(self, student_ids, start_date=None, end_date=None):
        wanted = set(student_ids)
        grouped: Dict[int, List[GradeEntry]] = {sid: [] for sid in student_ids}
        for e in self._entries:
            if e.student_id in wanted and in_period(e.date, start_date, end_date):
                grouped[e.student_id].append(e)
        return grouped


# ==========================================================
# [SQL 원장] SQLAlchemy 세션 기반
# ==========================================================
class SqlGradeLedger:
    """평가 원장은 (일자, ID) 순으로 반환 → 과목별 "첫 번째 평가"가 가장 먼저 기록된 평가"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, start_date: Optional[date], end_date: Optional[date]):
        q = self.db.query(GradeEntryModel)
        if start_date is not None:
            q = q.filter(GradeEntryModel.date >= start_date)
        if end_date is not None:
            q = q.filter(GradeEntryModel.date <= end_date)
        return q.order_by(GradeEntryModel.date, GradeEntryModel.id)

    def fetch_entries(self, student_id, start_date=None, end_date=None):
        rows = self._query(start_date, end_date).filter(GradeEntryModel.student_id == student_id).all()
        return [GradeEntry.model_validate(r) for r in rows]

    def fetch_entries_for_students(self, student_ids, start_date=None, end_date=None):
        grouped: Dict[int, List[GradeEntry]] = {sid: [] for sid in student_ids}
        if not student_ids:
            return grouped

        rows = self._query(start_date, end_date).filter(GradeEntryModel.student_id.in_(list(student_ids))).all()
        for r in rows:
            grouped[r.student_id].append(GradeEntry.model_validate(r))
        logger.debug("원장 조회: 학생 %d명, 평가 %d건", len(grouped), len(rows))
        return grouped


class SqlRoster:
    def __init__(self, db: Session):
        self.db = db

    def fetch_active_students(self, class_id: int) -> List[int]:
        if self.db.query(ClassModel.id).filter(ClassModel.id == class_id).first() is None:
            raise ClassNotFoundError(class_id)

        rows = (
            self.db.query(StudentModel.id)
            .filter(StudentModel.class_id == class_id, StudentModel.status == ACTIVE_STATUS)
            .order_by(StudentModel.student_name, StudentModel.id)
            .all()
        )
        return [r.id for r in rows]


class SqlStudentDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get_student(self, student_id: int) -> StudentIdentity:
        row = (
            self.db.query(StudentModel, ClassModel)
            .outerjoin(ClassModel, ClassModel.id == StudentModel.class_id)
            .filter(StudentModel.id == student_id)
            .first()
        )
        if row is None:
            raise StudentNotFoundError(student_id)

        student, klass = row
        return StudentIdentity(
            student_id=student.id,
            student_name=student.student_name,
            matricule=student.matricule,
            class_id=student.class_id,
            class_name=klass.class_name if klass else "N/A",
        )

    def teacher_names(self, class_id: int, subjects: Iterable[str]) -> Dict[str, str]:
        """
        과목 → 교사 이름.
        - 유치원/초등 과정은 담임 교사가 모든 과목 담당
        - 그 외에는 과목 담당 교사, 없으면 담임 교사
        - 둘 다 없으면 키를 넣지 않음 (렌더링에서 "N/A")
        """
        klass = self.db.query(ClassModel).filter(ClassModel.id == class_id).first()
        main_teacher = klass.main_teacher.full_name if klass is not None and klass.main_teacher else None
        single_teacher = klass is not None and klass.cycle in SINGLE_TEACHER_CYCLES

        by_subject: Dict[str, str] = {}
        if not single_teacher:
            for t in self.db.query(TeacherModel).filter(TeacherModel.subject.isnot(None)).order_by(TeacherModel.id):
                by_subject.setdefault(t.subject, t.full_name)

        names: Dict[str, str] = {}
        for subject in subjects:
            name = by_subject.get(subject) or main_teacher
            if name:
                names[subject] = name
        return names


def load_subject_coefficients(db: Session) -> Dict[str, float]:
    """subjects 테이블의 과목 계수 (COEFFICIENT_POLICY=subject_table)"""
    return {s.name: float(s.coefficient) for s in db.query(SubjectModel).all()}
