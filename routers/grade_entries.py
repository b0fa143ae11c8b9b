from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from models.grade_entries import GradeEntry as GradeEntryModel
from models.students import Student as StudentModel
from schemas.common import Pagination, make_meta
from schemas.grades import GradeEntry as GradeEntrySchema, GradeEntryCreate
from services.exceptions import StudentNotFoundError

router = APIRouter(prefix="/grade-entries", tags=["성적 원장"])


# ==========================================================
# [CREATE] 평가 점수 기록
# ==========================================================
@router.post("/")
def create_grade_entry(entry: GradeEntryCreate, db: Session = Depends(get_db)):
    if db.query(StudentModel.id).filter(StudentModel.id == entry.student_id).first() is None:
        raise StudentNotFoundError(entry.student_id)

    data = entry.model_dump()
    data["kind"] = entry.kind.value
    db_entry = GradeEntryModel(**data)
    db.add(db_entry)
    db.commit()
    db.refresh(db_entry)
    return {
        "success": True,
        "data": GradeEntrySchema.model_validate(db_entry).model_dump(mode="json"),
        "message": "성적이 성공적으로 기록되었습니다",
    }


# ==========================================================
# [READ] 학생별 평가 목록 (기간 필터, 페이징)
# ==========================================================
@router.get("/student/{student_id}")
def list_student_grade_entries(
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    p: Pagination = Depends(),
    db: Session = Depends(get_db),
):
    q = db.query(GradeEntryModel).filter(GradeEntryModel.student_id == student_id)
    if start_date is not None:
        q = q.filter(GradeEntryModel.date >= start_date)
    if end_date is not None:
        q = q.filter(GradeEntryModel.date <= end_date)

    total = q.count()
    rows = (
        q.order_by(GradeEntryModel.date, GradeEntryModel.id)
        .offset((p.page - 1) * p.size)
        .limit(p.size)
        .all()
    )
    return {
        "success": True,
        "data": [GradeEntrySchema.model_validate(r).model_dump(mode="json") for r in rows],
        "meta": make_meta(total, p.page, p.size).model_dump(),
        "message": f"학생 ID {student_id} 성적 {total}건 조회",
    }


# ==========================================================
# [DELETE] 평가 기록 삭제
# ==========================================================
@router.delete("/{entry_id}")
def delete_grade_entry(entry_id: int, db: Session = Depends(get_db)):
    entry = db.query(GradeEntryModel).filter(GradeEntryModel.id == entry_id).first()
    if entry is None:
        return {
            "success": False,
            "error": {"code": 404, "message": "성적 기록을 찾을 수 없습니다"},
        }
    db.delete(entry)
    db.commit()
    return {
        "success": True,
        "data": {"id": entry_id},
        "message": "성적 기록이 삭제되었습니다",
    }
