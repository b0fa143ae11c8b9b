import logging
from datetime import date
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from database.db import get_db
from schemas.bulletins import BulletinFailure, BulletinRequest, RankingPolicy
from services.bulletin_service import BulletinService
from services.pdf_service import PDFService, bulletin_filename, safe_path_part

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bulletins", tags=["성적표(Bulletin)"])

pdf_service = PDFService()


def get_bulletin_service(db: Session = Depends(get_db)) -> BulletinService:
    return BulletinService.from_session(db)


def _pdf_response(content: bytes, filename: str, headers: Optional[dict] = None) -> Response:
    # 한글/악센트 파일명 → RFC 5987 인코딩
    disposition = f"attachment; filename*=UTF-8''{quote(filename)}"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": disposition, **(headers or {})},
    )


def _no_bulletins_response(failures) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "success": False,
            "error": {"code": 404, "message": "생성된 성적표가 없습니다"},
            "data": {"failures": [f.model_dump() for f in failures]},
        },
    )


# ==========================================================
# [계산] 학생 과목별 평균 / 학급 통계
# ==========================================================

# ✅ 학생 1명의 과목별 평균 + 가중 전체 평균
@router.get("/student/{student_id}/averages")
def get_student_averages(
    student_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: BulletinService = Depends(get_bulletin_service),
):
    performance = service.student_performance(student_id, start_date, end_date)
    return {
        "success": True,
        "data": {
            "student_id": student_id,
            "subject_averages": [sa.model_dump(mode="json") for sa in performance.subject_averages],
            "general_average": performance.result.general_average,
            "total_weighted_points": performance.result.total_weighted_points,
            "total_coefficient": performance.result.total_coefficient,
        },
        "message": f"학생 ID {student_id} 평균 계산 완료",
    }


# ✅ 학급 통계: 과목별 학급 평균/최저/최고 + 순위
@router.get("/class/{class_id}/statistics")
def get_class_statistics(
    class_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    ranking: Optional[RankingPolicy] = Query(default=None, description="sequential | competition"),
    service: BulletinService = Depends(get_bulletin_service),
):
    stats = service.class_statistics(class_id, start_date, end_date, ranking)
    return {
        "success": True,
        "data": {
            "class_id": class_id,
            "total_students": stats.total_students,
            "class_stats": {k: v.model_dump() for k, v in stats.class_stats.items()},
            "student_ranks": {str(k): v.model_dump() for k, v in stats.student_ranks.items()},
        },
        "message": f"반 ID {class_id} 통계 계산 완료",
    }


# ==========================================================
# [문서] 성적표 JSON / PDF
# ==========================================================

# ✅ 성적표 문서(JSON) — 화면 미리보기용
@router.get("/student/{student_id}")
def get_student_bulletin(
    student_id: int,
    term: str = Query(..., min_length=1),
    school_year: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    ranking: Optional[RankingPolicy] = None,
    service: BulletinService = Depends(get_bulletin_service),
):
    document = service.student_bulletin(
        student_id, term, school_year=school_year, start_date=start_date, end_date=end_date, ranking=ranking
    )
    return {
        "success": True,
        "data": document.model_dump(mode="json"),
        "message": "성적표 조회 성공",
    }


# ✅ [PDF] 학생 1명 성적표
@router.post("/student/{student_id}/pdf")
def generate_student_bulletin_pdf(
    student_id: int,
    req: BulletinRequest,
    service: BulletinService = Depends(get_bulletin_service),
):
    document = service.student_bulletin(
        student_id,
        req.term,
        school_year=req.school_year,
        start_date=req.start_date,
        end_date=req.end_date,
        ranking=req.ranking,
        remarks=req.remarks,
        council_comment=req.council_comment or req.council_comments.get(student_id),
    )
    content = pdf_service.render_bulletin_pdf(document)
    logger.info("성적표 PDF 생성: student_id=%s (%d bytes)", student_id, len(content))
    return _pdf_response(content, bulletin_filename(document))


# ✅ [PDF] 학급 전체 성적표 (학생당 1페이지)
@router.post("/class/{class_id}/pdf")
def generate_class_bulletins_pdf(
    class_id: int,
    req: BulletinRequest,
    service: BulletinService = Depends(get_bulletin_service),
):
    batch = service.class_bulletins(
        class_id,
        req.term,
        school_year=req.school_year,
        start_date=req.start_date,
        end_date=req.end_date,
        ranking=req.ranking,
        order=req.order,
        remarks=req.remarks,
        council_comments=req.council_comments,
    )
    failures = list(batch.failures)
    if not batch.documents:
        return _no_bulletins_response(failures)

    # 학생 페이지 단위로 렌더링 실패 격리
    def on_error(document, exc):
        logger.error("성적표 페이지 렌더링 실패: student_id=%s (%s)", document.student_id, exc)
        failures.append(BulletinFailure(
            student_id=document.student_id, student_name=document.student_name, error=str(exc)
        ))

    content = pdf_service.render_class_pdf(batch.documents, on_error=on_error)
    if len(failures) - len(batch.failures) == len(batch.documents):
        return _no_bulletins_response(failures)

    headers = {}
    if failures:
        headers["X-Bulletin-Failures"] = ",".join(str(f.student_id) for f in failures)
    return _pdf_response(content, f"Bulletins_classe_{class_id}_{safe_path_part(req.term)}.pdf", headers)


# ✅ 학급 일괄 생성 결과 리포트 (학생별 성공/실패)
@router.post("/class/{class_id}/batch")
def generate_class_bulletins_report(
    class_id: int,
    req: BulletinRequest,
    service: BulletinService = Depends(get_bulletin_service),
):
    batch = service.class_bulletins(
        class_id,
        req.term,
        school_year=req.school_year,
        start_date=req.start_date,
        end_date=req.end_date,
        ranking=req.ranking,
        order=req.order,
        remarks=req.remarks,
        council_comments=req.council_comments,
    )
    return {
        "success": not batch.failures,
        "data": {
            "succeeded": [
                {"student_id": d.student_id, "student_name": d.student_name, "filename": bulletin_filename(d)}
                for d in batch.documents
            ],
            "failed": [f.model_dump() for f in batch.failures],
        },
        "message": f"성공 {len(batch.documents)}건, 실패 {len(batch.failures)}건",
    }
