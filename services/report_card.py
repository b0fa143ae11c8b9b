"""
services/report_card.py

성적표(Bulletin de notes) 문서 조립 (순수 변환, I/O 없음)
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from schemas.bulletins import (
    ClassSubjectStatistics,
    ReportCardDocument,
    StudentAverageResult,
    StudentIdentity,
    SubjectAverage,
    SubjectRow,
)
from services.bulletin_calculator import round2

# (하한, 평가) — 위에서부터 처음 만족하는 구간, 하한 포함
MENTION_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (18, "Excellent"),
    (16, "Très Bien"),
    (14, "Bien"),
    (12, "Assez Bien"),
    (10, "Passable"),
)
MENTION_FAIL = "Insuffisant"


def mention_for(average: float) -> str:
    for threshold, label in MENTION_THRESHOLDS:
        if average >= threshold:
            return label
    return MENTION_FAIL


def build_subject_rows(
    subject_averages: Sequence[SubjectAverage],
    class_stats: Optional[Mapping[str, ClassSubjectStatistics]] = None,
    teacher_names: Optional[Mapping[str, str]] = None,
    remarks: Optional[Mapping[str, str]] = None,
) -> List[SubjectRow]:
    """과목 행 목록. 평균 내림차순 (동점은 원래 순서 유지)"""
    class_stats = class_stats or {}
    teacher_names = teacher_names or {}
    remarks = remarks or {}

    rows = []
    for sa in sorted(subject_averages, key=lambda s: s.average, reverse=True):
        stats = class_stats.get(sa.subject)
        rows.append(SubjectRow(
            subject=sa.subject,
            teacher_name=teacher_names.get(sa.subject),
            coefficient=sa.coefficient,
            average=sa.average,
            weighted_total=round2(sa.average * sa.coefficient),
            class_average=stats.class_average if stats else None,
            class_min=stats.min_average if stats else None,
            class_max=stats.max_average if stats else None,
            remark=remarks.get(sa.subject),
        ))
    return rows


def compose_report_card(
    identity: StudentIdentity,
    school_year: str,
    term: str,
    subject_averages: Sequence[SubjectAverage],
    result: StudentAverageResult,
    rank: Optional[int] = None,
    total_students: Optional[int] = None,
    class_stats: Optional[Mapping[str, ClassSubjectStatistics]] = None,
    teacher_names: Optional[Dict[str, str]] = None,
    remarks: Optional[Dict[str, str]] = None,
    council_comment: Optional[str] = None,
) -> ReportCardDocument:
    return ReportCardDocument(
        student_id=identity.student_id,
        student_name=identity.student_name,
        matricule=identity.matricule,
        class_name=identity.class_name,
        school_year=school_year,
        term=term,
        subject_rows=build_subject_rows(subject_averages, class_stats, teacher_names, remarks),
        general_average=result.general_average,
        total_weighted_points=result.total_weighted_points,
        total_coefficient=result.total_coefficient,
        rank=rank,
        total_students=total_students,
        mention=mention_for(result.general_average),
        council_comment=council_comment,
    )
