"""
services/bulletin_service.py

원장/명단/학생 정보 → 계산 엔진 → 성적표 문서 조립까지 연결하는 서비스 계층
- 학생 1명 성적표 (학급 순위/통계 포함)
- 학급 전체 성적표 일괄 생성: 학생별 파이프라인을 격리하여 한 명의 실패가 전체를 중단시키지 않음
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from schemas.bulletins import (
    BulletinBatch,
    BulletinFailure,
    BulletinOrder,
    ClassStatistics,
    RankingPolicy,
    ReportCardDocument,
    StudentPerformance,
)
from services.class_statistics import compute_class_statistics, compute_student_performance
from services.ledger import (
    GradeLedger,
    Roster,
    SqlGradeLedger,
    SqlRoster,
    SqlStudentDirectory,
    StudentDirectory,
    load_subject_coefficients,
)
from services.report_card import compose_report_card

logger = logging.getLogger(__name__)


class BulletinService:
    def __init__(
        self,
        ledger: GradeLedger,
        roster: Roster,
        directory: StudentDirectory,
        school_year: Optional[str] = None,
        ranking: RankingPolicy = RankingPolicy.SEQUENTIAL,
        subject_coefficients: Optional[Mapping[str, float]] = None,
        max_workers: Optional[int] = None,
    ):
        self.ledger = ledger
        self.roster = roster
        self.directory = directory
        self.school_year = school_year or settings.SCHOOL_YEAR
        self.ranking = RankingPolicy(ranking)
        self.subject_coefficients = subject_coefficients
        self.max_workers = max_workers or settings.BULLETIN_MAX_WORKERS

    @classmethod
    def from_session(cls, db: Session) -> "BulletinService":
        """설정값(정책/학년도)을 반영해 SQL 협력자로 서비스 구성"""
        coefficients = None
        if settings.COEFFICIENT_POLICY == "subject_table":
            coefficients = load_subject_coefficients(db)
        return cls(
            ledger=SqlGradeLedger(db),
            roster=SqlRoster(db),
            directory=SqlStudentDirectory(db),
            ranking=RankingPolicy(settings.RANKING_POLICY),
            subject_coefficients=coefficients,
        )

    # ==========================================================
    # [계산]
    # ==========================================================
    def student_performance(
        self, student_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> StudentPerformance:
        self.directory.get_student(student_id)  # 없는 학생이면 StudentNotFoundError
        entries = self.ledger.fetch_entries(student_id, start_date, end_date)
        performance = compute_student_performance(
            student_id, entries, start_date, end_date, self.subject_coefficients
        )
        self._warn_unconfigured_subjects([performance])
        return performance

    def class_statistics(
        self,
        class_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        ranking: Optional[RankingPolicy] = None,
    ) -> ClassStatistics:
        roster = self.roster.fetch_active_students(class_id)
        stats = compute_class_statistics(
            roster,
            self.ledger,
            start_date,
            end_date,
            ranking=ranking or self.ranking,
            subject_coefficients=self.subject_coefficients,
            max_workers=self.max_workers,
        )
        self._warn_unconfigured_subjects(stats.performances)
        return stats

    def _warn_unconfigured_subjects(self, performances: Iterable[StudentPerformance]) -> None:
        if self.subject_coefficients is None:
            return
        missing = sorted({
            sa.subject
            for p in performances
            for sa in p.subject_averages
            if sa.subject not in self.subject_coefficients
        })
        if missing:
            logger.warning("과목 계수 미설정 → 첫 평가 계수 사용: subjects=%s", ", ".join(missing))

    # ==========================================================
    # [성적표 문서]
    # ==========================================================
    def _compose(
        self,
        performance: StudentPerformance,
        stats: ClassStatistics,
        term: str,
        school_year: Optional[str],
        remarks: Optional[Dict[str, str]],
        council_comment: Optional[str],
    ) -> ReportCardDocument:
        identity = self.directory.get_student(performance.student_id)
        rank = stats.student_ranks.get(performance.student_id)
        teacher_names = self.directory.teacher_names(
            identity.class_id, [sa.subject for sa in performance.subject_averages]
        )
        return compose_report_card(
            identity=identity,
            school_year=school_year or self.school_year,
            term=term,
            subject_averages=performance.subject_averages,
            result=performance.result,
            rank=rank.rank if rank else None,
            total_students=stats.total_students if rank else None,
            class_stats=stats.class_stats,
            teacher_names=teacher_names,
            remarks=remarks,
            council_comment=council_comment,
        )

    def student_bulletin(
        self,
        student_id: int,
        term: str,
        school_year: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        ranking: Optional[RankingPolicy] = None,
        remarks: Optional[Dict[str, str]] = None,
        council_comment: Optional[str] = None,
    ) -> ReportCardDocument:
        identity = self.directory.get_student(student_id)
        stats = self.class_statistics(identity.class_id, start_date, end_date, ranking)
        performance = stats.performance_for(student_id)
        if performance is None:
            # 비재학 학생: 기간 필터를 적용한 단독 계산 (순위 없음)
            performance = self.student_performance(student_id, start_date, end_date)
        return self._compose(performance, stats, term, school_year, remarks, council_comment)

    def class_bulletins(
        self,
        class_id: int,
        term: str,
        school_year: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        ranking: Optional[RankingPolicy] = None,
        order: BulletinOrder = BulletinOrder.ROSTER,
        remarks: Optional[Dict[str, str]] = None,
        council_comments: Optional[Dict[int, str]] = None,
    ) -> BulletinBatch:
        """
        학급 전체 성적표. 학생별 조립은 서로 격리되어 실패한 학생은 failures 에 기록하고 계속 진행.
        order=RANK 이면 순위 순, 아니면 명단(이름) 순.
        """
        stats = self.class_statistics(class_id, start_date, end_date, ranking)
        council_comments = council_comments or {}

        performances: List[StudentPerformance] = list(stats.performances)
        if BulletinOrder(order) == BulletinOrder.RANK:
            performances.sort(key=lambda p: stats.student_ranks[p.student_id].rank)

        documents: List[ReportCardDocument] = []
        failures: List[BulletinFailure] = []
        for performance in performances:
            sid = performance.student_id
            try:
                documents.append(self._compose(
                    performance, stats, term, school_year, remarks, council_comments.get(sid)
                ))
            except Exception as e:
                logger.exception("성적표 생성 실패: class_id=%s student_id=%s", class_id, sid)
                failures.append(BulletinFailure(student_id=sid, student_name=self._safe_name(sid), error=str(e)))

        logger.info(
            "학급 성적표 생성: class_id=%s 성공 %d건, 실패 %d건", class_id, len(documents), len(failures)
        )
        return BulletinBatch(documents=documents, failures=failures)

    def _safe_name(self, student_id: int) -> Optional[str]:
        try:
            return self.directory.get_student(student_id).student_name
        except Exception:
            logger.debug("학생 이름 조회 실패: student_id=%s", student_id)
            return None
