"""
services/class_statistics.py

학급 단위 성적 통계
1) 명단의 모든 재학생에 대해 과목별 평균 + 가중 전체 평균 계산 (학생별 독립 → 스레드 풀 분산)
2) 전원 결과가 모인 뒤(barrier) 순위와 과목별 학급 평균/최저/최고 산출

원장 조회는 fan-out 전에 한 번만 수행합니다. 스레드에서는 DB 세션을 건드리지 않습니다.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from schemas.bulletins import (
    ClassStatistics,
    ClassSubjectStatistics,
    RankingPolicy,
    StudentPerformance,
    StudentRank,
)
from schemas.grades import GradeEntry
from services.bulletin_calculator import aggregate_subjects, compute_general_average, round2
from services.ledger import GradeLedger

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def compute_student_performance(
    student_id: int,
    entries: Sequence[GradeEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    subject_coefficients: Optional[Mapping[str, float]] = None,
) -> StudentPerformance:
    subject_averages = aggregate_subjects(entries, start_date, end_date, subject_coefficients)
    return StudentPerformance(
        student_id=student_id,
        subject_averages=subject_averages,
        result=compute_general_average(subject_averages),
    )


def rank_students(
    performances: Sequence[StudentPerformance],
    policy: RankingPolicy = RankingPolicy.SEQUENTIAL,
) -> Dict[int, StudentRank]:
    """
    전체 평균 내림차순 순위.
    - 정렬은 안정 정렬이므로 동점자는 입력(명단) 순서를 유지
    - SEQUENTIAL  : 순위 = 정렬 위치 (1..N, 공동 순위 없음)
    - COMPETITION : 동점자는 같은 순위, 다음 순위는 건너뜀
    """
    ordered = sorted(performances, key=lambda p: p.result.general_average, reverse=True)

    ranks: Dict[int, StudentRank] = {}
    previous_average = None
    previous_rank = 0
    for position, p in enumerate(ordered, start=1):
        average = p.result.general_average
        if policy == RankingPolicy.COMPETITION and average == previous_average:
            rank = previous_rank
        else:
            rank = position
        ranks[p.student_id] = StudentRank(rank=rank, average=average)
        previous_average, previous_rank = average, rank
    return ranks


def subject_statistics(performances: Sequence[StudentPerformance]) -> Dict[str, ClassSubjectStatistics]:
    """과목별 학생 평균 모음 → 학급 평균(반올림) / 최저 / 최고(값 그대로)"""
    collected: Dict[str, List[float]] = {}
    for p in performances:
        for sa in p.subject_averages:
            collected.setdefault(sa.subject, []).append(sa.average)

    return {
        subject: ClassSubjectStatistics(
            subject=subject,
            class_average=round2(sum(values) / len(values)),
            min_average=min(values),
            max_average=max(values),
        )
        for subject, values in collected.items()
    }


def compute_class_statistics(
    roster: Sequence[int],
    ledger: GradeLedger,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    ranking: RankingPolicy = RankingPolicy.SEQUENTIAL,
    subject_coefficients: Optional[Mapping[str, float]] = None,
    max_workers: Optional[int] = None,
) -> ClassStatistics:
    """
    명단(재학생 ID, 명단 순서)과 기간으로 학급 통계를 계산합니다.
    명단이 비어 있으면 빈 통계를 반환합니다 (예외 아님).
    """
    ranking = RankingPolicy(ranking)
    if not roster:
        return ClassStatistics()

    entries_by_student = ledger.fetch_entries_for_students(roster, start_date, end_date)

    workers = max(1, min(max_workers or DEFAULT_MAX_WORKERS, len(roster)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        # map 은 입력 순서대로 결과를 돌려줌 → 명단 순서 보존
        performances = list(pool.map(
            lambda sid: compute_student_performance(
                sid, entries_by_student.get(sid, []), start_date, end_date, subject_coefficients
            ),
            roster,
        ))

    stats = ClassStatistics(
        class_stats=subject_statistics(performances),
        student_ranks=rank_students(performances, ranking),
        total_students=len(performances),
        performances=performances,
    )
    logger.info(
        "학급 통계 계산 완료: 학생 %d명, 과목 %d개 (ranking=%s)",
        stats.total_students, len(stats.class_stats), ranking.value,
    )
    return stats
