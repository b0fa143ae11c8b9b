"""
services/bulletin_calculator.py

학생 1명 단위 성적 계산 (순수 함수, 부수효과 없음)
- aggregate_subjects        : 평가 원장 → 과목별 평균 (SubjectAverage)
- compute_general_average   : 과목별 평균 → 가중 전체 평균 (StudentAverageResult)

점수 범위(0~20)나 계수 부호는 검증하지 않습니다. 범위를 벗어난 값도 그대로 계산에 사용하며,
검증은 원장에 기록하는 쪽의 책임입니다.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional

from schemas.bulletins import StudentAverageResult, SubjectAverage
from schemas.grades import GradeEntry

_CENT = Decimal("0.01")


def in_period(entry_date: date, start_date: Optional[date] = None, end_date: Optional[date] = None) -> bool:
    """기간 포함 여부 (양 끝 포함). 경계가 없으면 해당 방향은 무제한"""
    if start_date is not None and entry_date < start_date:
        return False
    if end_date is not None and entry_date > end_date:
        return False
    return True


def round2(value: float) -> float:
    """소수 둘째 자리 반올림 (half-up). float 이진 오차 회피를 위해 str 경유"""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def aggregate_subjects(
    entries: Iterable[GradeEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    subject_coefficients: Optional[Mapping[str, float]] = None,
) -> List[SubjectAverage]:
    """
    과목명(정확히 일치, 대소문자 구분)으로 묶어 과목별 평균을 계산합니다.

    - average     : 기간 내 점수의 산술 평균, 소수 둘째 자리 반올림
    - coefficient : 과목 계수 표(subject_coefficients)에 있으면 그 값,
                    없으면 해당 과목에서 처음 나온 평가의 계수
    - 결과 순서    : 과목이 처음 등장한 순서
    """
    grouped: Dict[str, List[GradeEntry]] = {}
    for entry in entries:
        if not in_period(entry.date, start_date, end_date):
            continue
        grouped.setdefault(entry.subject, []).append(entry)

    averages = []
    for subject, grades in grouped.items():
        mean = sum(g.score for g in grades) / len(grades)

        if subject_coefficients is not None and subject in subject_coefficients:
            coefficient = subject_coefficients[subject]
        else:
            coefficient = grades[0].coefficient

        averages.append(SubjectAverage(
            subject=subject,
            average=round2(mean),
            coefficient=coefficient,
            grades=grades,
        ))
    return averages


def compute_general_average(subject_averages: Iterable[SubjectAverage]) -> StudentAverageResult:
    """Σ(평균×계수) / Σ(계수). 계수 합이 0이면(과목 없음) 전체 평균은 0"""
    total_points = 0.0
    total_coef = 0.0
    for sa in subject_averages:
        total_points += sa.average * sa.coefficient
        total_coef += sa.coefficient

    general = total_points / total_coef if total_coef > 0 else 0.0

    return StudentAverageResult(
        general_average=round2(general),
        total_weighted_points=round2(total_points),
        total_coefficient=total_coef,
    )
