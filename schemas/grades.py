from datetime import date as Date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AssessmentKind(str, Enum):
    """평가 유형 (원장에 기록되는 값 그대로)"""
    QUIZ = "Interrogation"
    HOMEWORK = "Devoir"
    MONTHLY_EXAM = "Composition Mensuelle"
    NATIONAL_EXAM = "Composition Nationale"
    ZONE_EXAM = "Composition de Zone"


# ==========================================================
# [입력용 스키마]
# ==========================================================
class GradeEntryCreate(BaseModel):
    # 점수/계수 범위는 검증하지 않음 (집계 엔진은 값 그대로 계산)
    student_id: int                          # 학생 ID
    subject: str = Field(..., min_length=1)  # 과목 이름 (대소문자 구분)
    kind: AssessmentKind                     # 평가 유형
    date: Date                               # 평가 일자
    score: float                             # 점수 (0~20 관례)
    coefficient: float = 1                   # 평가 계수


# ==========================================================
# [출력용 / 계산 입력 레코드]
# ==========================================================
class GradeEntry(GradeEntryCreate):
    id: Optional[int] = None                 # 원장 기록 ID (메모리 원장은 None 허용)

    model_config = ConfigDict(from_attributes=True, frozen=True)
