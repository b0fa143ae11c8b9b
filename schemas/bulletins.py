"""
schemas/bulletins.py

- 성적 집계/성적표 생성 과정에서 만들어지는 계산 레코드 모음
- 모든 계산 결과는 frozen (한 번 만들어지면 변경 불가)
- 흐름: GradeEntry → SubjectAverage → StudentAverageResult → ClassStatistics → ReportCardDocument
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.grades import GradeEntry


class RankingPolicy(str, Enum):
    SEQUENTIAL = "sequential"      # 동점이어도 1..N 연속 순위 (명단 순서로 동점 처리)
    COMPETITION = "competition"    # 동점 공동 순위, 다음 순위 건너뜀 (1, 2, 2, 4)


class BulletinOrder(str, Enum):
    ROSTER = "roster"              # 명단 순서 (이름순)
    RANK = "rank"                  # 순위 순서


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# =========================================================
# 1) 학생 단위 계산 결과
# =========================================================

class SubjectAverage(_Record):
    """학생 1명의 과목별 평균 (기간 내 평가 점수의 산술 평균)"""
    subject: str
    average: float
    coefficient: float
    grades: List[GradeEntry] = Field(default_factory=list)


class StudentAverageResult(_Record):
    """가중 전체 평균. total_coefficient 가 0 이면 general_average 는 0"""
    general_average: float
    total_weighted_points: float
    total_coefficient: float


class StudentPerformance(_Record):
    student_id: int
    subject_averages: List[SubjectAverage]
    result: StudentAverageResult


# =========================================================
# 2) 학급 단위 계산 결과
# =========================================================

class ClassSubjectStatistics(_Record):
    subject: str
    class_average: float
    min_average: float
    max_average: float


class StudentRank(_Record):
    rank: int
    average: float


class ClassStatistics(_Record):
    class_stats: Dict[str, ClassSubjectStatistics] = Field(default_factory=dict)
    student_ranks: Dict[int, StudentRank] = Field(default_factory=dict)
    total_students: int = 0
    performances: List[StudentPerformance] = Field(default_factory=list)

    def performance_for(self, student_id: int) -> Optional[StudentPerformance]:
        for p in self.performances:
            if p.student_id == student_id:
                return p
        return None


# =========================================================
# 3) 성적표 문서
# =========================================================

class StudentIdentity(_Record):
    student_id: int
    student_name: str
    matricule: Optional[str] = None
    class_id: int
    class_name: str


class SubjectRow(_Record):
    subject: str
    teacher_name: Optional[str] = None
    coefficient: float
    average: float
    weighted_total: float
    class_average: Optional[float] = None
    class_min: Optional[float] = None
    class_max: Optional[float] = None
    remark: Optional[str] = None


class ReportCardDocument(_Record):
    student_id: int
    student_name: str
    matricule: Optional[str] = None
    class_name: str
    school_year: str
    term: str
    subject_rows: List[SubjectRow] = Field(default_factory=list)
    general_average: float
    total_weighted_points: float
    total_coefficient: float
    rank: Optional[int] = None
    total_students: Optional[int] = None
    mention: str
    council_comment: Optional[str] = None


class SchoolBranding(_Record):
    """학교 표시 정보 (로고/서명은 URL 또는 data URI 문자열을 그대로 전달)"""
    school_name: str
    address: Optional[str] = None
    logo_url: Optional[str] = None
    signature_url: Optional[str] = None


# =========================================================
# 4) 일괄 생성 결과
# =========================================================

class BulletinFailure(_Record):
    student_id: int
    student_name: Optional[str] = None
    error: str


class BulletinBatch(_Record):
    documents: List[ReportCardDocument] = Field(default_factory=list)
    failures: List[BulletinFailure] = Field(default_factory=list)


# =========================================================
# 5) 요청 바디
# =========================================================

class BulletinRequest(BaseModel):
    term: str = Field(..., min_length=1, description='기간 이름 (예: "Trimestre 1")')
    school_year: Optional[str] = Field(default=None, description="미지정 시 설정값 SCHOOL_YEAR")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    ranking: Optional[RankingPolicy] = None
    order: BulletinOrder = BulletinOrder.ROSTER
    council_comment: Optional[str] = None
    council_comments: Dict[int, str] = Field(default_factory=dict, description="학생 ID별 학급 회의 의견")
    remarks: Dict[str, str] = Field(default_factory=dict, description="과목별 교사 의견 (appréciation)")
