"""
schemas/common.py

- 프로젝트 전반에서 재사용할 공용 스키마 모음
- Pydantic v2 기준
- 포함 내용:
  1) 에러 응답 표준: ErrorDetail, ErrorResponse
  2) 페이지네이션 메타: Pagination, MetaInfo, make_meta()
"""

from __future__ import annotations

from datetime import datetime, timezone
from math import ceil
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


# =========================================================
# 1) 에러 응답 표준
# =========================================================

class ErrorDetail(BaseModel):
    """에러 코드/메시지를 담는 최소 단위"""
    code: str = Field(..., description="에러 식별 코드 (예: INTERNAL_ERROR, STUDENT_NOT_FOUND)")
    message: str = Field(..., description="사람이 읽을 수 있는 에러 메시지")

class ErrorResponse(BaseModel):
    """
    전역 에러 핸들러에서 내려주는 표준 에러 응답
    - middlewares/error_handler.py 에서 사용
    """
    success: bool = False
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="응답 생성 시각 (UTC)"
    )
    trace_id: Optional[str] = Field(
        default=None, description="요청 추적용 ID(X-Request-ID 등을 복사해 넣을 수 있음)"
    )

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 2) 페이지네이션 요청/메타
# =========================================================

class Pagination(BaseModel):
    """
    목록 조회 시 공통으로 쓰는 페이징 파라미터
    - page: 1부터 시작
    - size: 1~200
    """
    page: int = Field(1, ge=1, description="현재 페이지(1부터 시작)")
    size: int = Field(50, ge=1, le=200, description="페이지당 항목 수")

    model_config = ConfigDict(extra="ignore")


class MetaInfo(BaseModel):
    """
    목록 응답에 포함시키는 메타 정보
    - total: 전체 개수
    - page/size: 현재 페이지와 크기
    - pages: 총 페이지 수
    """
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    size: int = Field(..., ge=1)
    pages: int = Field(..., ge=1)

    model_config = ConfigDict(extra="ignore")


def make_meta(total: int, page: int, size: int) -> MetaInfo:
    """
    페이징 메타를 계산해서 생성
    - total 이 0이어도 pages는 최소 1로 보장(프론트 처리 단순화)
    """
    pages = max(1, ceil(total / max(1, size)))
    return MetaInfo(total=total, page=page, size=size, pages=pages)
