from sqlalchemy import Column, Integer, Float, String, Date, Index
from database.db import Base

class GradeEntry(Base):
    __tablename__ = "grade_entries"  # 평가별 원점수 원장 (ledger)

    id = Column(Integer, primary_key=True, index=True)     # 평가 기록 고유 ID
    student_id = Column(Integer, nullable=False)           # 학생 ID
    subject = Column(String(100), nullable=False)          # 과목 이름 (문자열 키, 대소문자 구분)
    kind = Column(String(50), nullable=False)              # 평가 유형 (Interrogation, Devoir, ...)
    date = Column(Date, nullable=False)                    # 평가 일자
    score = Column(Float, nullable=False)                  # 점수 (0~20, 검증하지 않음)
    coefficient = Column(Float, nullable=False, default=1) # 평가 계수

    __table_args__ = (
        Index("ix_grade_entries_student_date", "student_id", "date"),
    )
