from sqlalchemy import Column, Integer, Float, String
from database.db import Base

class Subject(Base):
    __tablename__ = "subjects"  # 과목 정보 테이블

    id = Column(Integer, primary_key=True, index=True)         # 과목 고유 ID (Primary Key)
    name = Column(String(100), nullable=False, unique=True)   # 과목 이름 (grade_entries.subject 와 동일 문자열)
    coefficient = Column(Float, nullable=False, default=1)    # 과목 계수 (COEFFICIENT_POLICY=subject_table 일 때 사용)
