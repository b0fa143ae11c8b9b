from sqlalchemy import Column, Integer, String, ForeignKey
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # 학생 기본 정보 테이블

    id = Column(Integer, primary_key=True, index=True)               # 고유 학생 ID (Primary Key)
    student_name = Column(String(100), nullable=False)              # 학생 이름
    matricule = Column(String(50))                                  # 학적 번호 (matricule)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)  # 소속 반 ID
    status = Column(String(20), nullable=False, default="Actif")    # 재학 상태 (Actif 만 집계 대상)
