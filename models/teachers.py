from sqlalchemy import Column, Integer, String
from database.db import Base

class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)      # 교사 고유 ID (PK)
    first_name = Column(String(100), nullable=False)        # 이름
    last_name = Column(String(100), nullable=False)         # 성
    subject = Column(String(100))                           # 담당 과목 (과목명 문자열)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
