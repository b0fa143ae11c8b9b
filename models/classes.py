from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base

class Class(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)      # 학급 고유 ID (PK)
    class_name = Column(String(50), nullable=False)         # 학급명 (예: 6ème A, CM2)
    cycle = Column(String(50))                              # 교육 과정 (예: Enseignement Primaire, Secondaire)

    # ==========================================================
    # [관계 설정]
    # ==========================================================

    # ✅ 담임 교사(titulaire) ID (FK)
    #    - teachers.id를 참조
    main_teacher_id = Column(Integer, ForeignKey("teachers.id"))

    # ✅ 담임 교사와의 관계 (N:1)
    #    - 과목 교사가 없을 때 성적표 "Enseignant" 칸의 대체값으로 사용
    main_teacher = relationship(
        "Teacher",
        foreign_keys=[main_teacher_id]
    )
