import csv
import sys
from datetime import date

from sqlalchemy.orm import Session

from database.db import Base, SessionLocal, engine
from models.grade_entries import GradeEntry as GradeEntryModel  # ✅ 모델 import
from schemas.grades import AssessmentKind

CSV_PATH = "data/grade_entries.csv"  # ✅ 기본 파일 경로 (student_id,subject,kind,date,score,coefficient)


def import_grade_entries(csv_path: str = CSV_PATH) -> int:
    Base.metadata.create_all(bind=engine)
    db: Session = SessionLocal()
    count = 0
    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
            reader = csv.DictReader(csvfile)
            for row in reader:
                entry = GradeEntryModel(
                    student_id=int(row["student_id"]),                       # 학생 ID
                    subject=row["subject"].strip(),                         # 과목 이름
                    kind=AssessmentKind(row["kind"].strip()).value,         # 평가 유형
                    date=date.fromisoformat(row["date"].strip()),           # 평가 일자 (YYYY-MM-DD)
                    score=float(row["score"]),                              # 점수 (범위 검증 없음)
                    coefficient=float(row.get("coefficient") or 1),         # 평가 계수
                )
                db.add(entry)
                count += 1
        db.commit()
    finally:
        db.close()
    print(f"✅ 성적 원장 CSV → DB 마이그레이션 완료 ({count}건)")
    return count


if __name__ == "__main__":
    import_grade_entries(sys.argv[1] if len(sys.argv) > 1 else CSV_PATH)
