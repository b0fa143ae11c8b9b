"""
학급 전체 성적표 PDF 일괄 생성 (학생별 파일)

예:
    python -m scripts.generate_bulletins --class-id 3 --term "Trimestre 1" \
        --start 2025-09-15 --end 2025-12-20 --out out/bulletins --order rank
"""

import argparse
import logging
from datetime import date
from pathlib import Path

from config.settings import settings
from database.db import SessionLocal
from schemas.bulletins import BulletinOrder, RankingPolicy
from services.bulletin_service import BulletinService
from services.pdf_service import PDFService, bulletin_filename

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="학급 성적표 PDF 일괄 생성")
    parser.add_argument("--class-id", type=int, required=True)
    parser.add_argument("--term", required=True, help='기간 이름 (예: "Trimestre 1")')
    parser.add_argument("--school-year", default=None)
    parser.add_argument("--start", type=date.fromisoformat, default=None)
    parser.add_argument("--end", type=date.fromisoformat, default=None)
    parser.add_argument("--ranking", choices=[p.value for p in RankingPolicy], default=None)
    parser.add_argument("--order", choices=[o.value for o in BulletinOrder], default=BulletinOrder.ROSTER.value)
    parser.add_argument("--out", default="out/bulletins")
    return parser.parse_args(argv)


def generate(args) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    db = SessionLocal()
    try:
        service = BulletinService.from_session(db)
        batch = service.class_bulletins(
            args.class_id,
            args.term,
            school_year=args.school_year,
            start_date=args.start,
            end_date=args.end,
            ranking=RankingPolicy(args.ranking) if args.ranking else None,
            order=BulletinOrder(args.order),
        )
    finally:
        db.close()

    # ✅ 학생별로 하나씩 렌더링 → 파일 저장 (렌더링 실패도 학생 단위로 격리)
    pdf_service = PDFService()
    written = 0
    failed = [(f.student_id, f.student_name, f.error) for f in batch.failures]

    def on_error(document, exc):
        logger.error("PDF 렌더링 실패: student_id=%s (%s)", document.student_id, exc)
        failed.append((document.student_id, document.student_name, str(exc)))

    by_filename = {bulletin_filename(d): d for d in batch.documents}
    for filename, content in pdf_service.iter_bulletin_pdfs(batch.documents, on_error=on_error):
        try:
            (out_dir / filename).write_bytes(content)
        except OSError as e:
            # 파일 저장 실패도 학생 단위로 기록하고 다음 학생 계속
            document = by_filename[filename]
            logger.error("PDF 저장 실패: student_id=%s (%s)", document.student_id, e)
            failed.append((document.student_id, document.student_name, str(e)))
            continue
        written += 1
        print(f"✅ {filename}")

    for student_id, name, error in failed:
        print(f"❌ student_id={student_id} ({name or '?'}): {error}")
    print(f"완료: 성공 {written}건, 실패 {len(failed)}건 → {out_dir}")
    return 1 if failed else 0


if __name__ == "__main__":
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL))
    raise SystemExit(generate(parse_args()))
