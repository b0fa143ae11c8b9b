from sqlalchemy import create_engine               # SQLAlchemy 엔진 생성 도구
from sqlalchemy.orm import declarative_base, sessionmaker  # 모델 Base 클래스 / 세션 팩토리

from config.settings import settings               # ✅ 환경변수 설정 파일 불러오기

# ✅ SQLite는 스레드 간 커넥션 공유 허용 필요 (FastAPI 워커 스레드)
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# ✅ 환경변수에서 DB 연결 URL을 불러와 엔진 생성
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

# ✅ 세션 팩토리: DB 연결에 사용할 세션 생성기 정의
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ 모델 정의 시 상속할 Base 클래스 (Declarative 방식 사용)
Base = declarative_base()


# ==========================================================
# [공통] DB 세션 관리 (라우터 Depends 용)
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
