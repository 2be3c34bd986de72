from sqlalchemy import create_engine               # SQLAlchemy 引擎
from sqlalchemy.orm import declarative_base, sessionmaker

from config.settings import settings               # ✅ 環境變數設定

# SQLite 需關閉同執行緒檢查 (本機/測試用)
CONNECT_ARGS = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}

# ✅ 依設定建立引擎
engine = create_engine(
    settings.DB_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
    connect_args=CONNECT_ARGS,
)

# ✅ Session 工廠
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# ✅ 所有模型繼承的 Base
Base = declarative_base()


# ==========================================================
# [共用] DB Session 依賴
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # 匯入模型，確保 metadata 已註冊所有資料表
    from models import leave_requests, lessons, students  # noqa: F401

    Base.metadata.create_all(bind=engine)
