from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from config.settings import settings

# ✅ 全域 logging 設定 (等級由 LOG_LEVEL 控制)
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# HTTP 函式庫的除錯訊息關閉
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


# ✅ 中介層
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ 路由
from routers import admin_leave, student_leave

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
)

# ✅ CORS 設定 (前端 Next.js)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ 請求耗時量測 (回應標頭 X-Latency-Ms)
app.add_middleware(TimingMiddleware)

# ✅ 全域錯誤處理 (統一 {success: false, error} 格式)
add_error_handlers(app)

# ✅ /api 前綴路由
app.include_router(student_leave.router, prefix="/api")   # 學生請假申請
app.include_router(admin_leave.router,   prefix="/api")   # 管理端審批


# ✅ 健康檢查
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}


@app.get("/")
def root():
    return {"message": f"{settings.APP_TITLE} - {settings.APP_DESCRIPTION}"}
