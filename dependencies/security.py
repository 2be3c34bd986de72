from typing import Optional, Annotated
from fastapi import Header, HTTPException
from config.settings import settings
import hmac

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]
ReviewerHeader = Annotated[Optional[str], Header(alias="X-Reviewer")]


def require_admin_token(authorization: AuthHeader = None):
    """
    管理端 API 保護
    - 審批請求由管理後台的伺服器端轉發，使用內部共用 Token，
      而非學生或家長的登入 session
    """
    # 設定漏填時直接回報，避免管理端 API 在無保護下開放
    if not settings.ADMIN_API_TOKEN:
        raise HTTPException(status_code=500, detail="Server token not configured")

    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # "Bearer <token>" 解析
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid auth scheme",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 固定時間比較
    if not hmac.compare_digest(token.strip(), settings.ADMIN_API_TOKEN):
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"client": "admin"}


def get_reviewer(x_reviewer: ReviewerHeader = None) -> str:
    # 審批人名稱由管理端前端帶入，未帶時記為 admin
    return (x_reviewer or "").strip() or "admin"
