"""
schemas/common.py

- 全專案共用的回應格式 (Pydantic v2)
- 前端一律以 success 判斷成功與否，失敗時直接顯示 error 字串
- 成功回應由各路由直接回傳 {"success": True, "data": ...}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """
    錯誤回應
    - middlewares/error_handler.py 的所有 handler 皆以此格式回傳
    """
    success: bool = False
    error: str = Field(..., description="可直接顯示給使用者的錯誤訊息")

    model_config = ConfigDict(extra="ignore")

