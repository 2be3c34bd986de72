from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_reviewer, require_admin_token
from schemas.leave_requests import LeaveRequestOut, LeaveRequestWithStudent, LeaveReviewUpdate
from services.leave_service import LeaveService

router = APIRouter(
    prefix="/admin/leave-requests",
    tags=["請假審批"],
    dependencies=[Depends(require_admin_token)],
)


# ✅ [READ] 待審批的請假申請 (含學生姓名)
@router.get("")
def read_pending_leave_requests(
    org_id: Optional[str] = Query(None, alias="orgId", description="機構 ID (選填)"),
    db: Session = Depends(get_db),
):
    records = LeaveService(db).list_pending(org_id)
    return {
        "success": True,
        "data": [LeaveRequestWithStudent.model_validate(r).model_dump(mode="json") for r in records],
    }


# ✅ [UPDATE] 批准 / 拒絕
@router.put("")
def review_leave_request(
    body: LeaveReviewUpdate,
    reviewer: str = Depends(get_reviewer),
    db: Session = Depends(get_db),
):
    record = LeaveService(db).review(
        body.request_id,
        body.status,
        reviewer=reviewer,
        review_notes=body.review_notes,
        rejection_reason=body.rejection_reason,
    )
    return {
        "success": True,
        "data": LeaveRequestOut.model_validate(record).model_dump(mode="json"),
    }


# ✅ [MAINTENANCE] 依實際申請重新計算學生的待審批數
@router.post("/recount")
def recount_pending_confirmation(
    student_id: str = Query(..., alias="studentId"),
    db: Session = Depends(get_db),
):
    pending = LeaveService(db).recount_pending(student_id)
    return {
        "success": True,
        "data": {"studentId": student_id, "pendingConfirmationCount": pending},
    }
