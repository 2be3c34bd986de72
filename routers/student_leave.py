from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from schemas.leave_requests import EligibleLesson, LeaveApplicationCreate, LeaveRequestOut
from services.leave_service import LeaveService

router = APIRouter(prefix="/student", tags=["學生請假"])


# ✅ [CREATE] 送出請假申請 (事假自動批准 / 病假待審批)
@router.post("/leave-application")
def submit_leave_application(application: LeaveApplicationCreate, db: Session = Depends(get_db)):
    record = LeaveService(db).submit(application)
    return {
        "success": True,
        "data": LeaveRequestOut.model_validate(record).model_dump(mode="json"),
    }


# ✅ [READ] 學生的請假紀錄 (前端請假紀錄視窗使用 /leave-requests)
@router.get("/leave-requests")
@router.get("/leave-application")
def read_leave_history(
    student_id: str = Query(..., alias="studentId", description="學生 ID"),
    db: Session = Depends(get_db),
):
    records = LeaveService(db).list_for_student(student_id)
    return {
        "success": True,
        "data": [LeaveRequestOut.model_validate(r).model_dump(mode="json") for r in records],
    }


# ✅ [READ] 目前可申請的課堂
@router.get("/leave-application/eligible-lessons")
def read_eligible_lessons(
    student_id: str = Query(..., alias="studentId"),
    leave_type: str = Query("personal", alias="leaveType", description="personal / sick"),
    db: Session = Depends(get_db),
):
    lessons = LeaveService(db).eligible_lessons(student_id, leave_type)
    return {
        "success": True,
        "data": [EligibleLesson.model_validate(lesson).model_dump(mode="json") for lesson in lessons],
    }
