from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date, datetime


# ==========================================================
# [輸入用 Schema] 前端以 camelCase 傳入
# ==========================================================
class LeaveApplicationCreate(BaseModel):
    student_id: Optional[str] = Field(None, alias="studentId")       # 學生 ID
    org_id: Optional[str] = Field(None, alias="orgId")               # 機構 ID
    lesson_id: Optional[str] = Field(None, alias="lessonId")         # 課堂 ID
    lesson_date: Optional[date] = Field(None, alias="lessonDate")    # 課堂日期 (僅作核對)
    leave_type: Optional[str] = Field(None, alias="leaveType")       # personal / sick
    proof_url: Optional[str] = Field(None, alias="proofUrl")         # 醫生證明連結

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("lesson_date", mode="before")
    @classmethod
    def _date_part(cls, v):
        if v == "":
            return None
        # "2025-03-14T00:00:00.000Z" 之類的 ISO 字串只取日期部分
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class LeaveReviewUpdate(BaseModel):
    request_id: Optional[str] = Field(None, alias="requestId")
    status: Optional[str] = None                                      # approved / rejected
    review_notes: Optional[str] = Field(None, alias="reviewNotes")
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==========================================================
# [輸出用 Schema] 與資料表欄位同名 (snake_case)
# ==========================================================
class StudentBrief(BaseModel):
    full_name: str
    nick_name: Optional[str] = None
    student_oid: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveRequestOut(BaseModel):
    id: str
    student_id: str
    org_id: Optional[str] = None
    lesson_id: str
    lesson_date: date
    leave_type: str
    status: str
    proof_url: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveRequestWithStudent(LeaveRequestOut):
    student: Optional[StudentBrief] = None


class EligibleLesson(BaseModel):
    id: str
    lesson_date: date
    regular_timeslot: Optional[str] = None
    actual_timeslot: Optional[str] = None
    lesson_status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
