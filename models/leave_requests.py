import uuid

from sqlalchemy import Column, String, Date, DateTime, Text, ForeignKey, func
from sqlalchemy.orm import relationship
from database.db import Base


class LeaveRequest(Base):
    __tablename__ = "hanami_leave_requests"  # 請假申請紀錄 (不刪除)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))   # 申請 ID
    student_id = Column(String(36), ForeignKey("Hanami_Students.id"), nullable=False, index=True)
    org_id = Column(String(36), index=True)
    lesson_id = Column(String(36), ForeignKey("hanami_student_lesson.id"), nullable=False, index=True)
    lesson_date = Column(Date, nullable=False)                  # 請假課堂日期 (每月上限以此計算)
    leave_type = Column(String(20), nullable=False)             # personal / sick
    status = Column(String(20), nullable=False, default="pending")  # pending / approved / rejected
    proof_url = Column(String(500))                             # 醫生證明 (病假必填)
    reviewed_at = Column(DateTime(timezone=True))
    reviewed_by = Column(String(100))                           # 審批人 ('system' = 自動批准)
    review_notes = Column(Text)
    rejection_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    student = relationship("Student", lazy="joined")
