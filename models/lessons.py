import uuid

from sqlalchemy import Column, String, Date, ForeignKey
from database.db import Base


class Lesson(Base):
    __tablename__ = "hanami_student_lesson"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))   # 課堂 ID
    student_id = Column(String(36), ForeignKey("Hanami_Students.id"), nullable=False, index=True)  # 學生 ID
    org_id = Column(String(36), index=True)                     # 所屬機構 ID
    lesson_date = Column(Date, nullable=False)                  # 上課日期
    regular_timeslot = Column(String(20))                       # 固定時段 (例: 10:00:00)
    actual_timeslot = Column(String(20))                        # 實際時段 (調堂後)
    lesson_status = Column(String(20), nullable=True)           # 課堂狀態 ('請假' 或 NULL 等)
