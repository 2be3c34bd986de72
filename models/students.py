import uuid

from sqlalchemy import Column, Integer, String, DateTime, func
from database.db import Base


class Student(Base):
    __tablename__ = "Hanami_Students"  # 學生基本資料表 (僅列出請假流程用到的欄位)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))  # 學生 ID (uuid)
    org_id = Column(String(36), index=True)                     # 所屬機構 ID
    full_name = Column(String(100), nullable=False)             # 全名
    nick_name = Column(String(100))                             # 暱稱
    student_oid = Column(String(50))                            # 學生編號

    # 請假流程維護的彙總計數
    pending_confirmation_count = Column(Integer, nullable=False, default=0, server_default="0")    # 待審批病假數
    approved_lesson_nonscheduled = Column(Integer, nullable=False, default=0, server_default="0")  # 已批准但未補堂數

    created_at = Column(DateTime(timezone=True), server_default=func.now())
