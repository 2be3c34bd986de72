"""
services/leave_service.py

請假申請的寫入流程
- 送出: 規則檢查 → 新增申請 → 課堂標記為「請假」 → 調整學生計數
- 審批: pending → approved / rejected，並同步課堂狀態與學生計數
每個流程都在同一個交易內完成，任何一步失敗整體 rollback。
計數以 SQL 原子運算更新 (col = col + 1)，不做先讀後寫。
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from config.settings import settings
from models.leave_requests import LeaveRequest as LeaveRequestModel
from models.lessons import Lesson as LessonModel
from models.students import Student as StudentModel
from schemas.leave_requests import LeaveApplicationCreate
from services.errors import (
    LeaveNotFoundError,
    LeavePolicyError,
    LeaveStateError,
    LeaveValidationError,
)
from services.leave_policy import (
    ERR_INVALID_TYPE,
    LEAVE_MARKER,
    LEAVE_TYPE_PERSONAL,
    LEAVE_TYPE_SICK,
    PERSONAL_NOTICE,
    REVIEW_STATUSES,
    SICK_WINDOW,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    SYSTEM_REVIEWER,
    VALID_LEAVE_TYPES,
    check_leave,
    is_eligible,
    lesson_start,
    month_bounds,
)

logger = logging.getLogger(__name__)

ERR_MISSING_PARAMS = "缺少必要參數"
ERR_STUDENT_NOT_FOUND = "找不到學生"
ERR_LESSON_NOT_FOUND = "找不到課堂"
ERR_LESSON_DATE_MISMATCH = "課堂日期不符"
ERR_ORG_MISMATCH = "機構不符"
ERR_ALREADY_ON_LEAVE = "此課堂已申請請假"
ERR_REQUEST_NOT_FOUND = "找不到請假申請"
ERR_INVALID_REVIEW_STATUS = "無效的審核狀態"
ERR_ALREADY_REVIEWED = "此申請已審核"


class LeaveService:
    def __init__(self, db: Session, tz: Optional[ZoneInfo] = None):
        self.db = db
        self.tz = tz or ZoneInfo(settings.TIMEZONE)

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or datetime.now(self.tz)

    # ===============================================================
    # 學生計數
    # ===============================================================
    def _adjust_counters(self, student_id: str, deltas: Dict[str, int]) -> None:
        """
        在 DB 端直接加減計數
        - 減少時不低於 0 (容忍既有的計數偏差)
        """
        values = {}
        for field, delta in deltas.items():
            column = getattr(StudentModel, field)
            if delta >= 0:
                values[field] = column + delta
            else:
                values[field] = case((column + delta > 0, column + delta), else_=0)

        self.db.query(StudentModel) \
            .filter(StudentModel.id == student_id) \
            .update(values, synchronize_session="fetch")

    def _set_lesson_status(self, lesson_id: str, status: Optional[str]) -> None:
        self.db.query(LessonModel) \
            .filter(LessonModel.id == lesson_id) \
            .update({"lesson_status": status}, synchronize_session="fetch")

    # ===============================================================
    # 查詢輔助
    # ===============================================================
    def _count_monthly_personal(self, student_id: str, lesson_date: date) -> int:
        """該課堂所在月份內，未被拒絕的事假數"""
        first_day, last_day = month_bounds(lesson_date)
        return self.db.query(func.count(LeaveRequestModel.id)) \
            .filter(LeaveRequestModel.student_id == student_id) \
            .filter(LeaveRequestModel.leave_type == LEAVE_TYPE_PERSONAL) \
            .filter(LeaveRequestModel.status != STATUS_REJECTED) \
            .filter(LeaveRequestModel.lesson_date.between(first_day, last_day)) \
            .scalar()

    def _has_active_request(self, lesson_id: str) -> bool:
        count = self.db.query(func.count(LeaveRequestModel.id)) \
            .filter(LeaveRequestModel.lesson_id == lesson_id) \
            .filter(LeaveRequestModel.status != STATUS_REJECTED) \
            .scalar()
        return count > 0

    def _lesson_start(self, lesson: LessonModel) -> datetime:
        return lesson_start(
            lesson.lesson_date,
            lesson.actual_timeslot or lesson.regular_timeslot,
            self.tz,
        )

    # ===============================================================
    # [送出] 學生請假申請
    # ===============================================================
    def submit(self, application: LeaveApplicationCreate, now: Optional[datetime] = None) -> LeaveRequestModel:
        now = self._now(now)

        if not application.student_id or not application.lesson_id or not application.leave_type:
            raise LeaveValidationError(ERR_MISSING_PARAMS)
        if application.leave_type not in VALID_LEAVE_TYPES:
            raise LeaveValidationError(ERR_INVALID_TYPE)

        # 鎖住學生資料列，同一學生的申請依序處理 (每月上限才不會被併發繞過)
        student = self.db.query(StudentModel) \
            .filter(StudentModel.id == application.student_id) \
            .with_for_update() \
            .first()
        if not student:
            raise LeaveNotFoundError(ERR_STUDENT_NOT_FOUND)

        lesson = self.db.query(LessonModel).filter(LessonModel.id == application.lesson_id).first()
        if not lesson or lesson.student_id != student.id:
            raise LeaveNotFoundError(ERR_LESSON_NOT_FOUND)

        # 課堂日期以資料表為準，前端傳入的日期只用來核對
        if application.lesson_date and application.lesson_date != lesson.lesson_date:
            raise LeaveValidationError(ERR_LESSON_DATE_MISMATCH)

        # 機構同樣以課堂 (或學生) 資料為準
        org_id = lesson.org_id or student.org_id
        if application.org_id and org_id and application.org_id != org_id:
            raise LeaveValidationError(ERR_ORG_MISMATCH)

        if lesson.lesson_status == LEAVE_MARKER or self._has_active_request(lesson.id):
            raise LeavePolicyError(ERR_ALREADY_ON_LEAVE)

        monthly_count = 0
        if application.leave_type == LEAVE_TYPE_PERSONAL:
            monthly_count = self._count_monthly_personal(student.id, lesson.lesson_date)

        decision = check_leave(
            application.leave_type,
            self._lesson_start(lesson),
            now,
            proof_url=application.proof_url,
            monthly_personal_count=monthly_count,
        )
        if not decision.allowed:
            logger.info(f"請假申請被拒: student={student.id} lesson={lesson.id} reason={decision.error}")
            raise LeavePolicyError(decision.error)

        is_personal = application.leave_type == LEAVE_TYPE_PERSONAL
        record = LeaveRequestModel(
            student_id=student.id,
            org_id=org_id,
            lesson_id=lesson.id,
            lesson_date=lesson.lesson_date,
            leave_type=application.leave_type,
            status=STATUS_APPROVED if is_personal else STATUS_PENDING,
            proof_url=application.proof_url or None,
            reviewed_at=now if is_personal else None,
            reviewed_by=SYSTEM_REVIEWER if is_personal else None,
            created_at=now,
        )

        try:
            self.db.add(record)
            self._set_lesson_status(lesson.id, LEAVE_MARKER)
            if is_personal:
                self._adjust_counters(student.id, {"approved_lesson_nonscheduled": 1})
            else:
                self._adjust_counters(student.id, {"pending_confirmation_count": 1})
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"請假申請寫入失敗: student={student.id} lesson={lesson.id}")
            raise

        logger.info(
            f"請假申請成功: id={record.id} student={student.id} "
            f"type={record.leave_type} status={record.status}"
        )
        return record

    # ===============================================================
    # [審批] 管理員審核病假
    # ===============================================================
    def review(
        self,
        request_id: Optional[str],
        status: Optional[str],
        reviewer: str = "admin",
        review_notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequestModel:
        now = self._now(now)

        if not request_id or not status:
            raise LeaveValidationError(ERR_MISSING_PARAMS)
        if status not in REVIEW_STATUSES:
            raise LeaveValidationError(ERR_INVALID_REVIEW_STATUS)

        record = self.db.query(LeaveRequestModel) \
            .filter(LeaveRequestModel.id == request_id) \
            .with_for_update(of=LeaveRequestModel) \
            .first()
        if not record:
            raise LeaveNotFoundError(ERR_REQUEST_NOT_FOUND)
        if record.status != STATUS_PENDING:
            raise LeaveStateError(ERR_ALREADY_REVIEWED)

        try:
            record.status = status
            record.reviewed_at = now
            record.reviewed_by = reviewer
            record.review_notes = review_notes

            if status == STATUS_APPROVED:
                # 課堂已在送出時標記為請假，不需變更
                self._adjust_counters(record.student_id, {
                    "pending_confirmation_count": -1,
                    "approved_lesson_nonscheduled": 1,
                })
            else:
                record.rejection_reason = rejection_reason
                self._set_lesson_status(record.lesson_id, None)
                self._adjust_counters(record.student_id, {"pending_confirmation_count": -1})

            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"請假審批失敗: id={request_id}")
            raise

        logger.info(f"請假審批完成: id={record.id} status={status} reviewer={reviewer}")
        return record

    # ===============================================================
    # [查詢]
    # ===============================================================
    def list_pending(self, org_id: Optional[str] = None) -> List[LeaveRequestModel]:
        query = self.db.query(LeaveRequestModel).filter(LeaveRequestModel.status == STATUS_PENDING)
        if org_id:
            query = query.filter(LeaveRequestModel.org_id == org_id)
        return query.order_by(LeaveRequestModel.created_at.desc()).all()

    def list_for_student(self, student_id: str) -> List[LeaveRequestModel]:
        return self.db.query(LeaveRequestModel) \
            .filter(LeaveRequestModel.student_id == student_id) \
            .order_by(LeaveRequestModel.lesson_date.desc(), LeaveRequestModel.created_at.desc()) \
            .all()

    def eligible_lessons(self, student_id: str, leave_type: str, now: Optional[datetime] = None) -> List[LessonModel]:
        """目前可以申請該類型請假的課堂 (已請假的課堂除外)"""
        now = self._now(now)
        if leave_type not in VALID_LEAVE_TYPES:
            raise LeaveValidationError(ERR_INVALID_TYPE)

        query = self.db.query(LessonModel) \
            .filter(LessonModel.student_id == student_id) \
            .filter(or_(LessonModel.lesson_status.is_(None), LessonModel.lesson_status != LEAVE_MARKER))

        # 先以日期粗篩，再以實際開始時間精確判斷
        if leave_type == LEAVE_TYPE_PERSONAL:
            query = query.filter(LessonModel.lesson_date >= (now + PERSONAL_NOTICE).date())
        elif leave_type == LEAVE_TYPE_SICK:
            query = query.filter(LessonModel.lesson_date.between(
                (now - SICK_WINDOW).date(), (now + SICK_WINDOW).date()
            ))

        lessons = query.order_by(LessonModel.lesson_date.asc()).all()
        return [lesson for lesson in lessons if is_eligible(leave_type, self._lesson_start(lesson), now)]

    # ===============================================================
    # [維護] 重新計算待審批數
    # ===============================================================
    def recount_pending(self, student_id: str) -> int:
        student = self.db.query(StudentModel).filter(StudentModel.id == student_id).first()
        if not student:
            raise LeaveNotFoundError(ERR_STUDENT_NOT_FOUND)

        pending = self.db.query(func.count(LeaveRequestModel.id)) \
            .filter(LeaveRequestModel.student_id == student_id) \
            .filter(LeaveRequestModel.leave_type == LEAVE_TYPE_SICK) \
            .filter(LeaveRequestModel.status == STATUS_PENDING) \
            .scalar()

        if student.pending_confirmation_count != pending:
            logger.warning(
                f"待審批計數偏差: student={student_id} "
                f"stored={student.pending_confirmation_count} actual={pending}"
            )
        try:
            student.pending_confirmation_count = pending
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"待審批計數更新失敗: student={student_id}")
            raise
        return pending
