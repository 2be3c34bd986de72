"""
services/leave_policy.py

請假規則判斷 (純函式，不做任何 DB 存取)
- 事假: 需於課堂開始 72 小時前申請，每位學生每月(以課堂日期計)只限一次，自動批准
- 病假: 需於課堂前後 24 小時內申請，必須附上醫生證明，由管理員審批
"""

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from pydantic import BaseModel

LEAVE_TYPE_PERSONAL = "personal"
LEAVE_TYPE_SICK = "sick"
VALID_LEAVE_TYPES = (LEAVE_TYPE_PERSONAL, LEAVE_TYPE_SICK)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
REVIEW_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

# 課堂狀態欄位的請假標記
LEAVE_MARKER = "請假"
SYSTEM_REVIEWER = "system"

PERSONAL_NOTICE = timedelta(hours=72)
SICK_WINDOW = timedelta(hours=24)
MONTHLY_PERSONAL_LIMIT = 1

ERR_INVALID_TYPE = "無效的請假類型"
ERR_PERSONAL_NOTICE = "事假需在 72 小時前申請"
ERR_MONTHLY_LIMIT = "每月只能申請一次事假"
ERR_SICK_WINDOW = "病假需在課堂前後 24 小時內申請"
ERR_PROOF_REQUIRED = "病假需上傳醫生證明"

_TIMESLOT_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")


class LeaveDecision(BaseModel):
    allowed: bool
    error: Optional[str] = None


def month_bounds(d: date) -> Tuple[date, date]:
    """d 所在月份的第一天與最後一天"""
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=last_day)


def parse_timeslot(timeslot: Optional[str]) -> Optional[time]:
    # "10:00", "10:00:00", "10:00-11:00" 皆取開頭的 HH:MM
    if not timeslot:
        return None
    m = _TIMESLOT_RE.match(timeslot)
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def lesson_start(lesson_date: date, timeslot: Optional[str], tz: ZoneInfo) -> datetime:
    """
    課堂開始時間 (含時區)
    - 有時段時取時段開頭，否則視為當日 00:00
    """
    start = parse_timeslot(timeslot) or time(0, 0)
    return datetime.combine(lesson_date, start, tzinfo=tz)


def check_leave(
    leave_type: str,
    starts_at: datetime,
    now: datetime,
    proof_url: Optional[str] = None,
    monthly_personal_count: int = 0,
) -> LeaveDecision:
    """
    判斷是否可建立請假申請
    - monthly_personal_count: 同一學生在該課堂月份內未被拒絕的事假數
    - 邊界皆為包含: 剛好 72 小時 / 剛好 24 小時 均可申請
    """
    if leave_type == LEAVE_TYPE_PERSONAL:
        if starts_at < now + PERSONAL_NOTICE:
            return LeaveDecision(allowed=False, error=ERR_PERSONAL_NOTICE)
        if monthly_personal_count >= MONTHLY_PERSONAL_LIMIT:
            return LeaveDecision(allowed=False, error=ERR_MONTHLY_LIMIT)
        return LeaveDecision(allowed=True)

    if leave_type == LEAVE_TYPE_SICK:
        if not (now - SICK_WINDOW <= starts_at <= now + SICK_WINDOW):
            return LeaveDecision(allowed=False, error=ERR_SICK_WINDOW)
        if not proof_url or not proof_url.strip():
            return LeaveDecision(allowed=False, error=ERR_PROOF_REQUIRED)
        return LeaveDecision(allowed=True)

    return LeaveDecision(allowed=False, error=ERR_INVALID_TYPE)


def is_eligible(leave_type: str, starts_at: datetime, now: datetime) -> bool:
    """課堂是否落在該請假類型可申請的時間範圍 (不含每月上限與證明檢查)"""
    if leave_type == LEAVE_TYPE_PERSONAL:
        return starts_at >= now + PERSONAL_NOTICE
    if leave_type == LEAVE_TYPE_SICK:
        return now - SICK_WINDOW <= starts_at <= now + SICK_WINDOW
    return False
