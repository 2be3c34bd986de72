class LeaveError(Exception):
    """請假流程的業務錯誤 (訊息直接回傳給前端顯示)"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LeaveValidationError(LeaveError):
    """缺少參數或參數不合法"""
    status_code = 400


class LeavePolicyError(LeaveError):
    """違反請假規則 (72 小時、每月上限、病假時限、證明)"""
    status_code = 400


class LeaveNotFoundError(LeaveError):
    status_code = 404


class LeaveStateError(LeaveError):
    """申請狀態不允許此操作 (例: 已審核)"""
    status_code = 409
