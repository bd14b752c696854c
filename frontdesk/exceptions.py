"""
业务异常定义

所有核心操作失败时抛出 FrontDeskError 的子类，由路由层统一转换为 HTTP 响应。
每种异常对应一种错误类别，调用方可以据此区分"输入有误"、"房间不可用"与"存储故障"。
"""
from typing import Any, Dict, Optional


class ErrorType:
    """错误类别"""

    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"


class FrontDeskError(Exception):
    """
    业务异常基类

    Attributes:
        message: 面向用户的错误信息
        error_type: 错误类别（见 ErrorType）
        context: 附加上下文（如冲突的预订ID）
    """

    error_type = "unknown"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "detail": self.message,
            "error_type": self.error_type,
            "context": self.context,
        }


class ValidationError(FrontDeskError):
    """输入格式或取值范围错误，调用方可修正后重试"""
    error_type = ErrorType.VALIDATION_ERROR


class ConflictError(FrontDeskError):
    """业务规则冲突（房间在该时段不可用），在任何写入之前检出"""
    error_type = ErrorType.CONFLICT


class InvalidStateError(FrontDeskError):
    """当前实体状态不允许该操作（如重复退房）"""
    error_type = ErrorType.INVALID_STATE


class AuthorizationError(FrontDeskError):
    """操作人缺少所需角色或不是记录的创建人"""
    error_type = ErrorType.PERMISSION_DENIED


class NotFoundError(FrontDeskError):
    """引用的实体不存在"""
    error_type = ErrorType.NOT_FOUND


class StorageError(FrontDeskError):
    """存储层故障，调用方可自行决定是否重试"""
    error_type = ErrorType.STORAGE_ERROR
