"""
Application Layer Types - 应用层类型定义

CommandResult 是引擎对宿主的应答信封：成功时携带记录ID、新版本和操作结果，
失败时携带领域异常的错误码，并按错误码区分参数错误与业务规则拒绝。
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar
from enum import Enum, auto

from ..core.exceptions import RPSEngineError

T = TypeVar('T')

# 调用者提交的数据本身有误，重试前需要修改请求
VALIDATION_ERROR_CODES = frozenset({"INVALID_PARAMETER", "INVALID_CHOICE", "INVALID_HASH"})


class ResultStatus(Enum):
    """操作结果状态"""
    SUCCESS = auto()
    FAILURE = auto()
    VALIDATION_ERROR = auto()
    BUSINESS_RULE_VIOLATION = auto()
    SYSTEM_ERROR = auto()


@dataclass(frozen=True)
class CommandResult:
    """
    引擎操作结果

    Attributes:
        record_id: 被操作的记录ID，失败时为None
        version: 操作提交后的记录版本，失败时为None
    """
    success: bool
    status: ResultStatus
    message: str = ""
    error_code: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    record_id: Optional[str] = None
    version: Optional[int] = None

    @classmethod
    def from_outcome(cls, operation_name: str, outcome) -> 'CommandResult':
        """由已提交的 OperationOutcome 创建成功结果"""
        return cls(
            success=True,
            status=ResultStatus.SUCCESS,
            message=f"{operation_name} 执行成功",
            data=outcome.to_dict(),
            record_id=outcome.record_id,
            version=outcome.version,
        )

    @classmethod
    def from_error(cls, error: RPSEngineError) -> 'CommandResult':
        """由领域异常创建失败结果，错误码原样保留"""
        if error.error_code in VALIDATION_ERROR_CODES:
            status = ResultStatus.VALIDATION_ERROR
        else:
            status = ResultStatus.BUSINESS_RULE_VIOLATION
        return cls(
            success=False,
            status=status,
            message=error.message,
            error_code=error.error_code,
        )

    @classmethod
    def system_error(cls, message: str, error_code: str) -> 'CommandResult':
        """引擎内部故障，操作已丢弃"""
        return cls(
            success=False,
            status=ResultStatus.SYSTEM_ERROR,
            message=message,
            error_code=error_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'status': self.status.name,
            'message': self.message,
            'error_code': self.error_code,
            'record_id': self.record_id,
            'version': self.version,
            'data': self.data,
        }


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """查询结果"""
    success: bool
    status: ResultStatus
    data: Optional[T] = None
    message: str = ""
    error_code: Optional[str] = None

    @classmethod
    def success_result(cls, data: T, message: str = "查询成功") -> 'QueryResult[T]':
        return cls(
            success=True,
            status=ResultStatus.SUCCESS,
            data=data,
            message=message
        )

    @classmethod
    def failure_result(cls, message: str, error_code: Optional[str] = None,
                       status: ResultStatus = ResultStatus.FAILURE) -> 'QueryResult[T]':
        return cls(
            success=False,
            status=status,
            message=message,
            error_code=error_code
        )
