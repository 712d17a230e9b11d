"""
应用层装饰器
"""

import functools
from typing import Any, Callable, Optional, TypeVar

from ..core.exceptions import RPSEngineError

F = TypeVar('F', bound=Callable[..., Any])


def logged_action(action_name: Optional[str] = None):
    """
    自动记录操作处理器的执行情况

    被拒绝的业务操作记为WARNING，其它异常记为ERROR，异常原样抛出。

    Args:
        action_name: 日志中使用的操作名，默认使用函数名

    Example:
        @logged_action("加入对局")
        def _on_join_game(self, ctx, operation):
            ...
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            logger = getattr(self, '_logger', None)
            name = action_name or func.__name__

            if logger:
                logger.debug(f"开始 {name}")

            try:
                result = func(self, *args, **kwargs)
                if logger:
                    logger.debug(f"完成 {name}")
                return result
            except RPSEngineError as e:
                if logger:
                    logger.warning(f"拒绝 {name}: [{e.error_code}] {e.message}")
                raise
            except Exception as e:
                if logger:
                    logger.error(f"失败 {name}: {str(e)}")
                raise

        return wrapper
    return decorator
