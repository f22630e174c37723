"""
MiniRex 錯誤處理模組。

定義 store 引擎拋出的所有異常類型，以及一個基於 logging 的集中式錯誤處理器。
所有錯誤都是同步拋出的，引擎本身從不吞掉或重試它們。
"""

import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class MiniRexError(Exception):
    """所有 MiniRex 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """
        將錯誤轉換為可記錄的字典。

        Returns:
            包含錯誤類型、訊息與細節的字典
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(MiniRexError):
    """reducer、listener 或 enhancer 不是可調用對象等配置錯誤。"""

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any) -> None:
        details = {"component": component, **kwargs}
        if config_key is not None:
            details["config_key"] = config_key
        super().__init__(message, details)
        self.component = component
        self.config_key = config_key


class InvalidActionError(MiniRexError):
    """被 dispatch 的 action 形狀不合法。"""

    def __init__(self, message: str, action: Any = None, **kwargs: Any) -> None:
        super().__init__(message, {"action": repr(action), **kwargs})
        self.action = action


class NonPlainActionError(InvalidActionError):
    """action 不是普通的鍵值記錄 (dict 或 immutables.Map)。"""


class MissingActionTypeError(InvalidActionError):
    """action 缺少 "type" 欄位。"""


class ReentrancyError(MiniRexError):
    """在 reducer 執行期間重入 store。"""

    def __init__(self, message: str, operation: str, **kwargs: Any) -> None:
        super().__init__(message, {"operation": operation, **kwargs})
        self.operation = operation


class ReducerError(MiniRexError):
    """reducer 回傳了不合法的狀態。"""

    def __init__(self, message: str, reducer_name: str, action_type: Any = None, **kwargs: Any) -> None:
        super().__init__(message, {"reducer_name": reducer_name, "action_type": action_type, **kwargs})
        self.reducer_name = reducer_name
        self.action_type = action_type


class MiddlewareError(MiniRexError):
    """中介軟體鏈的建構或使用方式錯誤。"""

    def __init__(self, message: str, middleware_name: str, **kwargs: Any) -> None:
        super().__init__(message, {"middleware_name": middleware_name, **kwargs})
        self.middleware_name = middleware_name


ErrorCallback = Callable[[MiniRexError], None]

_FILE_HANDLER_MARK = "_minirex_error_file_handler"


class ErrorHandler:
    """
    集中式錯誤處理器，用於記錄錯誤並轉發給已註冊的回調。

    處理器只負責報告，不會改變錯誤的傳播：調用方在 handle() 之後仍應重新拋出。
    """

    def __init__(self, log_to_console: bool = True, log_to_file: bool = False, log_file: Optional[str] = None) -> None:
        self.log_to_console = log_to_console
        self.log_to_file = log_to_file
        self.log_file = log_file
        self.handlers: List[ErrorCallback] = []
        self._logger = logging.getLogger(f"{__name__}.handler")
        if log_to_file and log_file:
            self._install_file_handler(log_file)

    def _install_file_handler(self, log_file: str) -> None:
        # 同一個 logger 上只保留最後建立的檔案處理器
        for handler in list(self._logger.handlers):
            if getattr(handler, _FILE_HANDLER_MARK, False):
                self._logger.removeHandler(handler)
                handler.close()

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        setattr(file_handler, _FILE_HANDLER_MARK, True)
        self._logger.addHandler(file_handler)

    def register_handler(self, handler: ErrorCallback) -> None:
        """
        註冊一個錯誤回調。

        Args:
            handler: 接收 MiniRexError 的回調函數
        """
        if not callable(handler):
            raise ConfigurationError("Expected the error handler to be a function.", component="ErrorHandler")
        self.handlers.append(handler)

    def unregister_handler(self, handler: ErrorCallback) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def handle(self, error: Union[MiniRexError, Exception]) -> MiniRexError:
        """
        記錄錯誤並通知所有回調。

        非 MiniRexError 的異常會被包裝為 MiniRexError 再傳給回調。

        Args:
            error: 要處理的異常

        Returns:
            傳給回調的 MiniRexError
        """
        if not isinstance(error, MiniRexError):
            wrapped = MiniRexError(str(error), {"original_type": error.__class__.__name__})
            wrapped.__cause__ = error
            error = wrapped

        if self.log_to_console or self.log_to_file:
            self._logger.error("%s: %s", error.__class__.__name__, error.message, extra={"details": error.details})

        for handler in list(self.handlers):
            try:
                handler(error)
            except Exception:
                # 回調失敗不能掩蓋原始錯誤
                self._logger.exception("error callback %r failed", handler)
        return error


# 單例錯誤處理器
global_error_handler = ErrorHandler()
