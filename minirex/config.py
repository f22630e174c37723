"""
MiniRex 的日誌配置。

函式庫預設只在 "minirex" logger 上掛一個 NullHandler；應用可以調用
configure_logging() 安裝控制台或檔案輸出。
"""

import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

LOGGER_NAME = "minirex"

_HANDLER_MARK = "_minirex_handler"


class LoggingConfig(BaseModel):
    """MiniRex logger 的不可變配置。"""

    model_config = ConfigDict(frozen=True)

    level: str = "WARNING"
    log_to_console: bool = True
    log_to_file: bool = False
    log_file: Optional[str] = None
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """從 MINIREX_LOG_LEVEL 與 MINIREX_LOG_FILE 環境變數讀取配置。"""
        values = {}
        if os.environ.get("MINIREX_LOG_LEVEL"):
            values["level"] = os.environ["MINIREX_LOG_LEVEL"]
        if os.environ.get("MINIREX_LOG_FILE"):
            values["log_to_file"] = True
            values["log_file"] = os.environ["MINIREX_LOG_FILE"]
        return cls(**values)


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    依照配置為 "minirex" logger 安裝處理器。

    重複調用會先移除上一次安裝的處理器，因此可以安全地多次調用。

    Args:
        config: 日誌配置，預設從環境變數讀取

    Returns:
        配置好的 "minirex" logger
    """
    if config is None:
        config = LoggingConfig.from_env()

    root = logging.getLogger(LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    handlers = []
    if config.log_to_console:
        handlers.append(logging.StreamHandler())
    if config.log_to_file and config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

    formatter = logging.Formatter(config.format)
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        root.addHandler(handler)

    root.setLevel(config.level)
    return root
