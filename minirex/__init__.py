"""
MiniRex：單一寫入者的記憶體內狀態容器。
"""

import logging

from .errors import (
    MiniRexError, ConfigurationError, InvalidActionError, NonPlainActionError,
    MissingActionTypeError, ReentrancyError, ReducerError, MiddlewareError,
    ErrorHandler, global_error_handler,
)
from .compose import compose
from .actions import ActionTypes, create_action, bind_action_creators, is_plain_action
from .listeners import ListenerRegistry
from .store import Store, create_store
from .reducers import combine_reducers, create_reducer, on
from .middleware import (
    MiddlewareAPI, BaseMiddleware, LoggerMiddleware, ThunkMiddleware,
    ErrorMiddleware, DevToolsMiddleware, PerformanceMonitorMiddleware,
    apply_middleware,
)
from .store_selectors import create_selector
from .immutable_utils import to_immutable, to_dict, to_pydantic
from .config import LoggingConfig, configure_logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Errors
    "MiniRexError", "ConfigurationError", "InvalidActionError", "NonPlainActionError",
    "MissingActionTypeError", "ReentrancyError", "ReducerError", "MiddlewareError",
    "ErrorHandler", "global_error_handler",

    # Composition
    "compose",

    # Actions
    "ActionTypes", "create_action", "bind_action_creators", "is_plain_action",

    # Store
    "ListenerRegistry", "Store", "create_store",

    # Reducers
    "combine_reducers", "create_reducer", "on",

    # Middleware
    "MiddlewareAPI", "BaseMiddleware", "LoggerMiddleware", "ThunkMiddleware",
    "ErrorMiddleware", "DevToolsMiddleware", "PerformanceMonitorMiddleware",
    "apply_middleware",

    # Selectors
    "create_selector",

    # Immutable Utils
    "to_immutable", "to_dict", "to_pydantic",

    # Config
    "LoggingConfig", "configure_logging",
]
