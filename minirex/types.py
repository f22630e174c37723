"""
MiniRex 共用的類型定義。
"""

from typing import Any, Callable, Mapping, Optional, TypeVar

from typing_extensions import Protocol, TypedDict

S = TypeVar("S")  # 狀態類型
T = TypeVar("T")
R = TypeVar("R")

# action 是帶有 "type" 鍵的普通鍵值記錄
ActionRecord = Mapping[str, Any]

Reducer = Callable[[Optional[S], ActionRecord], S]
Listener = Callable[[], None]
Unsubscribe = Callable[[], None]

DispatchFunction = Callable[[Any], Any]
NextDispatch = Callable[[Any], Any]
MiddlewareFunction = Callable[[NextDispatch], DispatchFunction]

GetState = Callable[[], Any]
StateSelector = Callable[[Any], Any]
ThunkFunction = Callable[[DispatchFunction, GetState], Any]

# 原始的 store 建構函數：(reducer, preloaded_state) -> store
StoreCreator = Callable[..., Any]
# enhancer：接收原始建構函數，回傳增強後的建構函數
StoreEnhancer = Callable[[StoreCreator], StoreCreator]


class MiddlewareAPI(Protocol):
    """中介軟體可見的受限 store 介面。"""

    def get_state(self) -> Any: ...

    def dispatch(self, action: Any) -> Any: ...


MiddlewareFactory = Callable[[MiddlewareAPI], MiddlewareFunction]


class ActionContext(TypedDict, total=False):
    """BaseMiddleware.action_context 在 with 區塊內外傳遞的資料。"""

    action: Any
    prev_state: Any
    next_state: Any
    result: Any
    error: Optional[BaseException]
    timestamp: float
