"""
MiniRex 的中介軟體定義模組。

中介軟體在 action 到達 reducer 之前包裹 dispatch，用於日誌記錄、錯誤處理、
性能監控等。apply_middleware 把一組中介軟體透過 compose 串成單一的
dispatch，並以 store enhancer 的形式安裝到 store 上。
"""

import contextlib
import inspect
import logging
import time
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional, Tuple

from .actions import create_action
from .compose import compose
from .errors import MiddlewareError, global_error_handler
from .immutable_utils import to_dict
from .types import (
    ActionContext, DispatchFunction, GetState, MiddlewareFunction, NextDispatch,
    StoreCreator, StoreEnhancer,
)

logger = logging.getLogger(__name__)


def _action_type(action: Any) -> Any:
    if isinstance(action, Mapping):
        return action.get("type")
    return getattr(action, "__name__", type(action).__name__)


class MiddlewareAPI:
    """
    交給中介軟體的受限 store 視圖，只暴露 get_state 與 dispatch。

    dispatch 轉發到整條中介軟體鏈組合後的 dispatch，因此中介軟體分發的
    action 會重新經過整條鏈。
    """

    __slots__ = ("get_state", "_dispatch")

    def __init__(self, get_state: GetState, dispatch: DispatchFunction) -> None:
        self.get_state = get_state
        self._dispatch = dispatch

    def dispatch(self, action: Any) -> Any:
        return self._dispatch(action)

    @property
    def state(self) -> Any:
        return self.get_state()


# ———— Base Middleware ————
class BaseMiddleware:
    """
    基礎中介類，定義所有中介可能實現的鉤子。

    只實現鉤子 (沒有 __call__) 的子類會由 apply_middleware 自動包裹；
    實現 __call__(api) 的子類則被視為中介軟體工廠直接調用。
    """

    def on_next(self, action: Any, prev_state: Any) -> None:
        """
        在 action 發送給 reducer 之前調用。

        Args:
            action: 正在 dispatch 的 Action
            prev_state: dispatch 之前的狀態
        """

    def on_complete(self, next_state: Any, action: Any) -> None:
        """
        在 action 處理完成之後調用。

        Args:
            next_state: dispatch 之後的最新狀態
            action: 剛剛 dispatch 的 Action
        """

    def on_error(self, error: Exception, action: Any) -> None:
        """
        如果 dispatch 過程中拋出異常，則調用此鉤子。異常之後仍會繼續傳播。

        Args:
            error: 拋出的異常
            action: 導致異常的 Action
        """

    @contextlib.contextmanager
    def action_context(self, action: Any, prev_state: Any) -> Generator[ActionContext, None, None]:
        """
        以上下文管理器的形式驅動 on_next、on_complete 和 on_error 鉤子。

        with 區塊內應把 dispatch 之後的狀態寫入 context['next_state']。

        Args:
            action: 要分發的 Action
            prev_state: 分發前的狀態

        Yields:
            在上下文內外傳遞數據的字典
        """
        context: ActionContext = {
            'action': action,
            'prev_state': prev_state,
            'next_state': None,
            'result': None,
            'error': None,
            'timestamp': time.time(),
        }

        self.on_next(action, prev_state)
        try:
            yield context
        except Exception as err:
            context['error'] = err
            self.on_error(err, action)
            raise
        self.on_complete(context['next_state'], action)


def _wrap_hook_middleware(mw: BaseMiddleware, api: MiddlewareAPI) -> MiddlewareFunction:
    """把只實現鉤子的中介物件包裹成 next -> dispatch 的形式。"""
    def middleware(next_dispatch: NextDispatch) -> DispatchFunction:
        def dispatch(action: Any) -> Any:
            with mw.action_context(action, api.get_state()) as context:
                result = next_dispatch(action)
                context['result'] = result
                context['next_state'] = api.get_state()
            return result
        return dispatch
    return middleware


def _to_middleware_function(mw: Any, api: MiddlewareAPI) -> MiddlewareFunction:
    if inspect.isclass(mw):
        mw = mw()
    if isinstance(mw, BaseMiddleware) and not callable(mw):
        return _wrap_hook_middleware(mw, api)
    if not callable(mw):
        raise MiddlewareError(
            f"Expected a middleware factory or a BaseMiddleware instance, got {mw!r}.",
            middleware_name=type(mw).__name__,
        )
    return mw(api)


def apply_middleware(*middlewares: Any) -> StoreEnhancer:
    """
    創建一個 store enhancer，把中介軟體套用到 store 的 dispatch 上。

    每個中介軟體可以是工廠函數 api -> next -> dispatch、BaseMiddleware 的實例
    或類別 (類別會先被實例化)。第一個中介軟體位於最外層。

    Args:
        *middlewares: 要套用的中介軟體

    Returns:
        可傳給 create_store 的 enhancer。
    """
    def enhancer(create_store: StoreCreator) -> StoreCreator:
        def create(reducer: Any, preloaded_state: Any = None) -> Any:
            store = create_store(reducer, preloaded_state)

            def dispatch_while_constructing(action: Any) -> Any:
                raise MiddlewareError(
                    "Dispatching while constructing your middleware is not allowed. "
                    "Other middleware would not be applied to this dispatch.",
                    middleware_name="apply_middleware",
                )

            dispatch: DispatchFunction = dispatch_while_constructing
            api = MiddlewareAPI(store.get_state, lambda action: dispatch(action))
            chain = [_to_middleware_function(mw, api) for mw in middlewares]
            dispatch = compose(*chain)(store.dispatch)

            store.dispatch = dispatch
            return store
        return create
    return enhancer


# ———— LoggerMiddleware ————
class LoggerMiddleware(BaseMiddleware):
    """
    日誌中介，記錄每個 action 發送前和發送後的狀態。

    使用場景:
    - 偵錯時需要觀察每次狀態的變化。
    - 確保 action 的執行順序正確。
    """

    def __init__(self, level: int = logging.INFO, log: Optional[logging.Logger] = None) -> None:
        self.level = level
        self.log = log or logger

    def on_next(self, action: Any, prev_state: Any) -> None:
        self.log.log(self.level, "dispatching %s", _action_type(action))
        self.log.log(self.level, "state before %s: %s", _action_type(action), to_dict(prev_state))

    def on_complete(self, next_state: Any, action: Any) -> None:
        self.log.log(self.level, "state after %s: %s", _action_type(action), to_dict(next_state))

    def on_error(self, error: Exception, action: Any) -> None:
        self.log.error("error in %s: %s", _action_type(action), error)


# ———— ThunkMiddleware ————
class ThunkMiddleware(BaseMiddleware):
    """
    支援 dispatch 函數 (thunk)，可以在 thunk 內多次 dispatch 或讀取狀態。

    thunk 以 (dispatch, get_state) 調用，其回傳值即 dispatch 的回傳值。

    範例:
        ```python
        def increment_if_odd():
            def thunk(dispatch, get_state):
                if get_state() % 2:
                    dispatch(increment())
            return thunk

        store.dispatch(increment_if_odd())
        ```
    """

    def __call__(self, api: MiddlewareAPI) -> MiddlewareFunction:
        def middleware(next_dispatch: NextDispatch) -> DispatchFunction:
            def dispatch(action: Any) -> Any:
                if callable(action):
                    return action(api.dispatch, api.get_state)
                return next_dispatch(action)
            return dispatch
        return middleware


# ———— ErrorMiddleware ————
global_error = create_action("[Error] GlobalError", lambda info: info)


class ErrorMiddleware(BaseMiddleware):
    """
    捕獲 dispatch 過程中的異常，報告給全域錯誤處理器並 dispatch 全域錯誤 Action，
    然後重新拋出異常。

    使用場景:
    - 當需要統一處理所有異常並記錄或上報時。
    """

    def __init__(self) -> None:
        self.api: Optional[MiddlewareAPI] = None
        self._pending: List[Any] = []

    def __call__(self, api: MiddlewareAPI) -> MiddlewareFunction:
        self.api = api

        def middleware(next_dispatch: NextDispatch) -> DispatchFunction:
            def dispatch(action: Any) -> Any:
                with self.action_context(action, api.get_state()) as context:
                    result = next_dispatch(action)
                    context['next_state'] = api.get_state()
                return result
            return dispatch
        return middleware

    def on_next(self, action: Any, prev_state: Any) -> None:
        self._pending.append(prev_state)

    def on_complete(self, next_state: Any, action: Any) -> None:
        self._pending.pop()

    def on_error(self, error: Exception, action: Any) -> None:
        prev_state = self._pending.pop()
        reported = global_error_handler.handle(error)
        # 處理錯誤 action 本身失敗時不再分發，避免無限遞迴
        if self.api is None or _action_type(action) == global_error.type:
            return
        # 狀態已經提交，異常來自 listener；再次分發只會重複通知
        if self.api.get_state() is not prev_state:
            return
        try:
            self.api.dispatch(global_error({
                "error": reported.message,
                "error_type": error.__class__.__name__,
                "action": _action_type(action),
                "timestamp": time.time(),
            }))
        except Exception as secondary:
            global_error_handler.handle(secondary)


# ———— DevToolsMiddleware ————
class DevToolsMiddleware(BaseMiddleware):
    """
    記錄每次 action 與狀態快照，支援回溯調試。

    使用場景:
    - 當需要回溯狀態的變化歷史以進行調試時。
    """

    def __init__(self) -> None:
        self.history: List[Tuple[Any, Any, Any]] = []
        self._pending: List[Any] = []

    def on_next(self, action: Any, prev_state: Any) -> None:
        self._pending.append(prev_state)

    def on_complete(self, next_state: Any, action: Any) -> None:
        self.history.append((self._pending.pop(), action, next_state))

    def on_error(self, error: Exception, action: Any) -> None:
        self._pending.pop()

    def get_history(self) -> List[Tuple[Any, Any, Any]]:
        """
        返回整個歷史快照列表。

        Returns:
            歷史快照列表，每項為 (prev_state, action, next_state)
        """
        return list(self.history)


# ———— PerformanceMonitorMiddleware ————
class PerformanceMonitorMiddleware(BaseMiddleware):
    """
    性能監控中間件，記錄每種 action 的處理時間。
    """

    def __init__(self, threshold_ms: float = 100, log_all: bool = False,
                 clock: Callable[[], float] = time.perf_counter) -> None:
        """
        Args:
            threshold_ms: 性能警告閾值，單位為毫秒
            log_all: 是否記錄所有 action 的耗時，預設只記錄超過閾值的
            clock: 以秒為單位的計時函數
        """
        self.threshold_ms = threshold_ms
        self.log_all = log_all
        self.clock = clock
        self.metrics: Dict[Any, List[float]] = {}

    @contextlib.contextmanager
    def action_context(self, action: Any, prev_state: Any) -> Generator[ActionContext, None, None]:
        action_type = _action_type(action)
        start_time = self.clock()
        try:
            with super().action_context(action, prev_state) as context:
                yield context
        except Exception as err:
            elapsed_ms = (self.clock() - start_time) * 1000
            logger.warning("Action %s failed after %.2fms: %s", action_type, elapsed_ms, err)
            raise

        elapsed_ms = (self.clock() - start_time) * 1000
        self.metrics.setdefault(action_type, []).append(elapsed_ms)
        if elapsed_ms > self.threshold_ms:
            logger.warning("Action %s took %.2fms, exceeding threshold %sms", action_type, elapsed_ms, self.threshold_ms)
        elif self.log_all:
            logger.info("Action %s took %.2fms", action_type, elapsed_ms)

    def get_metrics(self) -> Dict[Any, Dict[str, float]]:
        """
        獲取性能指標統計信息。
        """
        result = {}
        for action_type, times in self.metrics.items():
            if not times:
                continue
            result[action_type] = {
                'avg': sum(times) / len(times),
                'max': max(times),
                'min': min(times),
                'count': len(times),
            }
        return result
