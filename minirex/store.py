import contextlib
import logging
from typing import Any, Generic, Iterator, Optional, TypeVar

from reactivex import Observable
from reactivex import create as create_observable
from reactivex import operators as ops
from reactivex.disposable import Disposable

from .actions import init_store, is_plain_action, update_reducer
from .errors import ConfigurationError, MissingActionTypeError, NonPlainActionError, ReentrancyError
from .listeners import ListenerRegistry
from .types import Listener, Reducer, StateSelector, StoreEnhancer, Unsubscribe

logger = logging.getLogger(__name__)

S = TypeVar("S")


class Store(Generic[S]):
    """
    狀態容器，持有唯一的應用狀態並通知訂閱者狀態變更。

    改變狀態的唯一方式是 dispatch 一個 action：store 以當前狀態與 action
    調用 reducer，並以其回傳值作為下一個狀態，然後同步通知所有 listener。

    Store 假設所有調用都來自同一個執行緒上下文。dispatching 旗標只偵測重入
    (例如 reducer 回頭調用 store)，並不是多執行緒的互斥鎖；從多個執行緒並行
    使用同一個 store 屬於違反前置條件。
    """

    def __init__(self, reducer: Reducer[S], preloaded_state: Optional[S] = None):
        """
        建立一個未增強的 Store，並分發 INIT action 以建立初始狀態。

        Args:
            reducer: 根據當前狀態與 action 回傳下一個狀態的純函數
            preloaded_state: 可選的初始狀態
        """
        if not callable(reducer):
            raise ConfigurationError("Expected the reducer to be a function.", component="Store", config_key="reducer")

        self._reducer = reducer
        self._state = preloaded_state
        self._listeners = ListenerRegistry()
        self._is_dispatching = False
        # 未經中介軟體包裹的 dispatch；enhancer 可以覆蓋 self.dispatch
        self._raw_dispatch = self._dispatch_core
        self.dispatch = self._raw_dispatch

        # 讓每個 reducer 回傳其初始狀態，填充初始狀態樹
        self._raw_dispatch(init_store())

    @contextlib.contextmanager
    def _dispatching(self) -> Iterator[None]:
        """在 reducer 執行期間持有 dispatching 旗標，無論成功或失敗都會釋放。"""
        self._is_dispatching = True
        try:
            yield
        except Exception:
            logger.debug("reducer %r failed, state left unchanged", self._reducer, exc_info=True)
            raise
        finally:
            self._is_dispatching = False

    def _ensure_idle(self, operation: str, message: str) -> None:
        if self._is_dispatching:
            raise ReentrancyError(message, operation=operation)

    def get_state(self) -> S:
        """
        讀取 store 管理的狀態樹。

        Returns:
            當前狀態。

        Raises:
            ReentrancyError: 在 reducer 執行期間調用。
        """
        self._ensure_idle(
            "get_state",
            "You may not call store.get_state() while the reducer is executing. "
            "The reducer has already received the state as an argument. "
            "Pass it down from the top reducer instead of reading it from the store.",
        )
        return self._state

    @property
    def state(self) -> S:
        """當前狀態的快照，等同於 get_state()。"""
        return self.get_state()

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """
        添加一個變更監聽器，每次 dispatch 完成後都會被調用。

        監聽器列表在每次通知開始前做快照：通知過程中的 subscribe 或
        unsubscribe 不會影響正在進行的那一輪，只影響下一次 dispatch
        (無論是否為巢狀 dispatch)。

        Args:
            listener: 無參數的回調函數

        Returns:
            取消訂閱的函數，重複調用不會有任何效果。
        """
        if not callable(listener):
            raise ConfigurationError("Expected the listener to be a function.", component="Store", config_key="listener")

        self._ensure_idle(
            "subscribe",
            "You may not call store.subscribe() while the reducer is executing. "
            "If you would like to be notified after the store has been updated, "
            "subscribe and call store.get_state() in the callback to access the latest state.",
        )

        is_subscribed = True
        self._listeners.add(listener)

        def unsubscribe() -> None:
            nonlocal is_subscribed
            if not is_subscribed:
                return

            self._ensure_idle(
                "unsubscribe",
                "You may not unsubscribe from a store listener while the reducer is executing.",
            )

            is_subscribed = False
            self._listeners.remove(listener)

        return unsubscribe

    def _dispatch_core(self, action: Any) -> Any:
        """
        核心的 dispatch 方法。

        Args:
            action: 普通的鍵值記錄 (dict 或 immutables.Map)，必須帶有 "type" 欄位

        Returns:
            傳入的同一個 action 對象。
        """
        if not is_plain_action(action):
            raise NonPlainActionError(
                "Actions must be plain dicts or immutables.Map instances. "
                "Use custom middleware for other kinds of actions.",
                action=action,
            )

        if "type" not in action:
            raise MissingActionTypeError(
                'Actions may not have a missing "type" key. Have you misspelled a constant?',
                action=action,
            )

        self._ensure_idle("dispatch", "Reducers may not dispatch actions.")

        with self._dispatching():
            self._state = self._reducer(self._state, action)

        self._listeners.notify()
        return action

    def replace_reducer(self, next_reducer: Reducer[S]) -> None:
        """
        替換 store 用來計算狀態的 reducer，並立即分發 REPLACE action。

        適用於程式碼分割、動態載入 reducer 或熱重載。

        Args:
            next_reducer: 新的 reducer
        """
        if not callable(next_reducer):
            raise ConfigurationError(
                "Expected the next_reducer to be a function.", component="Store", config_key="next_reducer"
            )

        logger.debug("replacing reducer %r with %r", self._reducer, next_reducer)
        self._reducer = next_reducer
        self._raw_dispatch(update_reducer())

    def observable(self) -> Observable:
        """
        與反應式函式庫互通的最小可觀察對象。

        訂閱時會立即以當前狀態調用 on_next，之後每次 dispatch 完成都再次發送。
        釋放訂閱即取消對 store 的訂閱。

        Returns:
            發送狀態的 Observable。
        """
        def subscribe(observer, scheduler=None):
            def observe_state() -> None:
                observer.on_next(self.get_state())

            observe_state()
            return Disposable(self.subscribe(observe_state))

        return create_observable(subscribe)

    def select(self, selector: Optional[StateSelector] = None) -> Observable:
        """
        選擇狀態的一部分進行觀察。

        Args:
            selector: 一個函數，接收整個狀態並返回希望觀察的部分

        Returns:
            只在選定部分變化時才發送的 Observable。
        """
        if selector is None:
            return self.observable().pipe(ops.distinct_until_changed(comparer=lambda a, b: a is b))

        return self.observable().pipe(
            ops.map(selector),
            # 只有當選定部分變化時才發出
            ops.distinct_until_changed(),
        )

    def __repr__(self) -> str:
        return f"Store(reducer={self._reducer!r}, listeners={len(self._listeners)})"


def create_store(
    reducer: Reducer[S],
    preloaded_state: Any = None,
    enhancer: Optional[StoreEnhancer] = None,
) -> Store[S]:
    """
    創建一個 Store。

    一個應用只應有一個 store；不同部分的狀態可以用 combine_reducers 組合成
    單一的 reducer。

    Args:
        reducer: 根 reducer
        preloaded_state: 可選的初始狀態。若為可調用對象且未提供 enhancer，
            則視為 enhancer
        enhancer: 可選的 store enhancer，例如 apply_middleware() 的回傳值

    Returns:
        Store 實例 (或 enhancer 建構出的 store)。
    """
    if callable(preloaded_state) and enhancer is None:
        enhancer = preloaded_state
        preloaded_state = None

    if enhancer is not None:
        if not callable(enhancer):
            raise ConfigurationError(
                "Expected the enhancer to be a function.", component="create_store", config_key="enhancer"
            )
        return enhancer(create_store)(reducer, preloaded_state)

    return Store(reducer, preloaded_state)
