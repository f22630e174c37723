import logging
from typing import Any, Callable, Dict, Mapping, Optional, Set, TypeVar

from immutables import Map

from .actions import ActionTypes, init_store
from .errors import ReducerError
from .types import ActionRecord, Reducer

logger = logging.getLogger(__name__)

S = TypeVar("S")


def create_reducer(initial_state: S, *handlers) -> Reducer[S]:
    """
    創建一個 reducer 函式，用於處理狀態變更。

    Args:
        initial_state: 初始狀態，當 reducer 收到 None 狀態時使用。
        *handlers: 一系列 (action_type, handler_fn) 元組或使用 on 函式創建的處理器。

    Returns:
        一個 reducer 函式，根據 action 的類型執行對應的處理邏輯。
    """
    action_handlers: Dict[Any, Callable[[S, ActionRecord], S]] = {}

    for handler in handlers:
        if isinstance(handler, tuple) and len(handler) == 2:
            action_type, handler_fn = handler
            action_handlers[action_type] = handler_fn
        else:
            action_handlers.update(handler)

    def reducer(state: Optional[S] = None, action: Optional[ActionRecord] = None) -> S:
        if state is None:
            state = initial_state
        if action is None:
            return state

        handler = action_handlers.get(action.get("type"))
        if handler:
            return handler(state, action)
        return state

    reducer.initial_state = initial_state  # type: ignore[attr-defined]
    reducer.handlers = action_handlers  # type: ignore[attr-defined]
    return reducer


def on(action_creator_or_type, handler: Callable[[Any, ActionRecord], Any]) -> Dict[Any, Callable]:
    """
    創建一個 action 類型與處理函式的映射。

    Args:
        action_creator_or_type: Action 創建器函式或 Action 類型。
        handler: 處理該 Action 的函式，接收 (state, action) 並返回新狀態。

    Returns:
        一個包含 {action_type: handler} 的字典。
    """
    if callable(action_creator_or_type) and hasattr(action_creator_or_type, "type"):
        action_type = action_creator_or_type.type
    else:
        action_type = action_creator_or_type

    return {action_type: handler}


def _assert_reducer_shape(reducers: Mapping[str, Reducer]) -> None:
    """確認每個 reducer 對 INIT 與未知 action 都回傳非 None 的初始狀態。"""
    for key, reducer in reducers.items():
        initial_state = reducer(None, init_store())
        if initial_state is None:
            raise ReducerError(
                f'Reducer "{key}" returned None during initialization. '
                "If the state passed to the reducer is None, you must explicitly return the initial state. "
                "The initial state may not be None; use a sentinel value if you do not want to set one.",
                reducer_name=key,
                action_type=ActionTypes.INIT,
            )

        probe_type = ActionTypes.probe_unknown_action()
        if reducer(None, Map(type=probe_type)) is None:
            raise ReducerError(
                f'Reducer "{key}" returned None when probed with a random type. '
                f'Don\'t try to handle {ActionTypes.INIT} or other actions in the "@@minirex/*" namespace. '
                "They are considered private. Instead, you must return the current state for any unknown "
                "actions, unless it is None, in which case you must return the initial state.",
                reducer_name=key,
                action_type=probe_type,
            )


def combine_reducers(reducers: Mapping[str, Reducer]) -> Reducer[Map]:
    """
    將值為 reducer 的映射合併為單一的根 reducer。

    根 reducer 以相同的鍵調用每個子 reducer，並把結果收集為 immutables.Map。
    沒有任何子狀態改變時回傳原本的狀態對象。

    Args:
        reducers: 鍵到 reducer 的映射，非可調用的值會被忽略。

    Returns:
        組合後的 reducer。
    """
    final_reducers: Dict[str, Reducer] = {}
    for key, reducer in reducers.items():
        if callable(reducer):
            final_reducers[key] = reducer
        else:
            logger.warning('No reducer provided for key "%s"', key)

    shape_error: Optional[ReducerError] = None
    try:
        _assert_reducer_shape(final_reducers)
    except ReducerError as err:
        # 延到第一次調用時才拋出
        shape_error = err

    warned_keys: Set[Any] = set()

    def combination(state: Optional[Mapping[str, Any]] = None, action: Optional[ActionRecord] = None) -> Map:
        if shape_error is not None:
            raise shape_error

        if state is None:
            state = Map()
        elif not isinstance(state, Mapping):
            logger.warning(
                "The state passed to the combined reducer has unexpected type %s; "
                "expected a mapping with keys %s. It will be replaced.",
                type(state).__name__,
                list(final_reducers),
            )
            state = Map()

        action_type = action.get("type") if action is not None else None
        unexpected = [k for k in state.keys() if k not in final_reducers and k not in warned_keys]
        if unexpected:
            warned_keys.update(unexpected)
            # 替換 reducer 後殘留的切片是預期內的，只記錄不警告
            if action_type != ActionTypes.REPLACE:
                logger.warning(
                    "Unexpected keys %s found in state; expected one of %s. Unexpected keys will be ignored.",
                    unexpected,
                    list(final_reducers),
                )

        has_changed = False
        next_state = Map().mutate()
        for key, reducer in final_reducers.items():
            previous_state_for_key = state.get(key)
            next_state_for_key = reducer(previous_state_for_key, action)
            if next_state_for_key is None:
                raise ReducerError(
                    f'Given action "{action_type}", reducer "{key}" returned None. '
                    "To ignore an action, you must explicitly return the previous state. "
                    "If you want this reducer to hold no value, you can return a sentinel instead of None.",
                    reducer_name=key,
                    action_type=action_type,
                )
            next_state[key] = next_state_for_key
            has_changed = has_changed or next_state_for_key is not previous_state_for_key

        has_changed = has_changed or len(final_reducers) != len(state)
        return next_state.finish() if has_changed else state

    return combination
