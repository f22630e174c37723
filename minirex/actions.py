"""
MiniRex 的 Action 定義模組。

Action 是描述狀態變更意圖的不可變鍵值記錄，必須帶有 "type" 欄位。
此模組提供引擎保留的 action 類型、判斷 action 形狀的函數，以及
create_action / bind_action_creators 兩個便利工具。
"""
import uuid
from typing import Any, Callable, Dict, Mapping, Optional, Union

from immutables import Map

from .errors import ConfigurationError
from .immutable_utils import to_immutable
from .types import DispatchFunction

ActionCreator = Callable[..., Map]


def _random_token() -> str:
    return ".".join(uuid.uuid4().hex[:7])


class ActionTypes:
    """
    引擎內部保留的 action 類型。

    這些類型帶有固定前綴與隨機字串，使用者定義的類型不可能與之碰撞。
    reducer 不應直接處理它們：對任何未知 action，reducer 都應回傳當前狀態，
    狀態為 None 時回傳初始狀態。
    """

    INIT = f"@@minirex/INIT{_random_token()}"
    REPLACE = f"@@minirex/REPLACE{_random_token()}"

    @staticmethod
    def probe_unknown_action() -> str:
        """每次調用都回傳一個新的隨機類型，用於探測 reducer 對未知 action 的處理。"""
        return f"@@minirex/PROBE_UNKNOWN_ACTION{_random_token()}"


def is_plain_action(obj: Any) -> bool:
    """
    判斷 obj 是否為普通的鍵值記錄。

    只接受確切類型為 dict 或 immutables.Map 的對象；列表、可調用對象、
    dict 子類與自訂類別的實例 (包括 Pydantic 模型) 都會被拒絕。
    """
    return type(obj) is dict or type(obj) is Map


def _process_payload(payload: Any) -> Any:
    """將 dict 或 list 類的 payload 轉換為不可變結構。"""
    if isinstance(payload, (dict, Map, list, set)):
        return to_immutable(payload)
    return payload


def create_action(action_type: Any, prepare_fn: Optional[Callable[..., Any]] = None) -> ActionCreator:
    """
    創建一個 Action 生成器函數。

    Args:
        action_type: Action 的類型標識符
        prepare_fn: 可選的預處理函數，用於在創建 Action 前處理輸入參數

    Returns:
        一個可調用的函數，用於生成指定類型的 Action

    範例:
        >>> increment = create_action("[Counter] Increment")
        >>> increment()  # Map({"type": "[Counter] Increment"})
        >>>
        >>> add = create_action("[Counter] Add", lambda amount: amount)
        >>> add(5)  # Map({"type": "[Counter] Add", "payload": 5})
    """
    def action_creator(*args: Any, **kwargs: Any) -> Map:
        if prepare_fn is not None:
            payload = prepare_fn(*args, **kwargs)
        elif len(args) == 1 and not kwargs:
            payload = args[0]
        elif args or kwargs:
            payload = dict(zip(range(len(args)), args))
            payload.update(kwargs)
        else:
            # 無參數，無負載
            return Map(type=action_type)
        return Map(type=action_type, payload=_process_payload(payload))

    # 添加 type 屬性以便於識別
    action_creator.type = action_type  # type: ignore[attr-defined]
    return action_creator


def _bind_action_creator(action_creator: Callable[..., Any], dispatch: DispatchFunction) -> Callable[..., Any]:
    def bound(*args: Any, **kwargs: Any) -> Any:
        return dispatch(action_creator(*args, **kwargs))

    bound.__name__ = getattr(action_creator, "__name__", "bound_action_creator")
    if hasattr(action_creator, "type"):
        bound.type = action_creator.type  # type: ignore[attr-defined]
    return bound


def bind_action_creators(
    action_creators: Union[Callable[..., Any], Mapping[str, Any]],
    dispatch: DispatchFunction,
) -> Union[Callable[..., Any], Dict[str, Callable[..., Any]]]:
    """
    將 action 生成器與 dispatch 綁定，調用後直接分發其結果。

    Args:
        action_creators: 單一 action 生成器，或值為 action 生成器的映射
        dispatch: store 的 dispatch 函數

    Returns:
        傳入單一函數時回傳綁定後的函數；傳入映射時回傳相同鍵的字典，
        其中非可調用的值會被略過。
    """
    if callable(action_creators):
        return _bind_action_creator(action_creators, dispatch)

    if not isinstance(action_creators, Mapping):
        raise ConfigurationError(
            "bind_action_creators expected a mapping or a function, "
            f"instead received {type(action_creators).__name__}.",
            component="bind_action_creators",
        )

    return {
        key: _bind_action_creator(creator, dispatch)
        for key, creator in action_creators.items()
        if callable(creator)
    }


# 根 Actions
init_store: ActionCreator = create_action(ActionTypes.INIT)
update_reducer: ActionCreator = create_action(ActionTypes.REPLACE)
