import functools
from typing import Any, Callable


def _identity(arg: Any) -> Any:
    return arg


def compose(*funcs: Callable[..., Any]) -> Callable[..., Any]:
    """
    由右至左組合函數。

    最右邊的函數可以接收任意參數，它決定了組合後函數的簽名；其餘函數各自
    只接收右邊函數的單一回傳值。compose(f, g, h) 等同於
    lambda *args, **kwargs: f(g(h(*args, **kwargs)))。

    Args:
        *funcs: 要組合的函數

    Returns:
        組合後的函數。沒有參數時回傳恆等函數，只有一個參數時回傳該函數本身。
    """
    if not funcs:
        return _identity

    if len(funcs) == 1:
        return funcs[0]

    def pair(outer: Callable[..., Any], inner: Callable[..., Any]) -> Callable[..., Any]:
        def composed(*args: Any, **kwargs: Any) -> Any:
            return outer(inner(*args, **kwargs))
        return composed

    return functools.reduce(pair, funcs)
