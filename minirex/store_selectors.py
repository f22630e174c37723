from typing import Any, Callable, List, Optional, Tuple


def create_selector(*selectors: Callable[[Any], Any], result_fn: Optional[Callable[..., Any]] = None,
                    deep: bool = False, maxsize: int = 128) -> Callable[[Any], Any]:
    """
    創建一個複合選擇器，支援記憶化與深淺比較

    Args:
        *selectors: 多個輸入選擇器，這些函數會從 state 中提取對應的值
        result_fn: 處理輸出結果的函數，將多個選擇器的輸出進行處理
        deep: 是否進行深度比較（預設為 False，即以 `is` 比較輸入）
        maxsize: 緩存的最大條目數，預設為128

    Returns:
        經過快取優化的 selector 函數
    """
    # 如果沒有 result_fn 且只有一個選擇器，直接返回該選擇器
    if result_fn is None and len(selectors) == 1:
        return selectors[0]

    if result_fn is None:
        result_fn = lambda *args: args

    cache: List[Tuple[Tuple[Any, ...], Any]] = []
    stats = {"hits": 0, "misses": 0}

    def matches(inputs: Tuple[Any, ...], cached_inputs: Tuple[Any, ...]) -> bool:
        if deep:
            return _deep_equals(inputs, cached_inputs)
        return all(a is b for a, b in zip(inputs, cached_inputs))

    def selector(state: Any) -> Any:
        inputs = tuple(select(state) for select in selectors)

        for cached_inputs, cached_result in cache:
            if matches(inputs, cached_inputs):
                stats["hits"] += 1
                return cached_result

        stats["misses"] += 1
        result = result_fn(*inputs)
        if len(cache) >= maxsize:
            cache.pop(0)
        cache.append((inputs, result))
        return result

    def cache_info() -> Tuple[int, int, int, int]:
        return (stats["hits"], stats["misses"], maxsize, len(cache))

    def cache_clear() -> None:
        cache.clear()
        stats["hits"] = stats["misses"] = 0

    selector.cache_info = cache_info  # type: ignore[attr-defined]
    selector.cache_clear = cache_clear  # type: ignore[attr-defined]
    return selector


def _deep_equals(a: Any, b: Any) -> bool:
    """結構化的深度比較"""
    if a is b:
        return True
    if type(a) != type(b):
        return False
    if isinstance(a, dict) or hasattr(a, "items") and hasattr(a, "keys"):
        if len(a) != len(b):
            return False
        return all(key in b and _deep_equals(value, b[key]) for key, value in a.items())
    if isinstance(a, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(_deep_equals(x, y) for x, y in zip(a, b))
    return a == b
