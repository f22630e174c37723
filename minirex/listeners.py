"""
Store 的監聽器註冊表。

註冊表維護兩個列表：正在被通知迴圈迭代的 active 列表，以及反映最新
subscribe/unsubscribe 調用的 staging 列表。每次通知開始時 staging 成為新的
active；在那之後第一次修改前，staging 會先被複製 (copy-on-write)。
因此通知過程中的註冊或取消只影響下一輪通知。
"""

from typing import Iterator, List

from .types import Listener


class ListenerRegistry:
    """有序、寫時複製的監聽器集合，由單一 Store 獨佔。"""

    __slots__ = ("_active", "_staging")

    def __init__(self) -> None:
        self._active: List[Listener] = []
        self._staging: List[Listener] = self._active

    def ensure_mutable_staging(self) -> None:
        """staging 與 active 為同一列表時，先複製一份再修改。"""
        if self._staging is self._active:
            self._staging = list(self._active)

    def add(self, listener: Listener) -> None:
        self.ensure_mutable_staging()
        self._staging.append(listener)

    def remove(self, listener: Listener) -> None:
        """移除 listener 在 staging 列表中的第一次出現。"""
        self.ensure_mutable_staging()
        try:
            self._staging.remove(listener)
        except ValueError:
            pass

    def snapshot(self) -> List[Listener]:
        """
        將 staging 提升為 active，並回傳本輪通知要迭代的列表。

        回傳的列表在之後不會被修改。
        """
        self._active = self._staging
        return self._active

    def notify(self) -> None:
        """
        依註冊順序同步調用快照中的每個 listener。

        listener 拋出的異常會立即向上傳播，本輪之後的 listener 不會被調用。
        """
        for listener in self.snapshot():
            listener()

    def __len__(self) -> int:
        return len(self._staging)

    def __iter__(self) -> Iterator[Listener]:
        return iter(list(self._staging))

    def __repr__(self) -> str:
        return f"ListenerRegistry(listeners={len(self._staging)})"
