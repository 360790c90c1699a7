"""
detect.session
单飞（single-flight）守卫：同一时间只允许一个“检测 → 模型 → 匹配 → 执行”流程。

守卫的持有范围覆盖到最终答案执行完成，而不仅是检测返回；
通过 hold() 上下文管理器保证在成功、失败、无匹配等所有出口释放。
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class SingleFlight:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def try_begin(self) -> bool:
        """非阻塞获取；已被持有（包括同一线程重入）时返回 False。"""
        return self._lock.acquire(blocking=False)

    def end(self) -> None:
        if self._lock.locked():
            self._lock.release()

    @contextmanager
    def hold(self) -> Iterator[bool]:
        acquired = self.try_begin()
        try:
            yield acquired
        finally:
            if acquired:
                self.end()
