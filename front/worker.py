"""
front.worker
持有 Playwright 的后台线程。

Playwright 同步 API 的对象只能在创建它们的线程里使用，因此 Flask 请求线程
不直接碰页面：每个请求把任务放进队列，并在自己的结果通道上等待这一条任务的结果。
求解类任务另有单飞守卫，上一轮未结束时直接返回 busy，而不是排队。
QuizSolver 自身的守卫只在浏览器线程里才被检查，此时后到的请求已经在队列中
等待上一轮结束，因此请求线程需要这一层；QuizSolver 的守卫仍负责 CLI 与重入调用。
"""

from __future__ import annotations

import queue
import threading
from typing import Any, Callable, Optional, Tuple

from browser.env import PWEnv, make_env
from detect.session import SingleFlight
from detect.types import DetectionResult
from detect.utils import make_printer
from solver.pipeline import BUSY_MESSAGE, STATUS_BUSY, QuizSolver, SolveOutcome

Task = Tuple[Callable[..., Any], tuple, "queue.Queue[Tuple[bool, Any]]"]


class BrowserWorker:
    def __init__(
        self,
        solver: QuizSolver,
        *,
        url: Optional[str] = None,
        headless: bool = True,
        cdp_url: Optional[str] = None,
        slow_mo: Optional[int] = None,
        default_timeout_ms: Optional[int] = None,
        verbose: bool = True,
    ) -> None:
        self.solver = solver
        self.url = url
        self.headless = headless
        self.cdp_url = cdp_url
        self.slow_mo = slow_mo
        self.default_timeout_ms = default_timeout_ms
        self.flight = SingleFlight()
        self._tasks: "queue.Queue[Optional[Task]]" = queue.Queue()
        self._ready = threading.Event()
        self._startup_error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None
        self._v = make_printer("front.worker", verbose)

    # ------------------------------------------------------------------ 生命周期
    def start(self, timeout: float = 60.0) -> "BrowserWorker":
        self._thread = threading.Thread(target=self._loop, name="qp-browser", daemon=True)
        self._thread.start()
        if not self._ready.wait(timeout):
            raise RuntimeError("browser worker did not start in time")
        if self._startup_error is not None:
            raise RuntimeError(f"browser worker failed to start: {self._startup_error}") from self._startup_error
        return self

    def stop(self, timeout: float = 10.0) -> None:
        if self._thread is None:
            return
        self._tasks.put(None)
        self._thread.join(timeout)
        self._thread = None

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        try:
            with make_env(
                self.url,
                headless=self.headless,
                slow_mo=self.slow_mo,
                default_timeout_ms=self.default_timeout_ms,
                cdp_url=self.cdp_url,
            ) as env:
                self._v(f"browser ready url={env.current_url()}")
                self._ready.set()
                self._serve(env)
        except Exception as e:
            self._startup_error = e
            self._v(f"browser loop ended: {type(e).__name__}: {e}")
        finally:
            self._ready.set()

    def _serve(self, env: PWEnv) -> None:
        while True:
            task = self._tasks.get()
            if task is None:
                return
            fn, args, reply = task
            try:
                reply.put((True, fn(env, *args)))
            except Exception as e:
                reply.put((False, e))

    # ------------------------------------------------------------------ 任务
    def submit(self, fn: Callable[..., Any], *args: Any, timeout: Optional[float] = None) -> Any:
        """在浏览器线程中执行 fn(env, *args) 并等待结果；fn 抛出的异常在调用方重新抛出。"""
        if not self.alive:
            raise RuntimeError("browser worker is not running")
        reply: "queue.Queue[Tuple[bool, Any]]" = queue.Queue(maxsize=1)
        self._tasks.put((fn, args, reply))
        ok, value = reply.get(timeout=timeout)
        if not ok:
            raise value
        return value

    def goto(self, url: str) -> str:
        def _goto(env: PWEnv, target: str) -> str:
            env.goto(target)
            return env.current_url()

        return self.submit(_goto, url)

    def current_url(self) -> str:
        return self.submit(lambda env: env.current_url())

    def solve(self, mode: str = "text") -> SolveOutcome:
        if not self.flight.try_begin():
            return SolveOutcome(status=STATUS_BUSY, message=BUSY_MESSAGE, code="BUSY", detection=DetectionResult.empty())
        try:
            if mode == "screenshot":
                return self.submit(lambda env: self.solver.solve_screenshot(env.page))
            return self.submit(lambda env: self.solver.solve_text(env.page))
        finally:
            self.flight.end()
