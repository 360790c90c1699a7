"""
Playwright-backed browser environment for solving quizzes on a live page.

Methods provided are intentionally minimal:
  - page                      -> the underlying sync Playwright Page
  - current_url() -> str
  - goto(url) -> None

Usage:
  from browser.env import make_env
  with make_env(url, headless=False) as env:
      solver.solve_text(env.page)

远程浏览器支持：
  - QP_BROWSER_BACKEND=cdp 且设置 QP_PLAYWRIGHT_CDP_URL（或传入 cdp_url）时，
    通过 connect_over_cdp 连接到用户已打开的 Chrome，并复用其当前页面，
    这样可以直接在用户正在答题的标签页上执行。
"""

from __future__ import annotations

from contextlib import contextmanager
import json as _json
import os
import urllib.request as _urllib_request
from typing import Iterator, Optional

from playwright.sync_api import sync_playwright


class PWEnv:
    def __init__(self, page) -> None:
        self._page = page

    @property
    def page(self):
        return self._page

    def current_url(self) -> str:
        try:
            return self._page.url or ""
        except Exception:
            return ""

    def goto(self, url: str, *, wait_until: str = "domcontentloaded") -> None:
        self._page.goto(url, wait_until=wait_until)


def _resolve_cdp_ws_url(endpoint: str) -> str:
    """给定一个 CDP 端点，尽力解析出可用的 webSocketDebuggerUrl。

    支持两种形式：
      - http://host:9222      → 通过 /json/version 解析 webSocketDebuggerUrl
      - ws://host:9222/...    → 直接返回
    """
    ep = (endpoint or "").strip()
    if ep.startswith("ws://") or ep.startswith("wss://"):
        return ep
    if not ep.startswith("http://") and not ep.startswith("https://"):
        return f"ws://{ep}"
    try:
        url = ep.rstrip("/") + "/json/version"
        with _urllib_request.urlopen(url, timeout=3.0) as resp:
            data = resp.read().decode("utf-8", errors="ignore")
        meta = _json.loads(data) if data else {}
        ws = meta.get("webSocketDebuggerUrl") or ""
        if isinstance(ws, str) and ws.strip():
            return ws.strip()
    except (OSError, ValueError):
        pass
    return ep


@contextmanager
def make_env(
    url: Optional[str] = None,
    *,
    headless: bool = True,
    slow_mo: Optional[int] = None,
    default_timeout_ms: Optional[int] = None,
    auto_close: bool = True,
    cdp_url: Optional[str] = None,
) -> Iterator[PWEnv]:
    """Context manager to create a PWEnv.

    headless=True by default; set False to watch the highlighting happen.
    CDP 模式下不会关闭用户的浏览器，只断开连接。
    """
    with sync_playwright() as pw:
        backend = os.getenv("QP_BROWSER_BACKEND", "local").strip().lower()
        cdp = cdp_url or os.getenv("QP_PLAYWRIGHT_CDP_URL") or ""
        use_cdp = bool(cdp) and (cdp_url is not None or backend in {"cdp", "remote_cdp"})

        if use_cdp:
            browser = pw.chromium.connect_over_cdp(_resolve_cdp_ws_url(cdp))
            context = browser.contexts[0] if browser.contexts else browser.new_context()
            page = context.pages[0] if context.pages else context.new_page()
        else:
            browser = pw.chromium.launch(headless=headless, slow_mo=(slow_mo or 0))
            context = browser.new_context()
            page = context.new_page()

        if isinstance(default_timeout_ms, int) and default_timeout_ms > 0:
            page.set_default_timeout(int(default_timeout_ms))
        if url:
            page.goto(url, wait_until="domcontentloaded")
        try:
            yield PWEnv(page)
        finally:
            if auto_close and not use_cdp:
                try:
                    context.close()
                except Exception:
                    pass
                try:
                    browser.close()
                except Exception:
                    pass
