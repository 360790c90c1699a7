from __future__ import annotations

"""
solver.cli

命令行入口：打开页面（或连接已有浏览器），执行一次文本 / 截图求解并打印结果 JSON。

示例：
  python -m solver.cli --url https://example.com/quiz --mode text --auto-select
  python -m solver.cli --cdp-url http://localhost:9222 --mode screenshot
"""

import argparse
import json
import sys
from typing import List, Optional

from browser.env import make_env
from detect.config import QuizConfig

from .pipeline import QuizSolver
from .settings import MemorySettingsStore, SettingsStore


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Detect the quiz question on a page, ask the model and highlight the answer")
    ap.add_argument("--url", default=None, help="Page to open before solving (optional in CDP mode)")
    ap.add_argument("--mode", choices=["text", "screenshot"], default="text")
    ap.add_argument("--auto-select", dest="auto_select", action="store_true", help="Click the matched option")
    ap.add_argument("--cdp-url", default=None, help="Attach to a running Chromium over CDP instead of launching one")
    ap.add_argument("--headed", action="store_true", help="Launch a visible browser window")
    ap.add_argument("--slow-mo-ms", type=int, default=0)
    ap.add_argument("--default-timeout-ms", type=int, default=15000)
    ap.add_argument("--config", default=None, help="JSON file overriding thresholds and rule sets")
    ap.add_argument("--settings", default=None, help="Settings JSON path (default: QP_SETTINGS_FILE or ~/.quizpilot/settings.json)")
    ap.add_argument("--keep-open", action="store_true", help="Wait for Enter before closing the browser")
    ap.add_argument("--no-verbose", dest="verbose", action="store_false")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.url and not args.cdp_url:
        print("[solver.cli] either --url or --cdp-url is required", file=sys.stderr)
        return 2

    store: SettingsStore = SettingsStore(args.settings)
    if args.auto_select:
        # 只对本次运行生效，不写回设置文件
        settings = store.load()
        settings.auto_select_enabled = True
        store = MemorySettingsStore(settings)
    solver = QuizSolver(settings_store=store, config=QuizConfig.from_json(args.config), verbose=args.verbose)

    with make_env(
        args.url,
        headless=not args.headed,
        slow_mo=args.slow_mo_ms,
        default_timeout_ms=args.default_timeout_ms,
        cdp_url=args.cdp_url,
    ) as env:
        if args.mode == "screenshot":
            outcome = solver.solve_screenshot(env.page)
        else:
            outcome = solver.solve_text(env.page)
        print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
        if args.keep_open:
            input("[solver.cli] press Enter to close the browser...")
    return 0 if outcome.status in ("selected", "manual") else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
