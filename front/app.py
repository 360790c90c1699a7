from __future__ import annotations

"""
Flask 控制服务：替代浏览器插件弹窗，提供设置管理与“求解”触发接口。

接口：
  GET  /api/settings          读取设置（密钥已遮盖）
  POST /api/settings          {"api_key": "...", "auto_select_enabled": true}
  POST /api/check_api         {"api_key": "..."}（可选，缺省使用已保存的密钥）
  POST /api/goto              {"url": "https://..."}
  POST /api/solve_text        文本模式求解一次
  POST /api/solve_screenshot  截图模式求解一次

求解接口的 HTTP 状态码取决于结果：
  selected/manual → 200，detection_failed → 422，busy → 409，
  缺少密钥 → 412，其它错误 → 502。
"""

import argparse
from typing import Any, Callable, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from detect.config import QuizConfig
from oracle.config import get_oracle_config
from oracle.llm_client import check_api
from solver.pipeline import (
    STATUS_BUSY,
    STATUS_DETECTION_FAILED,
    STATUS_ERROR,
    STATUS_MANUAL,
    STATUS_SELECTED,
    QuizSolver,
    SolveOutcome,
)
from solver.settings import SettingsStore

from .worker import BrowserWorker

HTTP_STATUS = {
    STATUS_SELECTED: 200,
    STATUS_MANUAL: 200,
    STATUS_DETECTION_FAILED: 422,
    STATUS_BUSY: 409,
    STATUS_ERROR: 502,
}


def outcome_response(outcome: SolveOutcome) -> Tuple[Dict[str, Any], int]:
    if outcome.code == "NO_API_KEY":
        return outcome.to_dict(), 412
    return outcome.to_dict(), HTTP_STATUS.get(outcome.status, 500)


def _default_check(api_key: str) -> Tuple[bool, str]:
    return check_api(get_oracle_config().with_api_key(api_key))


def create_app(
    worker: BrowserWorker,
    settings_store: SettingsStore,
    *,
    check: Optional[Callable[[str], Tuple[bool, str]]] = None,
) -> Flask:
    """构造 Flask 应用；worker 与 settings_store 由调用方创建（测试时可注入替身）。"""
    app = Flask(__name__)
    check_fn = check or _default_check

    @app.get("/api/settings")
    def get_settings():
        return jsonify(settings_store.load().public_dict()), 200

    @app.post("/api/settings")
    def save_settings():
        payload = request.get_json(silent=True) or {}
        api_key = payload.get("api_key")
        auto = payload.get("auto_select_enabled")
        if api_key is not None and not isinstance(api_key, str):
            return jsonify({"ok": False, "error": "api_key must be a string"}), 400
        if auto is not None and not isinstance(auto, bool):
            return jsonify({"ok": False, "error": "auto_select_enabled must be a boolean"}), 400
        s = settings_store.update(api_key=api_key, auto_select_enabled=auto)
        print(f"[front.app] settings saved has_key={s.has_api_key} auto_select={s.auto_select_enabled}")
        return jsonify({"ok": True, **s.public_dict()}), 200

    @app.post("/api/check_api")
    def check_api_route():
        payload = request.get_json(silent=True) or {}
        key = str(payload.get("api_key") or "").strip() or settings_store.load().api_key
        if not key:
            return jsonify({"ok": False, "status": "Status: missing API key!"}), 412
        ok, status = check_fn(key)
        return jsonify({"ok": ok, "status": status}), 200

    @app.post("/api/goto")
    def goto():
        payload = request.get_json(silent=True) or {}
        url = str(payload.get("url") or "").strip()
        if not url:
            return jsonify({"ok": False, "error": "empty_url"}), 400
        return jsonify({"ok": True, "url": worker.goto(url)}), 200

    @app.post("/api/solve_text")
    def solve_text():
        result, status = outcome_response(worker.solve("text"))
        return jsonify(result), status

    @app.post("/api/solve_screenshot")
    def solve_screenshot():
        result, status = outcome_response(worker.solve("screenshot"))
        return jsonify(result), status

    return app


def main(argv: Optional[List[str]] = None) -> None:
    """启动浏览器线程与 Flask 服务。"""
    parser = argparse.ArgumentParser(description="QuizPilot 控制服务（设置 + 求解接口）")
    parser.add_argument("--url", default=None, help="启动后打开的页面")
    parser.add_argument("--cdp-url", default=None, help="连接已有 Chromium（CDP）而不是新启动")
    parser.add_argument("--headed", action="store_true", help="显示浏览器窗口")
    parser.add_argument("--config", default=None, help="阈值 / 规则集 JSON")
    parser.add_argument("--settings", default=None, help="设置文件路径")
    parser.add_argument("--port", type=int, default=5002, help="Flask 监听端口（默认 5002）")
    parser.add_argument("--no-verbose", dest="verbose", action="store_false")
    args = parser.parse_args(argv)

    store = SettingsStore(args.settings)
    solver = QuizSolver(settings_store=store, config=QuizConfig.from_json(args.config), verbose=args.verbose)
    worker = BrowserWorker(
        solver,
        url=args.url,
        headless=not args.headed,
        cdp_url=args.cdp_url,
        verbose=args.verbose,
    ).start()
    print(f"[front.app] settings file = {store.path}")
    try:
        create_app(worker, store).run(host="127.0.0.1", port=int(args.port), threaded=True)
    finally:
        worker.stop()


if __name__ == "__main__":  # pragma: no cover
    main()
