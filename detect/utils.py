"""
detect.utils
通用工具函数：JSON 读写、配置加载、日志打印与敏感信息遮盖。
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, Optional


def write_json(path: str, obj: Dict[str, Any]) -> None:
    """以 UTF-8 与缩进写入 JSON 文件（自动创建父目录）。"""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


def load_json_config(path: Optional[str]) -> Dict[str, Any]:
    """加载 JSON 配置文件（若不存在或解析失败则返回空 dict）。"""
    if not path:
        return {}
    try:
        if not os.path.exists(path):
            return {}
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, ValueError):
        return {}


def mask(s: Optional[str]) -> str:
    """遮盖密钥，只保留首尾少量字符。"""
    if not s:
        return "<empty>"
    if len(s) <= 6:
        return "*" * len(s)
    return f"{s[:3]}***{s[-2:]} (len={len(s)})"


def make_printer(prefix: str, verbose: bool = True) -> Callable[[str], None]:
    """返回带前缀的打印函数；verbose=False 时为空操作。"""

    def _v(msg: str) -> None:
        if verbose:
            print(f"[{prefix}] {msg}")

    return _v
