"""
solver.settings
用户设置（API 密钥与自动选择开关）的持久化。

文件位置：QP_SETTINGS_FILE 指定，否则为 ~/.quizpilot/settings.json。
文件中没有密钥时回退到环境变量 QP_LLM_API_KEY。
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from detect.utils import load_json_config, mask, write_json


def default_settings_path() -> str:
    p = os.getenv("QP_SETTINGS_FILE", "").strip()
    if p:
        return p
    return os.path.join(os.path.expanduser("~"), ".quizpilot", "settings.json")


@dataclass
class Settings:
    api_key: str = ""
    auto_select_enabled: bool = False

    @property
    def has_api_key(self) -> bool:
        return bool((self.api_key or "").strip())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        data = data or {}
        return cls(
            api_key=str(data.get("api_key") or "").strip(),
            # 只有显式 true 才开启
            auto_select_enabled=data.get("auto_select_enabled") is True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def public_dict(self) -> Dict[str, Any]:
        """对外展示用：密钥被遮盖。"""
        return {
            "api_key": mask(self.api_key) if self.has_api_key else "",
            "has_api_key": self.has_api_key,
            "auto_select_enabled": self.auto_select_enabled,
        }


class SettingsStore:
    """JSON 文件读写；每次 load() 都重新读取，便于外部修改后立即生效。"""

    def __init__(self, path: Optional[str] = None, *, env_fallback: bool = True) -> None:
        self.path = path or default_settings_path()
        self.env_fallback = env_fallback

    def _read(self) -> Settings:
        return Settings.from_dict(load_json_config(self.path))

    def load(self) -> Settings:
        s = self._read()
        if not s.has_api_key and self.env_fallback:
            s.api_key = os.getenv("QP_LLM_API_KEY", "").strip()
        return s

    def save(self, settings: Settings) -> None:
        write_json(self.path, settings.to_dict())

    def update(self, *, api_key: Optional[str] = None, auto_select_enabled: Optional[bool] = None) -> Settings:
        """只更新给定字段；api_key 为空字符串视为不修改。"""
        current = self._read()
        if api_key is not None and api_key.strip():
            current.api_key = api_key.strip()
        if auto_select_enabled is not None:
            current.auto_select_enabled = bool(auto_select_enabled)
        self.save(current)
        return self.load()


class MemorySettingsStore(SettingsStore):
    """不落盘的设置存储（CLI 单次运行与测试使用）。"""

    def __init__(self, settings: Optional[Settings] = None, *, env_fallback: bool = False) -> None:
        super().__init__(path="<memory>", env_fallback=env_fallback)
        self._settings = settings or Settings()

    def _read(self) -> Settings:
        return Settings(**self._settings.to_dict())

    def save(self, settings: Settings) -> None:
        self._settings = Settings(**settings.to_dict())
