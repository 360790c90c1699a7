from __future__ import annotations

"""
oracle.config

集中管理与模型服务相关的基础配置（从环境变量 / .env 读取）。

环境变量：
- QP_LLM_API_KEY: API Key（也可由 solver.settings 中保存的密钥覆盖）
- QP_LLM_BASE_URL: OpenAI 兼容网关地址，默认 Gemini 的 OpenAI 兼容端点
- QP_LLM_MODEL: 模型名，默认 gemini-2.5-flash
- QP_LLM_TEMPERATURE / QP_LLM_MAX_TOKENS / QP_LLM_TOP_P
- QP_LLM_REQUEST_TIMEOUT: 单次请求超时秒数；默认不设置（请求挂起时整个流程随之挂起）
- QP_LLM_LOCALE: 提示词语言，pl（默认）或 en
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-flash"


def _load_dotenv_if_needed() -> None:
    """尽力从 .env 文件加载 QP_* 相关环境变量。

    - QP_ENV_FILE 指定路径优先；
    - 其次是 CWD/.env；
    - 再其次是仓库根目录的 .env。
    不覆盖已经存在于 os.environ 的变量。
    """
    af = os.getenv("QP_ENV_FILE", "").strip()
    if af and os.path.exists(af):
        load_dotenv(af, override=False)
    cwd_env = os.path.join(os.getcwd(), ".env")
    if os.path.exists(cwd_env):
        load_dotenv(cwd_env, override=False)
    here = os.path.dirname(__file__)
    repo_env = os.path.abspath(os.path.join(here, os.pardir, ".env"))
    if os.path.exists(repo_env):
        load_dotenv(repo_env, override=False)


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class OracleConfig:
    """模型服务配置。"""

    base_url: str
    api_key: str
    model: str
    temperature: float = 0.2
    max_tokens: int = 800
    top_p: float = 0.9
    request_timeout: Optional[float] = None
    locale: str = "pl"

    @classmethod
    def from_env(cls) -> "OracleConfig":
        """从环境变量构造配置，给出合理缺省值。"""
        _load_dotenv_if_needed()
        max_tokens = _env_float("QP_LLM_MAX_TOKENS", 800.0)
        return cls(
            base_url=os.getenv("QP_LLM_BASE_URL", "").strip() or DEFAULT_BASE_URL,
            api_key=os.getenv("QP_LLM_API_KEY", "").strip(),
            model=os.getenv("QP_LLM_MODEL", "").strip() or DEFAULT_MODEL,
            temperature=_env_float("QP_LLM_TEMPERATURE", 0.2) or 0.0,
            max_tokens=int(max_tokens or 800),
            top_p=_env_float("QP_LLM_TOP_P", 0.9) or 0.9,
            request_timeout=_env_float("QP_LLM_REQUEST_TIMEOUT", None),
            locale=os.getenv("QP_LLM_LOCALE", "").strip().lower() or "pl",
        )

    def with_api_key(self, api_key: Optional[str]) -> "OracleConfig":
        """返回使用给定密钥的副本（空值时保持不变）。"""
        key = (api_key or "").strip()
        return replace(self, api_key=key) if key else self


def get_oracle_config() -> OracleConfig:
    """便捷函数：获取当前环境下的 OracleConfig。"""
    return OracleConfig.from_env()
