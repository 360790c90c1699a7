from __future__ import annotations

"""
oracle.llm_client

最小 LLM 调用封装（OpenAI 兼容聊天接口），用于“根据题目给出答案”。

特点：
- 只依赖 oracle.config.OracleConfig 读取 base_url/api_key/model 等；
- complete_text(prompt, image_data_url=None) 返回模型回答的纯文本；
- 不做重试与流式：一次求解中模型失败即为终止性错误；
- 所有传输 / 状态码 / 响应格式问题统一转换为 detect.errors.ServiceError。
"""

import time
from typing import Any, Dict, List, Optional, Tuple

from openai import APIConnectionError, APIError, APIStatusError, OpenAI

from detect.errors import ServiceError
from detect.utils import make_printer, mask

from .config import OracleConfig, get_oracle_config


def make_client(cfg: OracleConfig) -> Any:
    kwargs: Dict[str, Any] = {"api_key": cfg.api_key, "base_url": cfg.base_url or None}
    if cfg.request_timeout:
        kwargs["timeout"] = float(cfg.request_timeout)
    return OpenAI(**kwargs)


def _service_error(e: Exception) -> ServiceError:
    if isinstance(e, APIStatusError):
        msg = getattr(e, "message", None) or "Unknown error"
        return ServiceError(code="SERVICE_ERROR", stage="oracle", message=f"API ({e.status_code}): {msg}", original=e)
    if isinstance(e, APIConnectionError):
        return ServiceError(code="SERVICE_ERROR", stage="oracle", message=f"Network error: {e}", original=e)
    return ServiceError(code="SERVICE_ERROR", stage="oracle", message=f"API error: {e}", original=e)


def _build_messages(prompt: str, image_data_url: Optional[str]) -> List[Dict[str, Any]]:
    if not image_data_url:
        return [{"role": "user", "content": prompt}]
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_data_url}},
            ],
        }
    ]


def _extract_text(resp: Any) -> str:
    """取 choices[0].message.content；缺失或为空时视为格式错误。"""
    try:
        text = resp.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        text = None
    if not isinstance(text, str) or not text.strip():
        raise ServiceError(
            code="BAD_RESPONSE",
            stage="oracle",
            message="The AI returned a response in an unexpected format.",
        )
    return text.strip()


def complete_text(
    prompt: str,
    *,
    image_data_url: Optional[str] = None,
    config: Optional[OracleConfig] = None,
    client: Any = None,
    verbose: bool = True,
) -> str:
    """调用模型并返回回答文本。

    参数：
    - prompt: 用户提示词；
    - image_data_url: 可选，data:image/jpeg;base64,... 形式的截图；
    - config: 可选 OracleConfig；为空时从环境 get_oracle_config()；
    - client: 可选，已构造的 OpenAI 兼容客户端（测试时注入）；
    - verbose: 是否打印少量日志。
    """
    cfg = config or get_oracle_config()
    _v = make_printer("oracle.llm", verbose)
    cli = client or make_client(cfg)

    _v(f"model={cfg.model} base_url={cfg.base_url or 'openai-default'} key={mask(cfg.api_key)}")
    _v(f"prompt_chars={len(prompt)} image={'yes' if image_data_url else 'no'} temperature={cfg.temperature} max_tokens={cfg.max_tokens}")

    t0 = time.perf_counter()
    try:
        resp = cli.chat.completions.create(
            model=cfg.model,
            messages=_build_messages(prompt, image_data_url),
            temperature=cfg.temperature,
            top_p=cfg.top_p,
            max_tokens=cfg.max_tokens,
        )
    except APIError as e:
        raise _service_error(e) from e
    elapsed_ms = (time.perf_counter() - t0) * 1000.0

    text = _extract_text(resp)
    usage = getattr(resp, "usage", None)
    if usage is not None:
        _v(
            f"completion_len={len(text)} prompt_tokens={getattr(usage, 'prompt_tokens', None)} "
            f"completion_tokens={getattr(usage, 'completion_tokens', None)}"
        )
    else:
        _v(f"completion_len={len(text)} (usage unavailable)")
    _v(f"elapsed_ms={elapsed_ms:.1f}")
    return text


def check_api(config: Optional[OracleConfig] = None, *, client: Any = None) -> Tuple[bool, str]:
    """检查密钥是否可用（列出模型）。返回 (ok, 状态文本)。"""
    cfg = config or get_oracle_config()
    if not cfg.api_key:
        return False, "Status: missing API key!"
    cli = client or make_client(cfg)
    try:
        cli.models.list()
    except APIStatusError as e:
        return False, f"Status: error! ({getattr(e, 'message', None) or 'Unknown error'})"
    except APIError:
        return False, "Status: network error."
    return True, "Status: API works correctly!"


__all__ = ["complete_text", "check_api", "make_client"]
