"""
oracle.adapter
“问题 + 选项 → 答案文本” 与 “截图 → 答案文本” 两种问答方式的统一入口。
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from detect.errors import ServiceError
from detect.utils import make_printer

from .config import OracleConfig, get_oracle_config
from .image_utils import to_data_url
from .llm_client import complete_text, make_client
from .prompts import build_image_prompt, build_text_prompt


class AnswerOracle:
    """包装 LLM 客户端；返回的文本已去除首尾空白，且非空。"""

    def __init__(self, config: Optional[OracleConfig] = None, *, client: Any = None, verbose: bool = True) -> None:
        self.config = config or get_oracle_config()
        self._client = client
        self.verbose = verbose
        self._v = make_printer("oracle.adapter", verbose)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = make_client(self.config)
        return self._client

    def resolve_text(self, question: str, answers: Sequence[str]) -> str:
        prompt = build_text_prompt(question, answers, self.config.locale)
        self._v(f"text request: question_len={len(question)} options={len(answers)}")
        return complete_text(prompt, config=self.config, client=self.client, verbose=self.verbose)

    def resolve_image(self, image_bytes: bytes) -> str:
        if not image_bytes:
            raise ServiceError(code="NO_IMAGE", stage="oracle", message="Screenshot is empty.")
        try:
            url, size = to_data_url(image_bytes)
        except (OSError, ValueError) as e:
            # PIL.UnidentifiedImageError 是 OSError 的子类
            raise ServiceError(code="BAD_IMAGE", stage="oracle", message=f"Screenshot could not be decoded: {e}", original=e) from e
        self._v(f"image request: jpeg_bytes={size}")
        return complete_text(
            build_image_prompt(self.config.locale),
            image_data_url=url,
            config=self.config,
            client=self.client,
            verbose=self.verbose,
        )
