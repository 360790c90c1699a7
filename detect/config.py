"""
detect.config
检测 / 匹配 / 执行阶段的可调参数集中在 QuizConfig 中。

阈值均为经验值（来源没有推导过程），因此全部保留为可配置常量；
可通过 JSON 文件覆盖，字段名与 dataclass 字段一致，另支持：
  - "locale": "pl" | "en"，选择内置问题规则集；
  - "question_rules" / "answer_rules": 规则描述列表，见 RuleSet.compile。
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from . import constants as C
from .patterns import ANSWER_RULES, DEFAULT_QUESTION_RULES, RuleSet, question_rules_for
from .utils import load_json_config


@dataclass
class QuizConfig:
    min_question_len: int = C.MIN_QUESTION_LEN
    max_question_len: int = C.MAX_QUESTION_LEN
    fallback_min_question_len: int = C.FALLBACK_MIN_QUESTION_LEN
    max_answer_len: int = C.MAX_ANSWER_LEN
    max_answers: int = C.MAX_ANSWERS
    min_answers: int = C.MIN_ANSWERS
    closed_set_threshold: float = C.CLOSED_SET_THRESHOLD
    open_set_threshold: float = C.OPEN_SET_THRESHOLD
    auto_select_delay_ms: int = C.AUTO_SELECT_DELAY_MS
    max_text_chars: int = C.MAX_TEXT_CHARS
    container_selectors: Tuple[str, ...] = C.CONTAINER_SELECTORS
    locale: str = "pl"
    question_rules: RuleSet = field(default_factory=lambda: DEFAULT_QUESTION_RULES)
    answer_rules: RuleSet = field(default_factory=lambda: ANSWER_RULES)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizConfig":
        cfg = cls()
        data = data or {}
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key in ("question_rules", "answer_rules", "locale"):
                continue
            if key not in known:
                continue
            if key == "container_selectors":
                value = tuple(str(s) for s in (value or ()))
            else:
                default = getattr(cfg, key)
                value = type(default)(value)
            setattr(cfg, key, value)
        locale = str(data.get("locale") or "").strip()
        if locale:
            cfg.locale = locale
            cfg.question_rules = question_rules_for(locale)
        if data.get("question_rules"):
            cfg.question_rules = RuleSet.compile("question_custom", data["question_rules"])
        if data.get("answer_rules"):
            cfg.answer_rules = RuleSet.compile("answer_custom", data["answer_rules"])
        return cfg

    @classmethod
    def from_json(cls, path: Optional[str]) -> "QuizConfig":
        """从 JSON 文件加载（文件不存在或无效时使用默认值）。"""
        return cls.from_dict(load_json_config(path))
