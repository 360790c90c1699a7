"""
detect.patterns
问题 / 答案选项的启发式分类器。

规则集（RuleSet）是有序的命名正则列表，任一规则命中即返回 True（短路）。
语言支持属于配置：内置波兰语（参考启发式）与英语问题规则，
也可以通过 JSON 配置替换为任意规则集。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

RuleEntry = Union[str, Tuple[str, str], Dict[str, Any]]


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: "re.Pattern[str]"

    def __call__(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass
class RuleSet:
    name: str
    rules: List[Rule] = field(default_factory=list)

    def matches(self, text: Optional[str]) -> bool:
        if not text:
            return False
        return any(rule(text) for rule in self.rules)

    def first_match(self, text: Optional[str]) -> Optional[str]:
        """返回第一个命中的规则名，便于调试。"""
        if not text:
            return None
        for rule in self.rules:
            if rule(text):
                return rule.name
        return None

    @classmethod
    def compile(cls, name: str, entries: Iterable[RuleEntry]) -> "RuleSet":
        """由规则描述构建规则集。

        每条描述可以是：
          - "regex"（默认忽略大小写 = False）
          - ("name", "regex")
          - {"name": ..., "pattern": ..., "ignore_case": bool}
        """
        rules: List[Rule] = []
        for i, item in enumerate(entries):
            if isinstance(item, str):
                rname, pat, icase = f"{name}_{i}", item, False
            elif isinstance(item, dict):
                rname = str(item.get("name") or f"{name}_{i}")
                pat = str(item.get("pattern") or "")
                icase = bool(item.get("ignore_case", False))
            else:
                rname, pat = item[0], item[1]
                icase = False
            flags = re.IGNORECASE if icase else 0
            rules.append(Rule(rname, re.compile(pat, flags)))
        return cls(name=name, rules=rules)


def _rules(name: str, entries: Sequence[Tuple[str, str, bool]]) -> RuleSet:
    return RuleSet.compile(name, [{"name": n, "pattern": p, "ignore_case": i} for n, p, i in entries])


# 结构性规则（与语言无关）：编号/字母/项目符号前缀 + 末尾问号；以问号结尾的一行
_STRUCTURAL_QUESTION = [
    ("prefixed_question", r"^(\d+[.)]|\w+[.)]|\w+:|\*|-|•)\s*(.+\?)", False),
    ("question_marker", r"question\s*\d*[:.]?\s*(.+\?)", True),
    ("trailing_question_mark", r"(.+\?)$", False),
]

POLISH_QUESTION_RULES = _rules(
    "question_pl",
    [
        _STRUCTURAL_QUESTION[0],
        ("pytanie_marker", r"pytanie\s*\d*[:.]?\s*(.+\?)", True),
        _STRUCTURAL_QUESTION[1],
        _STRUCTURAL_QUESTION[2],
        ("ktore_z_ponizszych", r"które?\s+z?\s+poniższych", True),
        ("co_jest", r"co\s+(to\s+)?jest", True),
        ("jak_nazywa", r"jak\s+(się\s+)?nazywa", True),
        ("wybierz_prawidlowa", r"wybierz\s+(prawidłową|właściwą)", True),
        ("wskaz_prawidlowa", r"wskaż\s+(prawidłową|poprawną)", True),
        ("zaznacz_prawidlowa", r"zaznacz\s+(prawidłową|poprawną)", True),
        ("interrogative_pl", r"\b(który|która|które|co|jak|gdzie|kiedy|dlaczego|czemu)\b", True),
    ],
)

ENGLISH_QUESTION_RULES = _rules(
    "question_en",
    [
        _STRUCTURAL_QUESTION[0],
        _STRUCTURAL_QUESTION[1],
        _STRUCTURAL_QUESTION[2],
        ("which_of_the_following", r"which\s+of\s+the\s+following", True),
        ("what_is", r"what\s+is", True),
        ("how_is_called", r"how\s+is\s+.+\s+called", True),
        ("choose_the_correct", r"(choose|select|mark)\s+the\s+correct", True),
        ("interrogative_en", r"\b(who|what|which|where|when|why)\b", True),
    ],
)

ANSWER_RULES = _rules(
    "answer",
    [
        ("letter_marker", r"^[a-z][).]\s+", True),
        ("digit_marker", r"^[0-9][).]\s+", False),
        ("bullet", r"^[*\-•]\s+", False),
        ("yes_no", r"^(tak|nie|yes|no)$", True),
        ("roman_marker", r"^[ivxlcdm]+[).]\s+", True),
    ],
)

QUESTION_RULES_BY_LOCALE = {
    "pl": POLISH_QUESTION_RULES,
    "en": ENGLISH_QUESTION_RULES,
}

DEFAULT_QUESTION_RULES = POLISH_QUESTION_RULES


def looks_like_question(text: Optional[str], rules: Optional[RuleSet] = None) -> bool:
    """文本是否像一个问题（原始文本，不做归一化）。"""
    return (rules or DEFAULT_QUESTION_RULES).matches(text)


def looks_like_answer(text: Optional[str], rules: Optional[RuleSet] = None) -> bool:
    """文本是否像一个答案选项（a) / 1. / 项目符号 / 是否 / 罗马数字）。"""
    return (rules or ANSWER_RULES).matches(text)


def question_rules_for(locale: Optional[str]) -> RuleSet:
    return QUESTION_RULES_BY_LOCALE.get((locale or "").lower(), DEFAULT_QUESTION_RULES)
