"""
detect.types
检测与匹配阶段的数据结构。

元素只以 ElementLocator（data-qp-ref 描述符 + 采集时文本）的形式出现，
模型从不持有 DOM 节点；执行动作前必须针对实时 DOM 重新解析。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .constants import MIN_ANSWERS, REF_ATTR
from .text_utils import normalize


@dataclass(frozen=True)
class ElementLocator:
    ref: str
    tag: str = ""
    text: str = ""

    @property
    def selector(self) -> str:
        return f'[{REF_ATTR}="{self.ref}"]'

    @classmethod
    def of(cls, node, text: str = "") -> "ElementLocator":
        return cls(ref=node.ref, tag=node.tag, text=text)


@dataclass(frozen=True)
class PageText:
    """从元素提取出的文本（已合并空白）。"""

    value: str
    locator: Optional[ElementLocator] = None

    @property
    def length(self) -> int:
        return len(self.value)

    @property
    def normalized(self) -> str:
        return normalize(self.value)


@dataclass(frozen=True)
class QuestionCandidate:
    text: PageText
    locator: ElementLocator


@dataclass(frozen=True)
class AnswerCandidate:
    text: PageText
    locator: ElementLocator


@dataclass
class DetectionResult:
    question: Optional[QuestionCandidate] = None
    answers: List[AnswerCandidate] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "DetectionResult":
        return cls()

    @property
    def question_text(self) -> Optional[str]:
        return self.question.text.value if self.question else None

    @property
    def answer_texts(self) -> List[str]:
        return [a.text.value for a in self.answers]

    @property
    def ok(self) -> bool:
        return self.question is not None and len(self.answers) >= MIN_ANSWERS

    def to_dict(self) -> Dict[str, Any]:
        return {"question": self.question_text, "answers": self.answer_texts}


@dataclass
class MatchResult:
    """模糊匹配结果。

    accepted 为 False 时表示没有候选超过阈值，此时 locator 一定为 None，
    chosen_text 为最佳（未被接受的）候选文本或原始回答。
    闭集匹配针对纯字符串选项时，accepted 可以为 True 而 locator 为 None。
    """

    chosen_text: str
    score: float = 0.0
    locator: Optional[ElementLocator] = None
    accepted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
