"""
detect.quiz_locator
在 DOM 快照中定位一道题目及其候选答案。

流程：
  1) 取 body 下可见元素（排除 script/style/noscript，宽高均 > 0），保持文档顺序；
  2) 问题第一轮：首个长度在 [10, 500) 且命中问题规则的元素；
  3) 问题第二轮（仅第一轮失败时）：首个含 "?" 且长度在 (15, 500) 的元素；
  4) 未找到问题 → 返回空结果，不再搜索答案；
  5) 搜索范围：最近的容器祖先（form/fieldset/...），否则祖父元素，否则 body；
  6) 答案三种策略依次尝试，仅当已接受数 < 2 时才尝试下一种：
     a. radio/checkbox 及其 label；b. 列表项；c. 形如选项的通用元素；
  7) 按提取文本精确去重（保留首次出现），截断到 10 个。

注意：策略 a 一旦得到 ≥ 2 个候选，策略 b/c 整体跳过（有意的短路）。
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .config import QuizConfig
from .constants import CHOICE_INPUT_TYPES, EXCLUDED_TAGS, LIST_TAGS, PATTERN_ANSWER_TAGS
from .dom_snapshot import DomNode, DomSnapshot, matches_any
from .text_utils import extract_text
from .types import AnswerCandidate, DetectionResult, ElementLocator, PageText, QuestionCandidate
from .utils import make_printer

Accepted = List[Tuple[str, DomNode]]


class QuizLocator:
    def __init__(self, config: Optional[QuizConfig] = None, *, verbose: bool = True) -> None:
        self.config = config or QuizConfig()
        self._v = make_printer("detect.quiz", verbose)

    # ------------------------------------------------------------------ 问题
    def visible_elements(self, snapshot: DomSnapshot) -> List[DomNode]:
        return [n for n in snapshot.elements() if n.tag not in EXCLUDED_TAGS and n.visible]

    def find_question(self, snapshot: DomSnapshot) -> Optional[Tuple[str, DomNode]]:
        cfg = self.config
        visible = self.visible_elements(snapshot)
        for el in visible:
            text = extract_text(el)
            if not text or len(text) < cfg.min_question_len:
                continue
            if len(text) < cfg.max_question_len and cfg.question_rules.matches(text):
                self._v(f"question found: {text!r}")
                return text, el

        self._v("no unambiguous question, falling back to the first text with '?'")
        for el in visible:
            text = extract_text(el)
            if text and "?" in text and cfg.fallback_min_question_len < len(text) < cfg.max_question_len:
                self._v(f"question found (fallback): {text!r}")
                return text, el
        return None

    def search_scope(self, snapshot: DomSnapshot, question_el: DomNode) -> DomNode:
        """最近的容器祖先（含自身），否则祖父元素，否则 body。"""
        selectors = self.config.container_selectors
        container = snapshot.closest(question_el, lambda n: matches_any(n, selectors))
        if container is not None:
            return container
        parent = snapshot.parent(question_el)
        grandparent = snapshot.parent(parent) if parent is not None else None
        if grandparent is not None:
            return grandparent
        return snapshot.body or question_el

    # ------------------------------------------------------------------ 答案
    def _accept(self, text: str) -> bool:
        return 0 < len(text) < self.config.max_answer_len

    def answers_from_inputs(self, snapshot: DomSnapshot, scope: DomNode) -> Accepted:
        out: Accepted = []
        for inp in snapshot.descendants(scope):
            if inp.tag != "input" or inp.attr("type").lower() not in CHOICE_INPUT_TYPES:
                continue
            label = snapshot.find_label_for(inp.attr("id")) or snapshot.closest(inp, lambda n: n.tag == "label")
            target = label or snapshot.parent(inp)
            if target is None:
                continue
            text = extract_text(target)
            if self._accept(text):
                out.append((text, target))
        return out

    def answers_from_lists(self, snapshot: DomSnapshot, scope: DomNode) -> Accepted:
        out: Accepted = []
        lists = [n for n in snapshot.descendants(scope) if n.tag in LIST_TAGS]
        for lst in lists:
            for item in snapshot.descendants(lst):
                if item.tag != "li":
                    continue
                text = extract_text(item)
                if self._accept(text):
                    out.append((text, item))
        return out

    def answers_from_patterns(self, snapshot: DomSnapshot, scope: DomNode, seen: Iterable[str]) -> Accepted:
        out: Accepted = []
        taken = set(seen)
        for el in snapshot.descendants(scope):
            if el.tag not in PATTERN_ANSWER_TAGS:
                continue
            text = extract_text(el)
            if self._accept(text) and self.config.answer_rules.matches(text) and text not in taken:
                taken.add(text)
                out.append((text, el))
        return out

    def find_answers(self, snapshot: DomSnapshot, question_el: DomNode) -> Accepted:
        cfg = self.config
        scope = self.search_scope(snapshot, question_el)
        found: Accepted = self.answers_from_inputs(snapshot, scope)
        if len(found) < cfg.min_answers:
            found += self.answers_from_lists(snapshot, scope)
        if len(found) < cfg.min_answers:
            found += self.answers_from_patterns(snapshot, scope, (t for t, _ in found))
        return self.dedupe(found)[: cfg.max_answers]

    @staticmethod
    def dedupe(found: Accepted) -> Accepted:
        """按提取文本精确去重，保留文档顺序中的首次出现。"""
        seen = set()
        out: Accepted = []
        for text, el in found:
            if text in seen:
                continue
            seen.add(text)
            out.append((text, el))
        return out

    # ------------------------------------------------------------------ 入口
    def detect(self, snapshot: DomSnapshot) -> DetectionResult:
        self._v(f"scanning {len(snapshot)} elements (epoch={snapshot.epoch})")
        hit = self.find_question(snapshot)
        if hit is None:
            self._v("no question detected")
            return DetectionResult.empty()
        q_text, q_el = hit
        q_loc = ElementLocator.of(q_el, q_text)
        question = QuestionCandidate(text=PageText(q_text, q_loc), locator=q_loc)

        answers: List[AnswerCandidate] = []
        for text, el in self.find_answers(snapshot, q_el):
            loc = ElementLocator.of(el, text)
            answers.append(AnswerCandidate(text=PageText(text, loc), locator=loc))
        self._v(f"detected {len(answers)} answers: {[a.text.value for a in answers]}")
        return DetectionResult(question=question, answers=answers)
