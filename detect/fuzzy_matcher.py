"""
detect.fuzzy_matcher
把模型返回的自由文本映射回原始选项或实时 DOM 元素。

两种匹配：
  - 闭集（resolve_option）：在已知选项列表中按归一化文本打分
      1.0 完全相等 / 0.9 选项包含回答 / 0.8 回答包含选项 / 0 其它，
    最高分 > 0.7 才接受；
  - 开集（find_best_element）：重新扫描实时 DOM 的全部元素，
    用归一化 Levenshtein 相似度打分，最高分 > 0.5 才接受。
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

from .constants import CLOSED_SET_THRESHOLD, OPEN_SET_THRESHOLD
from .dom_snapshot import DomSnapshot
from .text_utils import extract_text, normalize
from .types import AnswerCandidate, ElementLocator, MatchResult

Option = Union[str, AnswerCandidate]


def edit_distance(a: str, b: str) -> int:
    """大小写无关的 Levenshtein 距离（插入/删除/替换代价均为 1），单行滚动数组。"""
    a = (a or "").lower()
    b = (b or "").lower()
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    row = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        prev_diag, row[0] = row[0], i
        for j, cb in enumerate(b, 1):
            cur = row[j]
            if ca == cb:
                row[j] = prev_diag
            else:
                row[j] = min(prev_diag, row[j - 1], cur) + 1
            prev_diag = cur
    return row[len(b)]


def similarity(a: str, b: str) -> float:
    """(maxLen - editDistance) / maxLen；两个空串相似度为 1.0。对称。"""
    a = a or ""
    b = b or ""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return max(0.0, (longest - edit_distance(a, b)) / float(longest))


def _length_bound(a: str, b: str) -> float:
    """similarity 的上界：编辑距离至少为长度差。"""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return min(len(a), len(b)) / float(longest)


def containment_score(answer: str, option: str) -> float:
    """闭集打分（输入需已归一化）。"""
    if option == answer:
        return 1.0
    if answer in option:
        return 0.9
    if option in answer:
        return 0.8
    return 0.0


def resolve_option(
    answer: str,
    options: Sequence[Option],
    threshold: float = CLOSED_SET_THRESHOLD,
) -> MatchResult:
    """闭集匹配：返回得分最高的原始选项（同分取先出现者）。

    归一化后为空的回答或选项不参与打分（空串会“包含于”任何字符串）。
    """
    clean_answer = normalize(answer)
    best: Optional[Option] = None
    best_score = 0.0
    if clean_answer:
        for option in options:
            text = option.text.value if isinstance(option, AnswerCandidate) else str(option)
            clean_option = normalize(text)
            if not clean_option:
                continue
            score = containment_score(clean_answer, clean_option)
            if score > best_score:
                best_score = score
                best = option
    if best is None or best_score <= threshold:
        return MatchResult(chosen_text=answer, score=best_score, locator=None, accepted=False)
    if isinstance(best, AnswerCandidate):
        return MatchResult(chosen_text=best.text.value, score=best_score, locator=best.locator, accepted=True)
    return MatchResult(chosen_text=str(best), score=best_score, locator=None, accepted=True)


def find_best_element(
    snapshot: DomSnapshot,
    answer: str,
    threshold: float = OPEN_SET_THRESHOLD,
) -> MatchResult:
    """开集匹配：在实时快照的 body 全部后代中找与回答最相似的单个元素。

    同分取文档顺序中的第一个；长度上界不超过当前最佳分的元素直接跳过。
    """
    best_node = None
    best_text = ""
    best_score = 0.0
    for node in snapshot.elements():
        text = extract_text(node)
        if not text:
            continue
        if _length_bound(text, answer) <= best_score:
            continue
        score = similarity(text, answer)
        if score > best_score:
            best_score = score
            best_node = node
            best_text = text
    if best_node is None or best_score <= threshold:
        return MatchResult(chosen_text=answer, score=best_score, locator=None, accepted=False)
    return MatchResult(
        chosen_text=best_text,
        score=best_score,
        locator=ElementLocator.of(best_node, best_text),
        accepted=True,
    )
