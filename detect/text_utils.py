"""
detect.text_utils
文本归一化与元素文本提取。

- normalize: 用于匹配比较的强归一化（小写、去标点、合并空白）。
- collapse_ws: 仅合并空白并去首尾空白。
- extract_text: 为 DOM 节点推导“可见文本”，按固定优先级回退。
"""

from __future__ import annotations

import re
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .dom_snapshot import DomNode

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WS = re.compile(r"\s+")

FIELD_TAGS = ("input", "textarea")


def collapse_ws(text: Optional[str]) -> str:
    """合并连续空白为单个空格并去掉首尾空白。"""
    return _WS.sub(" ", text or "").strip()


def normalize(text: Optional[str]) -> str:
    """比较用归一化：小写 → 去掉 [a-z0-9\\s] 以外字符 → 合并空白 → trim。

    注意：非 ASCII 字母（如 ą、ł、ó）同样会被去掉，这是启发式的已知限制。
    幂等：normalize(normalize(x)) == normalize(x)。
    """
    s = (text or "").lower()
    s = _NON_ALNUM.sub("", s)
    return collapse_ws(s)


def extract_text(node: Optional["DomNode"]) -> str:
    """返回节点的规范可见文本。

    优先级（取第一个非空）：
      1) innerText（渲染文本）；input/textarea 则优先 value，其次 placeholder；
      2) aria-label；
      3) title；
      4) textContent（包括未渲染文本）。
    结果统一做空白合并；节点为空或全部来源为空时返回 ""。
    """
    if node is None:
        return ""
    text = (node.inner_text or "").strip()
    if node.tag in FIELD_TAGS:
        text = (node.value or "").strip() or (node.placeholder or "").strip() or text
    if not text:
        text = (
            node.attr("aria-label").strip()
            or node.attr("title").strip()
            or (node.text_content or "").strip()
        )
    return collapse_ws(text)
