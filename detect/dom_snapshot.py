"""
detect.dom_snapshot
通过 Playwright 一次性采集页面 DOM 简表，并在 Python 侧构建可遍历的快照。

采集脚本按文档顺序（前序遍历）返回 body 及其所有后代元素，并为每个元素写入
data-qp-ref="<epoch>-<idx>"，作为后续重新定位用的描述符。快照只保存数据，
不持有任何浏览器句柄；页面一旦变化，快照即视为过期。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .constants import MAX_TEXT_CHARS, REF_ATTR

COLLECT_JS = """
(opts) => {
  const maxChars = opts.maxChars;
  const refAttr = opts.refAttr;
  const epoch = (window.__qpEpoch = (window.__qpEpoch || 0) + 1);
  const body = document.body;
  if (!body) return { epoch, elements: [] };
  const all = [body, ...body.querySelectorAll('*')];
  const index = new Map();
  const clip = (s) => (typeof s === 'string' ? s : '').slice(0, maxChars);
  const out = [];
  all.forEach((el, i) => {
    index.set(el, i);
    const ref = `${epoch}-${i}`;
    try { el.setAttribute(refAttr, ref); } catch (_) {}
    const tag = (el.tagName || '').toLowerCase();
    const isField = tag === 'input' || tag === 'textarea';
    const cls = typeof el.className === 'string' ? el.className : (el.getAttribute('class') || '');
    out.push({
      idx: i,
      parent: el === body ? null : (index.has(el.parentElement) ? index.get(el.parentElement) : null),
      tag,
      ref,
      attrs: {
        id: el.id || '',
        class: cls,
        type: (el.getAttribute('type') || '').toLowerCase(),
        for: el.getAttribute('for') || '',
        role: el.getAttribute('role') || '',
        name: el.getAttribute('name') || '',
        'aria-label': el.getAttribute('aria-label') || '',
        title: el.getAttribute('title') || '',
      },
      inner_text: clip(el.innerText),
      text_content: clip(el.textContent),
      value: isField ? clip(el.value) : '',
      placeholder: isField ? (el.getAttribute('placeholder') || '') : '',
      checked: !!el.checked,
      width: el.offsetWidth || 0,
      height: el.offsetHeight || 0,
    });
  });
  return { epoch, elements: out };
}
"""


@dataclass
class DomNode:
    """快照中的一个元素（纯数据，不持有 DOM 引用）。"""

    idx: int
    tag: str
    ref: str
    parent_idx: Optional[int] = None
    attrs: Dict[str, str] = field(default_factory=dict)
    inner_text: str = ""
    text_content: str = ""
    value: str = ""
    placeholder: str = ""
    checked: bool = False
    width: float = 0
    height: float = 0

    def attr(self, name: str) -> str:
        return str(self.attrs.get(name) or "")

    @property
    def classes(self) -> List[str]:
        return self.attr("class").split()

    @property
    def visible(self) -> bool:
        """与 offsetWidth/offsetHeight 均大于 0 等价。"""
        return self.width > 0 and self.height > 0

    @property
    def selector(self) -> str:
        """重新定位该元素的 CSS 选择器。"""
        return f'[{REF_ATTR}="{self.ref}"]'

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "DomNode":
        parent = rec.get("parent")
        attrs = rec.get("attrs") or {}
        return cls(
            idx=int(rec.get("idx") or 0),
            tag=str(rec.get("tag") or "").lower(),
            ref=str(rec.get("ref") or ""),
            parent_idx=None if parent is None else int(parent),
            attrs={str(k): "" if v is None else str(v) for k, v in attrs.items()},
            inner_text=str(rec.get("inner_text") or ""),
            text_content=str(rec.get("text_content") or ""),
            value=str(rec.get("value") or ""),
            placeholder=str(rec.get("placeholder") or ""),
            checked=bool(rec.get("checked")),
            width=float(rec.get("width") or 0),
            height=float(rec.get("height") or 0),
        )


_ATTR_SEL = re.compile(r"\[([a-zA-Z0-9_\-:]+)=[\"']?([^\]\"']*)[\"']?\]")


def match_simple_selector(node: DomNode, selector: str) -> bool:
    """匹配简单选择器：tag / #id / .class / tag.class / [attr=value] 及其组合。

    不支持后代、并列（逗号）与伪类选择器。
    """
    s = (selector or "").strip()
    if not s or " " in s:
        return False
    for m in _ATTR_SEL.finditer(s):
        if node.attr(m.group(1).lower()) != m.group(2):
            return False
    s_wo = _ATTR_SEL.sub("", s)
    if s_wo.startswith("#"):
        return node.attr("id") == s_wo[1:]
    parts = s_wo.split(".")
    if parts[0] and parts[0] != "*" and parts[0].lower() != node.tag:
        return False
    classes = node.classes
    return all(c in classes for c in parts[1:] if c)


def matches_any(node: DomNode, selectors: Sequence[str]) -> bool:
    return any(match_simple_selector(node, s) for s in selectors)


class DomSnapshot:
    """按文档顺序保存的元素列表，提供父子/祖先/后代遍历。

    nodes[0] 为 body。由于采集为前序遍历，任一元素的后代在列表中连续分布，
    因此 descendants() 只需切片。
    """

    def __init__(self, nodes: Sequence[DomNode], epoch: int = 0) -> None:
        self.nodes: List[DomNode] = list(nodes)
        self.epoch = epoch
        self._children: Dict[int, List[int]] = {n.idx: [] for n in self.nodes}
        self._pos: Dict[int, int] = {n.idx: i for i, n in enumerate(self.nodes)}
        for n in self.nodes:
            if n.parent_idx is not None and n.parent_idx in self._children:
                self._children[n.parent_idx].append(n.idx)
        # 子树在列表中的结束位置（开区间）
        self._end: Dict[int, int] = {}
        for i in range(len(self.nodes) - 1, -1, -1):
            n = self.nodes[i]
            end = i + 1
            for c in self._children[n.idx]:
                end = max(end, self._end[c])
            self._end[n.idx] = end

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]], epoch: int = 0) -> "DomSnapshot":
        return cls([DomNode.from_record(r) for r in records], epoch=epoch)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[DomNode]:
        return iter(self.nodes)

    @property
    def body(self) -> Optional[DomNode]:
        return self.nodes[0] if self.nodes else None

    def get(self, idx: Optional[int]) -> Optional[DomNode]:
        if idx is None or idx not in self._pos:
            return None
        return self.nodes[self._pos[idx]]

    def by_ref(self, ref: str) -> Optional[DomNode]:
        for n in self.nodes:
            if n.ref == ref:
                return n
        return None

    def parent(self, node: DomNode) -> Optional[DomNode]:
        return self.get(node.parent_idx)

    def children(self, node: DomNode) -> List[DomNode]:
        return [self.nodes[self._pos[c]] for c in self._children.get(node.idx, [])]

    def descendants(self, node: DomNode) -> List[DomNode]:
        """文档顺序的全部后代（不含自身）。"""
        start = self._pos[node.idx]
        return self.nodes[start + 1 : self._end[node.idx]]

    def elements(self) -> List[DomNode]:
        """body 下的全部元素（等价于 querySelectorAll('body *')）。"""
        body = self.body
        return self.descendants(body) if body else []

    def closest(self, node: DomNode, pred: Callable[[DomNode], bool]) -> Optional[DomNode]:
        """从自身开始向上查找第一个满足 pred 的元素（与 Element.closest 一致）。"""
        cur: Optional[DomNode] = node
        while cur is not None:
            if pred(cur):
                return cur
            cur = self.parent(cur)
        return None

    def find_label_for(self, element_id: str) -> Optional[DomNode]:
        """document.querySelector('label[for="<id>"]')。"""
        if not element_id:
            return None
        for n in self.nodes:
            if n.tag == "label" and n.attr("for") == element_id:
                return n
        return None


def collect_snapshot(page, *, max_chars: int = MAX_TEXT_CHARS) -> DomSnapshot:
    """在页面中执行采集脚本并返回 DomSnapshot。"""
    res = page.evaluate(COLLECT_JS, {"maxChars": int(max_chars), "refAttr": REF_ATTR})
    if not isinstance(res, dict):
        return DomSnapshot([], epoch=0)
    return DomSnapshot.from_records(res.get("elements") or [], epoch=int(res.get("epoch") or 0))
