"""
browser.actuator
在实时页面上高亮 / 选中匹配到的答案。

所有标记都记录在 data-qp-mark 上，并把原 style 保存到 data-qp-prev-style，
clear() 时据此恢复，因此不会与页面自身的内联样式互相覆盖。
"""

from __future__ import annotations

from typing import Iterable, Optional

from detect.constants import (
    AUTO_SELECT_DELAY_MS,
    MARK_ANSWER,
    MARK_ATTR,
    MARK_CANDIDATE,
    MARK_QUESTION,
    PREV_STYLE_ATTR,
    REF_ATTR,
    STYLES,
)
from detect.errors import StaleLocatorError
from detect.types import DetectionResult, ElementLocator
from detect.utils import make_printer

MARK_JS = """
(args) => {
  const [selectors, mark, styles, markAttr, prevAttr] = args;
  let n = 0;
  for (const sel of selectors) {
    const el = document.querySelector(sel);
    if (!el) continue;
    if (!el.hasAttribute(prevAttr)) el.setAttribute(prevAttr, el.getAttribute('style') || '');
    for (const [k, v] of Object.entries(styles)) el.style.setProperty(k, v);
    el.setAttribute(markAttr, mark);
    n++;
  }
  return n;
}
"""

CLEAR_JS = """
(args) => {
  const [markAttr, prevAttr] = args;
  const list = document.querySelectorAll(`[${markAttr}]`);
  for (const el of list) {
    const prev = el.getAttribute(prevAttr);
    if (prev) el.setAttribute('style', prev); else el.removeAttribute('style');
    el.removeAttribute(markAttr);
    el.removeAttribute(prevAttr);
    for (const b of el.querySelectorAll('strong[data-qp-first]')) {
      b.replaceWith(document.createTextNode(b.textContent));
    }
    el.normalize();
  }
  return list.length;
}
"""

RELEASE_REFS_JS = """
(refAttr) => {
  const list = document.querySelectorAll(`[${refAttr}]`);
  for (const el of list) el.removeAttribute(refAttr);
  return list.length;
}
"""

# 只拆分第一个非空文本节点的首字符，其余文本与子控件保持不变
BOLD_FIRST_JS = """
(sel) => {
  const el = document.querySelector(sel);
  if (!el) return false;
  const walker = document.createTreeWalker(el, NodeFilter.SHOW_TEXT, {
    acceptNode: (t) => (t.nodeValue && t.nodeValue.trim()) ? NodeFilter.FILTER_ACCEPT : NodeFilter.FILTER_SKIP,
  });
  const node = walker.nextNode();
  if (!node) return false;
  const raw = node.nodeValue;
  const i = raw.search(/\\S/);
  const rest = node.splitText(i);
  rest.splitText(1);
  const strong = document.createElement('strong');
  strong.setAttribute('data-qp-first', '1');
  strong.textContent = rest.nodeValue;
  rest.replaceWith(strong);
  return true;
}
"""

FIND_CONTROL_JS = """
(sel) => {
  const el = document.querySelector(sel);
  if (!el) return 'missing';
  let input = el.querySelector('input[type="radio"], input[type="checkbox"]');
  if (!input) {
    const label = el.closest('label');
    if (label) {
      const forId = label.getAttribute('for');
      input = (forId && document.getElementById(forId)) || label.querySelector('input');
    }
  }
  if (input) {
    if (!input.checked) {
      input.click();
    } else {
      input.checked = true;
      input.dispatchEvent(new Event('change', { bubbles: true }));
    }
    return 'input';
  }
  if (typeof el.click === 'function') {
    el.click();
    return 'element';
  }
  return 'none';
}
"""


class Actuator:
    """把匹配结果作用到页面上：清理旧标记、滚动、标记、加粗首字母、可选自动点击。"""

    def __init__(self, page, *, auto_select_delay_ms: int = AUTO_SELECT_DELAY_MS, verbose: bool = True) -> None:
        self.page = page
        self.auto_select_delay_ms = auto_select_delay_ms
        self._v = make_printer("browser.actuator", verbose)

    def clear(self) -> int:
        """移除本包施加的所有标记（候选标记与答案标记）。"""
        try:
            return int(self.page.evaluate(CLEAR_JS, [MARK_ATTR, PREV_STYLE_ATTR]) or 0)
        except Exception as e:
            self._v(f"clear failed: {type(e).__name__}: {e}")
            return 0

    def release_refs(self) -> int:
        """移除采集时写入的 data-qp-ref；一轮求解结束后调用，标记保持不变。"""
        try:
            return int(self.page.evaluate(RELEASE_REFS_JS, REF_ATTR) or 0)
        except Exception as e:
            self._v(f"release refs failed: {type(e).__name__}: {e}")
            return 0

    def _mark(self, selectors: Iterable[str], mark: str) -> int:
        sels = list(selectors)
        if not sels:
            return 0
        return int(self.page.evaluate(MARK_JS, [sels, mark, STYLES[mark], MARK_ATTR, PREV_STYLE_ATTR]) or 0)

    def mark_candidates(self, result: DetectionResult) -> int:
        """检测阶段的临时标记：问题蓝框，候选答案橙框。"""
        n = 0
        if result.question is not None:
            n += self._mark([result.question.locator.selector], MARK_QUESTION)
        n += self._mark([a.locator.selector for a in result.answers], MARK_CANDIDATE)
        return n

    def resolve(self, locator: ElementLocator):
        """在实时 DOM 中重新解析定位符，找不到时抛 StaleLocatorError。"""
        handle = self.page.query_selector(locator.selector)
        if handle is None:
            raise StaleLocatorError(
                code="STALE_LOCATOR",
                stage="actuate",
                message=f"element {locator.selector} is no longer on the page",
            )
        return handle

    def apply(self, locator: ElementLocator, *, auto_select: bool = False) -> Optional[str]:
        """高亮匹配元素；auto_select 时在短暂延迟后激活对应的输入控件。

        返回自动选择的方式（'input' / 'element' / 'none'），未自动选择时返回 None。
        """
        self.clear()
        handle = self.resolve(locator)
        try:
            handle.scroll_into_view_if_needed()
        except Exception as e:
            self._v(f"scroll failed: {type(e).__name__}: {e}")
        self._mark([locator.selector], MARK_ANSWER)
        self.page.evaluate(BOLD_FIRST_JS, locator.selector)
        self._v(f"highlighted {locator.selector} text={locator.text!r}")

        if not auto_select:
            return None
        self.page.wait_for_timeout(int(max(0, self.auto_select_delay_ms)))
        how = str(self.page.evaluate(FIND_CONTROL_JS, locator.selector))
        if how == "missing":
            raise StaleLocatorError(
                code="STALE_LOCATOR",
                stage="actuate",
                message=f"element {locator.selector} disappeared before auto-select",
            )
        self._v(f"auto-select via {how}")
        return how
