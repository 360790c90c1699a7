"""Shared fixtures for QuizPilot tests.

Pages are described as small element trees (`h("label", h("input", type="radio"), "Warszawa")`)
and turned into the same records the in-page collector returns, so the Python side
(snapshot, locator, matcher, pipeline) runs exactly as it would against Chromium.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import pytest

from browser.actuator import BOLD_FIRST_JS, CLEAR_JS, FIND_CONTROL_JS, MARK_JS, RELEASE_REFS_JS
from detect.constants import REF_ATTR
from detect.dom_snapshot import COLLECT_JS, DomSnapshot
from solver.settings import MemorySettingsStore, Settings

Child = Union[str, "El"]


@dataclass
class El:
    tag: str
    children: List[Child] = field(default_factory=list)
    attrs: Dict[str, str] = field(default_factory=dict)
    visible: bool = True
    value: str = ""
    checked: bool = False


def h(tag: str, *children: Child, visible: bool = True, value: str = "", checked: bool = False, **attrs: str) -> El:
    """Element builder: class_ -> class, for_ -> for, aria_label -> aria-label."""
    clean = {k.rstrip("_").replace("_", "-"): v for k, v in attrs.items()}
    return El(tag=tag, children=list(children), attrs=clean, visible=visible, value=value, checked=checked)


def _texts(el: El) -> Tuple[str, str]:
    inner: List[str] = []
    content: List[str] = []
    for c in el.children:
        if isinstance(c, str):
            inner.append(c)
            content.append(c)
        else:
            i, t = _texts(c)
            if c.visible and i:
                inner.append(i)
            if t:
                content.append(t)
    return (" ".join(inner).strip() if el.visible else ""), " ".join(content).strip()


def build_records(*children: Child, epoch: int = 1) -> List[Dict[str, Any]]:
    body = h("body", *children)
    out: List[Dict[str, Any]] = []

    def walk(el: El, parent: Optional[int]) -> None:
        idx = len(out)
        inner, content = _texts(el)
        is_field = el.tag in ("input", "textarea")
        out.append(
            {
                "idx": idx,
                "parent": parent,
                "tag": el.tag,
                "ref": f"{epoch}-{idx}",
                "attrs": dict(el.attrs),
                "inner_text": inner,
                "text_content": content,
                "value": el.value if is_field else "",
                "placeholder": el.attrs.get("placeholder", "") if is_field else "",
                "checked": el.checked,
                "width": 100 if el.visible else 0,
                "height": 20 if el.visible else 0,
            }
        )
        for c in el.children:
            if isinstance(c, El):
                walk(c, idx)

    walk(body, None)
    return out


def build_snapshot(*children: Child, epoch: int = 1) -> DomSnapshot:
    return DomSnapshot.from_records(build_records(*children, epoch=epoch), epoch=epoch)


_REF_SEL = re.compile(r'\[' + re.escape(REF_ATTR) + r'="([^"]+)"\]')


class FakeHandle:
    def __init__(self, page: "FakePage", idx: int) -> None:
        self.page = page
        self.idx = idx

    def scroll_into_view_if_needed(self) -> None:
        self.page.scrolled.append(self.idx)


class FakePage:
    """Stand-in for a sync Playwright Page driven by the collector/actuator scripts.

    Every collect re-stamps refs with a new epoch, so locators from an older
    snapshot stop resolving, just like the real attribute rewrite.
    Releasing refs at the end of a pass makes every locator stale until the next collect.
    """

    def __init__(self, *children: Child) -> None:
        self.children = list(children)
        self.epoch = 0
        self.records: List[Dict[str, Any]] = []
        self.marks: Dict[int, str] = {}
        self.bolded: List[int] = []
        self.checked: List[int] = []
        self.clicked: List[int] = []
        self.scrolled: List[int] = []
        self.waits: List[int] = []
        self.collects = 0
        self.clears = 0
        self.releases = 0
        self.released = False
        self.removed: set = set()
        self.url = "https://quiz.example/1"

    # --- helpers
    def _idx(self, selector: str) -> Optional[int]:
        m = _REF_SEL.fullmatch(selector)
        if not m:
            return None
        epoch, idx = m.group(1).split("-")
        if self.released:
            return None
        if int(epoch) != self.epoch or int(idx) in self.removed:
            return None
        return int(idx)

    def _snapshot(self) -> DomSnapshot:
        return DomSnapshot.from_records(self.records, epoch=self.epoch)

    def remove(self, idx: int) -> None:
        self.removed.add(idx)

    @property
    def mutated(self) -> bool:
        return bool(self.collects or self.marks or self.bolded or self.checked or self.clicked)

    # --- Playwright surface
    def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == COLLECT_JS:
            self.collects += 1
            self.epoch += 1
            self.released = False
            self.records = build_records(*self.children, epoch=self.epoch)
            return {"epoch": self.epoch, "elements": self.records}
        if script == CLEAR_JS:
            self.clears += 1
            n = len(self.marks)
            self.marks.clear()
            self.bolded.clear()
            return n
        if script == RELEASE_REFS_JS:
            self.releases += 1
            self.released = True
            return len(self.records)
        if script == MARK_JS:
            selectors, mark = arg[0], arg[1]
            n = 0
            for sel in selectors:
                idx = self._idx(sel)
                if idx is not None:
                    self.marks[idx] = mark
                    n += 1
            return n
        if script == BOLD_FIRST_JS:
            idx = self._idx(arg)
            if idx is None:
                return False
            self.bolded.append(idx)
            return True
        if script == FIND_CONTROL_JS:
            idx = self._idx(arg)
            if idx is None:
                return "missing"
            snap = self._snapshot()
            node = snap.get(idx)
            for d in snap.descendants(node):
                if d.tag == "input" and d.attr("type") in ("radio", "checkbox"):
                    self.checked.append(d.idx)
                    return "input"
            self.clicked.append(idx)
            return "element"
        raise AssertionError(f"unexpected script: {script[:60]!r}")

    def query_selector(self, selector: str) -> Optional[FakeHandle]:
        idx = self._idx(selector)
        return FakeHandle(self, idx) if idx is not None else None

    def wait_for_timeout(self, ms: int) -> None:
        self.waits.append(ms)

    def screenshot(self, **kwargs: Any) -> bytes:
        self.screenshot_kwargs = kwargs
        return b"\xff\xd8fake-jpeg"


class FakeOracle:
    def __init__(self, answer: str = "", error: Optional[Exception] = None) -> None:
        self.answer = answer
        self.error = error
        self.text_calls: List[Tuple[str, List[str]]] = []
        self.image_calls: List[bytes] = []

    def resolve_text(self, question: str, answers: List[str]) -> str:
        self.text_calls.append((question, list(answers)))
        if self.error is not None:
            raise self.error
        return self.answer

    def resolve_image(self, image_bytes: bytes) -> str:
        self.image_calls.append(image_bytes)
        if self.error is not None:
            raise self.error
        return self.answer


def polish_quiz() -> List[El]:
    return [
        h("h1", "Test z geografii"),
        h("p", "Pytanie: Jaka jest stolica Polski?"),
        h(
            "form",
            h("label", h("input", type="radio", name="q1", id="a1"), "Warszawa"),
            h("label", h("input", type="radio", name="q1", id="a2"), "Kraków"),
            h("label", h("input", type="radio", name="q1", id="a3"), "Gdańsk"),
        ),
    ]


@pytest.fixture
def polish_page():
    return FakePage(*polish_quiz())


@pytest.fixture
def settings_store():
    return MemorySettingsStore(Settings(api_key="test-key", auto_select_enabled=False))


@pytest.fixture
def messages():
    return []
