"""Tests for the DOM snapshot model built from collector records."""

import pytest

from conftest import FakePage, build_snapshot, h
from detect.dom_snapshot import collect_snapshot, match_simple_selector
from detect.types import DetectionResult, ElementLocator, PageText


@pytest.fixture
def snap():
    return build_snapshot(
        h("form", h("p", "Pytanie?", id="q"), h("label", h("input", type="radio", id="r1"), "Tak", for_="r1")),
        h("div", "stopka", class_="footer wide", role="contentinfo"),
    )


class TestTraversal:
    def test_body_first(self, snap):
        assert snap.body.tag == "body"
        assert [n.tag for n in snap.elements()] == ["form", "p", "label", "input", "div"]

    def test_children_and_descendants(self, snap):
        form = snap.elements()[0]
        assert [c.tag for c in snap.children(form)] == ["p", "label"]
        assert [d.tag for d in snap.descendants(form)] == ["p", "label", "input"]

    def test_closest_includes_self(self, snap):
        inp = [n for n in snap if n.tag == "input"][0]
        assert snap.closest(inp, lambda n: n.tag == "input") is inp
        assert snap.closest(inp, lambda n: n.tag == "form").tag == "form"
        assert snap.closest(inp, lambda n: n.tag == "table") is None

    def test_label_for(self, snap):
        assert snap.find_label_for("r1").tag == "label"
        assert snap.find_label_for("") is None
        assert snap.find_label_for("nope") is None

    def test_by_ref(self, snap):
        p = snap.by_ref("1-2")
        assert p.tag == "p"
        assert p.selector == '[data-qp-ref="1-2"]'
        assert snap.by_ref("9-9") is None


class TestSelectors:
    @pytest.mark.parametrize(
        "selector,expected",
        [
            ("div", True),
            (".footer", True),
            ("div.footer.wide", True),
            ("span.footer", False),
            ('div[role="contentinfo"]', True),
            ('div[role="radiogroup"]', False),
            ("#q", False),
            ("form div", False),
        ],
    )
    def test_match(self, snap, selector, expected):
        footer = snap.elements()[-1]
        assert match_simple_selector(footer, selector) is expected

    def test_id(self, snap):
        assert match_simple_selector(snap.elements()[1], "#q")


class TestCollect:
    def test_collect_from_page(self):
        page = FakePage(h("p", "Hello"))
        first = collect_snapshot(page)
        second = collect_snapshot(page)
        assert (first.epoch, second.epoch) == (1, 2)
        assert second.elements()[0].ref == "2-1"

    def test_non_dict_result(self):
        class Blank:
            def evaluate(self, *args):
                return None

        assert len(collect_snapshot(Blank())) == 0


class TestTypes:
    def test_page_text(self):
        t = PageText("B) Paris!!", ElementLocator("1-3", "div"))
        assert t.length == 10
        assert t.normalized == "b paris"

    def test_empty_detection(self):
        d = DetectionResult.empty()
        assert not d.ok
        assert d.to_dict() == {"question": None, "answers": []}
