"""End-to-end tests for the solve pipeline against fake pages and a stubbed oracle."""

from conftest import FakeOracle, FakePage, h, polish_quiz
from detect.constants import DETECTION_FAILED_MESSAGE, MARK_ANSWER
from detect.dom_snapshot import COLLECT_JS
from detect.errors import ServiceError
from solver.pipeline import QuizSolver
from solver.settings import MemorySettingsStore, Settings


def make_solver(oracle, store, messages):
    return QuizSolver(oracle=oracle, settings_store=store, notify=messages.append, verbose=False)


class TestTextMode:
    def test_polish_scenario_highlights_label(self, polish_page, settings_store, messages):
        oracle = FakeOracle("Warszawa")
        outcome = make_solver(oracle, settings_store, messages).solve_text(polish_page)

        assert outcome.status == "selected"
        assert outcome.answer == "Warszawa"
        assert outcome.match.locator.tag == "label"
        assert outcome.detection.answer_texts == ["Warszawa", "Kraków", "Gdańsk"]
        assert oracle.text_calls == [("Pytanie: Jaka jest stolica Polski?", ["Warszawa", "Kraków", "Gdańsk"])]
        assert list(polish_page.marks.values()) == [MARK_ANSWER]
        assert polish_page.checked == []
        assert messages == ["AI chose: Warszawa..."]
        assert polish_page.releases == 1

    def test_polish_scenario_auto_select(self, polish_page, messages):
        store = MemorySettingsStore(Settings(api_key="k", auto_select_enabled=True))
        outcome = make_solver(FakeOracle("Warszawa"), store, messages).solve_text(polish_page)
        assert outcome.status == "selected"
        assert outcome.auto_selected == "input"
        label_idx = int(outcome.match.locator.ref.split("-")[1])
        assert polish_page.checked == [label_idx + 1]
        assert polish_page.waits == [300]

    def test_verbose_answer_is_mapped_to_option(self, polish_page, settings_store, messages):
        outcome = make_solver(FakeOracle("Poprawna odpowiedź to Kraków."), settings_store, messages).solve_text(polish_page)
        assert outcome.status == "selected"
        assert outcome.answer == "Kraków"
        assert outcome.match.chosen_text == "Kraków"

    def test_detection_failure(self, settings_store, messages):
        page = FakePage(h("p", "Witamy na stronie"), h("a", "Zaloguj"))
        oracle = FakeOracle("x")
        outcome = make_solver(oracle, settings_store, messages).solve_text(page)
        assert outcome.status == "detection_failed"
        assert outcome.code == "NO_QUESTION"
        assert outcome.message == DETECTION_FAILED_MESSAGE
        assert oracle.text_calls == []
        assert messages == [DETECTION_FAILED_MESSAGE]

    def test_too_few_answers(self, settings_store, messages):
        page = FakePage(h("form", h("p", "Pytanie: Jaka jest stolica Polski?"), h("label", h("input", type="radio"), "Warszawa")))
        outcome = make_solver(FakeOracle("x"), settings_store, messages).solve_text(page)
        assert outcome.status == "detection_failed"
        assert outcome.code == "TOO_FEW_ANSWERS"

    def test_service_error_is_surfaced(self, polish_page, settings_store, messages):
        err = ServiceError(code="SERVICE_ERROR", stage="oracle", message="API (503): overloaded")
        solver = make_solver(FakeOracle(error=err), settings_store, messages)
        outcome = solver.solve_text(polish_page)
        assert outcome.status == "error"
        assert outcome.message == "API (503): overloaded"
        assert messages == ["Error: API (503): overloaded"]
        assert not solver.session.busy

    def test_no_match_falls_back_to_manual(self, settings_store, messages):
        page = FakePage(*polish_quiz())
        solver = make_solver(FakeOracle("Zupełnie inna odpowiedź"), settings_store, messages)
        outcome = solver.solve_text(page)
        assert outcome.status == "manual"
        assert outcome.answer == "Zupełnie inna odpowiedź"
        assert "Zupełnie inna odpowiedź" in outcome.message
        assert MARK_ANSWER not in page.marks.values()
        assert not solver.session.busy

    def test_unexpected_oracle_error_is_terminal(self, polish_page, settings_store, messages):
        solver = make_solver(FakeOracle(error=ValueError("bug")), settings_store, messages)
        outcome = solver.solve_text(polish_page)
        assert outcome.status == "error"
        assert outcome.code == "PAGE_ERROR"
        assert messages == ["Error: ValueError: bug"]
        assert not solver.session.busy

    def test_navigation_during_collect_is_terminal(self, settings_store, messages):
        class NavigatingPage(FakePage):
            def evaluate(self, script, arg=None):
                if script == COLLECT_JS:
                    raise RuntimeError("Execution context was destroyed, most likely because of a navigation")
                return super().evaluate(script, arg)

        solver = make_solver(FakeOracle("Warszawa"), settings_store, messages)
        page = NavigatingPage(*polish_quiz())
        outcome = solver.solve_text(page)
        assert outcome.status == "error"
        assert outcome.code == "PAGE_ERROR"
        assert "Execution context was destroyed" in outcome.message
        assert len(messages) == 1 and messages[0].startswith("Error: RuntimeError: ")
        assert page.releases == 1
        assert not solver.session.busy

    def test_failed_screenshot_is_terminal(self, polish_page, settings_store, messages):
        def broken_screenshot(**kwargs):
            raise RuntimeError("Target page, context or browser has been closed")

        polish_page.screenshot = broken_screenshot
        oracle = FakeOracle("Warszawa")
        solver = make_solver(oracle, settings_store, messages)
        outcome = solver.solve_screenshot(polish_page)
        assert outcome.status == "error"
        assert oracle.image_calls == []
        assert messages[0].startswith("Error: ")
        assert not solver.session.busy


class TestGuards:
    def test_missing_key_touches_nothing(self, polish_page, messages):
        store = MemorySettingsStore(Settings(api_key=""))
        outcome = make_solver(FakeOracle("Warszawa"), store, messages).solve_text(polish_page)
        assert outcome.status == "error"
        assert outcome.code == "NO_API_KEY"
        assert not polish_page.mutated
        assert polish_page.clears == 0
        assert messages and messages[0].startswith("Error: ")

    def test_reentrant_call_is_busy(self, polish_page, settings_store, messages):
        inner = {}

        class ReentrantOracle(FakeOracle):
            def resolve_text(self, question, answers):
                other = FakePage(*polish_quiz())
                inner["outcome"] = solver.solve_text(other)
                inner["page"] = other
                return "Warszawa"

        solver = make_solver(ReentrantOracle(), settings_store, messages)
        outcome = solver.solve_text(polish_page)

        assert outcome.status == "selected"
        assert inner["outcome"].status == "busy"
        assert inner["outcome"].detection.question is None
        assert inner["outcome"].detection.answers == []
        assert not inner["page"].mutated
        assert inner["page"].clears == 0
        assert not solver.session.busy

    def test_guard_free_after_each_pass(self, settings_store, messages):
        solver = make_solver(FakeOracle("Warszawa"), settings_store, messages)
        for _ in range(3):
            assert solver.solve_text(FakePage(*polish_quiz())).status == "selected"


class TestScreenshotMode:
    def test_answer_from_image(self, polish_page, settings_store, messages):
        oracle = FakeOracle("Gdańsk")
        outcome = make_solver(oracle, settings_store, messages).solve_screenshot(polish_page)
        assert outcome.status == "selected"
        assert outcome.match.chosen_text == "Gdańsk"
        assert oracle.image_calls == [b"\xff\xd8fake-jpeg"]
        assert polish_page.screenshot_kwargs["full_page"] is False
        assert outcome.detection is None

    def test_image_answer_with_leading_letter(self, settings_store, messages):
        page = FakePage(h("p", "Pytanie: Ile to 2+2?"), h("div", "A. 4"), h("div", "B. 5"))
        outcome = make_solver(FakeOracle("A. 4"), settings_store, messages).solve_screenshot(page)
        assert outcome.status == "selected"
        assert outcome.match.chosen_text == "A. 4"

    def test_outcome_serializes(self, polish_page, settings_store, messages):
        data = make_solver(FakeOracle("Warszawa"), settings_store, messages).solve_screenshot(polish_page).to_dict()
        assert data["status"] == "selected"
        assert data["match"]["accepted"] is True
        assert data["match"]["locator"]["tag"] == "label"
