"""Tests for the browser worker thread (Playwright replaced by a fake page)."""

import threading
from contextlib import contextmanager

import pytest

import front.worker as worker_mod
from conftest import FakeOracle, FakePage, polish_quiz
from front.worker import BrowserWorker
from solver.pipeline import QuizSolver


class FakeEnv:
    def __init__(self, page):
        self.page = page
        self.thread = None

    def current_url(self):
        return self.page.url

    def goto(self, url):
        self.thread = threading.current_thread().name
        self.page.url = url


@pytest.fixture
def env(monkeypatch):
    fake = FakeEnv(FakePage(*polish_quiz()))

    @contextmanager
    def fake_make_env(url=None, **kwargs):
        yield fake

    monkeypatch.setattr(worker_mod, "make_env", fake_make_env)
    return fake


def start_worker(oracle, settings_store):
    solver = QuizSolver(oracle=oracle, settings_store=settings_store, notify=lambda m: None, verbose=False)
    return BrowserWorker(solver, verbose=False).start()


class TestBrowserWorker:
    def test_goto_runs_on_worker_thread(self, env, settings_store):
        w = start_worker(FakeOracle("Warszawa"), settings_store)
        try:
            assert w.goto("https://quiz.example/next") == "https://quiz.example/next"
            assert env.thread == "qp-browser"
        finally:
            w.stop()

    def test_solve_text(self, env, settings_store):
        w = start_worker(FakeOracle("Warszawa"), settings_store)
        try:
            outcome = w.solve("text")
            assert outcome.status == "selected"
            assert outcome.match.chosen_text == "Warszawa"
        finally:
            w.stop()

    def test_concurrent_solve_is_busy(self, env, settings_store):
        entered = threading.Event()
        release = threading.Event()

        class SlowOracle(FakeOracle):
            def resolve_text(self, question, answers):
                entered.set()
                release.wait(5)
                return "Warszawa"

        w = start_worker(SlowOracle(), settings_store)
        results = []
        try:
            t = threading.Thread(target=lambda: results.append(w.solve("text")))
            t.start()
            assert entered.wait(5)
            assert w.solve("text").status == "busy"
            # the second request never reaches the browser queue
            assert w._tasks.empty()
            release.set()
            t.join(5)
            assert results[0].status == "selected"
            assert not w.flight.busy
        finally:
            release.set()
            w.stop()

    def test_task_errors_reach_the_caller(self, env, settings_store):
        def broken(env):
            raise ValueError("bug")

        w = start_worker(FakeOracle("Warszawa"), settings_store)
        try:
            with pytest.raises(ValueError):
                w.submit(broken)
            assert w.alive
        finally:
            w.stop()

    def test_solve_errors_come_back_as_outcomes(self, env, settings_store):
        w = start_worker(FakeOracle(error=ValueError("bug")), settings_store)
        try:
            outcome = w.solve("text")
            assert outcome.status == "error"
            assert outcome.code == "PAGE_ERROR"
            assert not w.flight.busy
            assert w.alive
        finally:
            w.stop()

    def test_startup_failure(self, monkeypatch, settings_store):
        @contextmanager
        def broken(url=None, **kwargs):
            raise RuntimeError("no chromium")
            yield

        monkeypatch.setattr(worker_mod, "make_env", broken)
        with pytest.raises(RuntimeError, match="no chromium"):
            start_worker(FakeOracle("x"), settings_store)

    def test_submit_requires_running_worker(self, settings_store):
        solver = QuizSolver(oracle=FakeOracle("x"), settings_store=settings_store, verbose=False)
        with pytest.raises(RuntimeError):
            BrowserWorker(solver, verbose=False).goto("https://quiz.example")
