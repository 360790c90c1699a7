"""
solver.pipeline
一次求解流程的编排：检测 → 模型 → 匹配 → 执行。

每个入口（solve_text / solve_screenshot）恰好产生一个终态结果 SolveOutcome：
- selected: 已高亮（并可能已自动选择）答案；
- manual: 模型已回答但页面上找不到足够相似的元素，需要用户手动处理；
- detection_failed: 未找到问题或候选答案不足，建议改用截图模式；
- error: 缺少密钥 / 模型服务失败 / 页面已变化；
- busy: 上一次流程尚未结束，本次未做任何操作。
单飞守卫覆盖整个流程直到执行结束，所有出口都会释放；结束时移除页面上的 data-qp-ref。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from browser.actuator import Actuator
from detect.config import QuizConfig
from detect.constants import DETECTION_FAILED_MESSAGE
from detect.dom_snapshot import collect_snapshot
from detect.errors import DetectionFailure, NoMatchFound, PreconditionError, QuizError
from detect.fuzzy_matcher import find_best_element, resolve_option
from detect.quiz_locator import QuizLocator
from detect.session import SingleFlight
from detect.types import DetectionResult, MatchResult
from detect.utils import make_printer
from oracle.adapter import AnswerOracle
from oracle.config import get_oracle_config

from .settings import MemorySettingsStore, Settings, SettingsStore

STATUS_SELECTED = "selected"
STATUS_MANUAL = "manual"
STATUS_DETECTION_FAILED = "detection_failed"
STATUS_ERROR = "error"
STATUS_BUSY = "busy"

BUSY_MESSAGE = "A previous pass is still running."


@dataclass
class SolveOutcome:
    status: str
    message: str = ""
    code: str = ""
    answer: Optional[str] = None
    match: Optional[MatchResult] = None
    detection: Optional[DetectionResult] = None
    auto_selected: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_SELECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "code": self.code,
            "answer": self.answer,
            "match": self.match.to_dict() if self.match else None,
            "detection": self.detection.to_dict() if self.detection else None,
            "auto_selected": self.auto_selected,
        }


def chose_message(answer: str) -> str:
    return f"AI chose: {answer[:50]}..."


def error_message(message: str) -> str:
    return f"Error: {message}"


class QuizSolver:
    """持有单飞守卫与各阶段协作者。

    oracle: 直接指定的 AnswerOracle（测试注入）；为空时每次按当前设置中的密钥构造。
    settings_store: 每次流程开始时读取设置（密钥、自动选择开关）。
    notify: 状态通知回调，缺省为带前缀的打印。
    """

    def __init__(
        self,
        *,
        oracle: Optional[AnswerOracle] = None,
        oracle_factory: Optional[Callable[[Settings], AnswerOracle]] = None,
        settings_store: Optional[SettingsStore] = None,
        config: Optional[QuizConfig] = None,
        notify: Optional[Callable[[str], None]] = None,
        verbose: bool = True,
    ) -> None:
        self.config = config or QuizConfig()
        self.settings_store = settings_store or MemorySettingsStore()
        self.verbose = verbose
        self.session = SingleFlight()
        self.locator = QuizLocator(self.config, verbose=verbose)
        self._oracle = oracle
        self._oracle_factory = oracle_factory or self._default_oracle
        self._v = make_printer("solver", verbose)
        self._stage = "idle"
        self.notify = notify or make_printer("status", True)

    def _default_oracle(self, settings: Settings) -> AnswerOracle:
        cfg = get_oracle_config().with_api_key(settings.api_key)
        return AnswerOracle(cfg, verbose=self.verbose)

    def oracle_for(self, settings: Settings) -> AnswerOracle:
        if self._oracle is not None:
            return self._oracle
        return self._oracle_factory(settings)

    def actuator_for(self, page) -> Actuator:
        return Actuator(page, auto_select_delay_ms=self.config.auto_select_delay_ms, verbose=self.verbose)

    # ------------------------------------------------------------------ 入口
    def solve_text(self, page) -> SolveOutcome:
        """文本模式：在页面上检测问题与选项并交给模型。"""
        return self._guarded(page, self._run_text)

    def solve_screenshot(self, page) -> SolveOutcome:
        """截图模式：把当前视口截图交给模型。"""
        return self._guarded(page, self._run_screenshot)

    def _guarded(self, page, run: Callable[[Any, Settings], SolveOutcome]) -> SolveOutcome:
        settings = self.settings_store.load()
        try:
            self._check_preconditions(settings)
        except PreconditionError as e:
            return self._failure(e)

        with self.session.hold() as acquired:
            if not acquired:
                self._v("busy; request ignored")
                return SolveOutcome(status=STATUS_BUSY, message=BUSY_MESSAGE, code="BUSY", detection=DetectionResult.empty())
            self._stage = "start"
            try:
                return run(page, settings)
            except NoMatchFound as e:
                self.notify(e.message)
                return SolveOutcome(status=STATUS_MANUAL, message=e.message, code=e.code, answer=e.answer)
            except QuizError as e:
                return self._failure(e)
            except Exception as e:
                # 页面跳转 / 浏览器断开等非预期异常同样收敛为一个终态结果
                return self._failure(
                    QuizError(code="PAGE_ERROR", stage=self._stage, message=f"{type(e).__name__}: {e}", original=e)
                )
            finally:
                self.actuator_for(page).release_refs()

    @staticmethod
    def _check_preconditions(settings: Settings) -> None:
        if not settings.has_api_key:
            raise PreconditionError(code="NO_API_KEY", stage="precondition", message="Missing API key. Save it in the settings first.")

    def _failure(self, e: QuizError) -> SolveOutcome:
        self._v(str(e))
        self.notify(error_message(e.message))
        return SolveOutcome(status=STATUS_ERROR, message=e.message, code=e.code)

    # ------------------------------------------------------------------ 流程
    def _run_text(self, page, settings: Settings) -> SolveOutcome:
        actuator = self.actuator_for(page)
        actuator.clear()
        self._stage = "detect"
        snapshot = collect_snapshot(page, max_chars=self.config.max_text_chars)
        detection = self.locator.detect(snapshot)
        if not detection.ok:
            e = DetectionFailure(
                code="NO_QUESTION" if detection.question is None else "TOO_FEW_ANSWERS",
                stage="detect",
                message=DETECTION_FAILED_MESSAGE,
            )
            self._v(str(e))
            self.notify(e.message)
            return SolveOutcome(status=STATUS_DETECTION_FAILED, message=e.message, code=e.code, detection=detection)

        actuator.mark_candidates(detection)
        self._stage = "oracle"
        raw = self.oracle_for(settings).resolve_text(detection.question_text or "", detection.answer_texts)
        closed = resolve_option(raw, detection.answers, self.config.closed_set_threshold)
        chosen = closed.chosen_text if closed.accepted else raw
        self._v(f"oracle={raw!r} closed_set={closed.accepted} score={closed.score:.2f} chosen={chosen!r}")
        self.notify(chose_message(chosen))
        outcome = self._actuate(page, actuator, chosen, settings)
        outcome.detection = detection
        return outcome

    def _run_screenshot(self, page, settings: Settings) -> SolveOutcome:
        actuator = self.actuator_for(page)
        actuator.clear()
        self._stage = "screenshot"
        image = page.screenshot(type="jpeg", quality=90, full_page=False)
        self._stage = "oracle"
        answer = self.oracle_for(settings).resolve_image(image)
        self._v(f"oracle={answer!r}")
        self.notify(chose_message(answer))
        return self._actuate(page, actuator, answer, settings)

    def _actuate(self, page, actuator: Actuator, answer: str, settings: Settings) -> SolveOutcome:
        self._stage = "match"
        live = collect_snapshot(page, max_chars=self.config.max_text_chars)
        match = find_best_element(live, answer, self.config.open_set_threshold)
        self._v(f"open_set best={match.chosen_text!r} score={match.score:.2f} accepted={match.accepted}")
        if not match.accepted or match.locator is None:
            raise NoMatchFound(answer, match.score)
        self._stage = "actuate"
        how = actuator.apply(match.locator, auto_select=settings.auto_select_enabled)
        return SolveOutcome(
            status=STATUS_SELECTED,
            message=chose_message(answer),
            answer=answer,
            match=match,
            auto_selected=how,
        )
