"""
detect.errors
答题流程的异常类型定义。

QuizError 为统一错误封装（code/stage/message），各子类对应一次求解过程中的
终止原因：缺少凭据、检测失败、模型服务失败、无法匹配、定位符失效。
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class QuizError(Exception):
    """求解流程错误。

    code: 错误码（如 NO_API_KEY/NO_QUESTION 等）
    stage: 出错阶段（precondition/detect/oracle/match/actuate）
    message: 人类可读的错误信息（会原样展示给用户）
    original: 可选，原始异常对象
    """

    code: str
    stage: str
    message: str
    original: Optional[Exception] = None

    def __str__(self) -> str:
        return f"[{self.code}@{self.stage}] {self.message}"


class PreconditionError(QuizError):
    """缺少 API 凭据等前置条件；在任何 DOM 操作之前抛出。"""


class DetectionFailure(QuizError):
    """未找到问题，或候选答案少于 2 个。"""


class ServiceError(QuizError):
    """模型服务传输失败、状态码非成功或响应缺少文本字段。"""


class NoMatchFound(QuizError):
    """模型已回答，但页面上没有元素超过相似度阈值。

    answer: 模型原始回答，供用户手动处理。
    """

    def __init__(self, answer: str, score: float = 0.0) -> None:
        super().__init__(
            code="NO_MATCH",
            stage="match",
            message=f'AI answered: "{answer}". No matching element was found on the page, check the answer manually.',
        )
        self.answer = answer
        self.score = score


class StaleLocatorError(QuizError):
    """定位符在实时 DOM 中已找不到对应元素（页面已变化）。"""
