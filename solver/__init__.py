"""求解流程编排、用户设置与命令行入口。"""

from .pipeline import QuizSolver, SolveOutcome
from .settings import Settings, SettingsStore

__all__ = ["QuizSolver", "SolveOutcome", "Settings", "SettingsStore"]
