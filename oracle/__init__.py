"""模型问答：配置、提示词、OpenAI 兼容客户端与 AnswerOracle。"""

from .adapter import AnswerOracle
from .config import OracleConfig, get_oracle_config

__all__ = ["AnswerOracle", "OracleConfig", "get_oracle_config"]
