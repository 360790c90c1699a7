"""
detect.constants
常量定义：检测阈值、匹配阈值、DOM 标记属性与高亮样式。
"""

# 问题检测
MIN_QUESTION_LEN = 10
MAX_QUESTION_LEN = 500
FALLBACK_MIN_QUESTION_LEN = 15

# 答案检测
MAX_ANSWER_LEN = 300
MAX_ANSWERS = 10
MIN_ANSWERS = 2

# 匹配阈值（经验值，保持可配置）
CLOSED_SET_THRESHOLD = 0.7
OPEN_SET_THRESHOLD = 0.5

# 自动选择前的等待（等待布局稳定）
AUTO_SELECT_DELAY_MS = 300

# 采集时单个文本字段的最大字符数
MAX_TEXT_CHARS = 5000

EXCLUDED_TAGS = ("script", "style", "noscript")
CONTAINER_SELECTORS = (
    "form",
    "fieldset",
    ".quiz-container",
    ".question-block",
    'div[role="radiogroup"]',
)
LIST_TAGS = ("ul", "ol")
PATTERN_ANSWER_TAGS = ("div", "span", "p", "button", "a")
CHOICE_INPUT_TYPES = ("radio", "checkbox")

# DOM 标记：每次采集都会给元素写入 data-qp-ref="<epoch>-<idx>"
REF_ATTR = "data-qp-ref"
MARK_ATTR = "data-qp-mark"
PREV_STYLE_ATTR = "data-qp-prev-style"

MARK_QUESTION = "candidate-question"
MARK_CANDIDATE = "candidate-answer"
MARK_ANSWER = "answer"

STYLES = {
    MARK_QUESTION: {"border": "3px solid blue", "background-color": "rgba(0, 0, 255, 0.1)"},
    MARK_CANDIDATE: {"border": "2px solid orange", "background-color": "rgba(255, 165, 0, 0.1)"},
    MARK_ANSWER: {
        "border": "4px solid green",
        "background-color": "lightgreen",
        "padding": "5px",
        "border-radius": "5px",
    },
}

DETECTION_FAILED_MESSAGE = (
    "Could not detect the question and answers automatically. Try the screenshot mode."
)
