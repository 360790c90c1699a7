"""Detect package initializer.

题目检测与答案匹配的核心：文本归一化、元素文本提取、问题/答案规则、
QuizLocator 与模糊匹配。模块之间使用相对导入（`from .text_utils import ...`）。
"""
