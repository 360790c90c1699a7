"""Playwright 浏览器环境与页面上的高亮 / 自动选择。"""
