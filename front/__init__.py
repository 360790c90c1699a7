"""Flask 控制服务与持有 Playwright 的后台线程。"""
