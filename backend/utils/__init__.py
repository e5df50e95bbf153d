from .logs import setup_logs, ratelimited_log

__all__ = ["setup_logs", "ratelimited_log"]
