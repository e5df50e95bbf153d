import logging
import warnings
from typing import Callable

from cachetools.func import ttl_cache

logger = logging.getLogger("friendships")


def setup_logs(level: int = logging.DEBUG):
    warnings.simplefilter("default")
    logger.setLevel(level)
    logging.basicConfig()


_limited: dict[int, Callable] = {}


def ratelimited_log(delay_or_fn: int | Callable, msg=None):
    """Log `msg` once per `delay` seconds, identical messages are dropped.

    ratelimited_log(logger.error, "boom") uses a 60 seconds window,
    ratelimited_log(10) returns the 10 seconds limiter to call later as
    limiter(logger.error, "boom").
    """
    if callable(delay_or_fn):
        logger_method = delay_or_fn
        delay = 60
    else:
        delay = delay_or_fn
        logger_method = None

    if delay not in _limited:

        @ttl_cache(ttl=delay)
        def call(logger_method, message):
            logger_method(message)

        _limited[delay] = call

    if logger_method is not None:
        return _limited[delay](logger_method, msg)
    return _limited[delay]
