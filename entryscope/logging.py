import logging
from pprint import pformat
from typing import Any

from pydantic import BaseModel

from entryscope.config import get_log_level

LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"


class PprintLogger:
    """Logger for entryscope modules that renders query objects readably.

    ``logger.debug(plan)`` on a QueryPlan (or QueryOptions, Predicate...)
    writes the model as indented JSON, so a compiled plan shows every
    predicate's column, operator and value. Plain strings keep the usual
    ``%``-style arguments: ``logger.info("Stored %d entries", n)``.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _render(self, msg: Any, pprint: bool) -> str:
        if not pprint or isinstance(msg, str):
            return str(msg)
        if isinstance(msg, BaseModel):
            return msg.model_dump_json(indent=2)
        return pformat(msg, width=120, depth=None)

    def _log(self, level: int, msg: Any, args: tuple, pprint: bool, kwargs: dict) -> None:
        if not self._logger.isEnabledFor(level):
            return
        # stacklevel 3 attributes the record to the caller of debug()/info()/...
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, self._render(msg, pprint), *args, **kwargs)

    def debug(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.DEBUG, msg, args, pprint, kwargs)

    def info(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.INFO, msg, args, pprint, kwargs)

    def warning(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.WARNING, msg, args, pprint, kwargs)

    def error(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.ERROR, msg, args, pprint, kwargs)

    def critical(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._log(logging.CRITICAL, msg, args, pprint, kwargs)

    def exception(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, pprint, kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate any other attributes to the underlying logger."""
        return getattr(self._logger, name)


def get_logger(name: str, level: int | None = None) -> PprintLogger:
    """Return a PprintLogger for ``name`` with a single stream handler.

    The level defaults to ENTRYSCOPE_LOG_LEVEL. Calling this repeatedly for
    the same name does not stack handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(get_log_level() if level is None else level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return PprintLogger(logger)
