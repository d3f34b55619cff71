"""
Per-build logging.
"""

import logging
from typing import Any, Dict, List, Optional, Union

class BuildLogger:
    """
    Wraps a logger and tags every record with the build id.

    Rendered lines are kept in order so the executor can persist them as the
    build log.
    """

    def __init__(self, logger: logging.Logger, build_id: int):
        self.logger = logger
        self.build_id = build_id
        self.lines: List[str] = []

    def log(
        self,
        message: Union[str, List[str]],
        level: int = logging.INFO,
        context: Optional[Dict[str, Any]] = None,
        exc_info=None,
    ):
        messages = message if isinstance(message, (list, tuple)) else [message]

        extra = dict(context or {})
        extra["build_id"] = self.build_id

        for line in messages:
            self.logger.log(level, line, extra=dict(extra), exc_info=exc_info)
            self.lines.append(str(line))

    def log_normal(self, message: Union[str, List[str]]):
        self.log(message, logging.INFO)

    def log_success(self, message: Union[str, List[str]]):
        self.log(message, logging.INFO, {"success": True})

    def log_warning(self, message: Union[str, List[str]]):
        self.log(message, logging.WARNING)

    def log_debug(self, message: Union[str, List[str]]):
        self.log(message, logging.DEBUG)

    def log_failure(self, message: Union[str, List[str]], exception: Optional[BaseException] = None):
        """Log at ERROR. The `exception` key is always present, None when absent."""
        exc_info = None
        if exception is not None:
            exc_info = (type(exception), exception, exception.__traceback__)
        self.log(message, logging.ERROR, {"exception": exception}, exc_info=exc_info)

    def text(self) -> str:
        return "\n".join(self.lines)
