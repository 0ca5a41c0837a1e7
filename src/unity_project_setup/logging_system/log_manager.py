from __future__ import annotations

import json
import logging
import sys
import time
import traceback
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from .config import log_file_path, log_level


ROOT_LOGGER = "unity_project_setup"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "timestamp": record.created,
            "component": getattr(record, "component", ROOT_LOGGER),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
            "category": getattr(record, "category", None),
            "stack": self.formatException(record.exc_info) if record.exc_info else getattr(record, "stack", None),
            "performance_ms": getattr(record, "performance_ms", None),
            "extra": getattr(record, "extra_data", {}),
        }
        return json.dumps(payload, ensure_ascii=False)


class LogManager:
    """Centralized logging setup for the setup tools.

    - Every module logs through ``logging.getLogger(__name__)`` below the
      ``unity_project_setup`` logger; this class attaches the handlers once.
    - Rotating JSON file handler (10MB, keep 5).
    - Console handler on stderr, JSON or plain text.
    - ``operation()`` context manager timing a named step.
    """

    def __init__(
        self,
        component: str = ROOT_LOGGER,
        *,
        level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_format: str = "json",
        file_output: bool = True,
    ) -> None:
        self.component = component
        self.logger = logging.getLogger(component)
        self.logger.setLevel(getattr(logging, (level or log_level()).upper(), logging.INFO))
        if not self.logger.handlers:
            ch = logging.StreamHandler(sys.stderr)
            if console_format == "json":
                ch.setFormatter(JsonFormatter())
            else:
                ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
            self.logger.addHandler(ch)
            if file_output:
                self._add_file_handler(Path(log_file or log_file_path()))

    def _add_file_handler(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        except OSError as e:
            # Console output still works without a log file
            self.logger.warning("Cannot write log file %s (%s); logging to the console only.", path, e)
            return
        fh.setFormatter(JsonFormatter())
        self.logger.addHandler(fh)

    # ------------------------ Public API ------------------------

    def get_logger(self) -> logging.Logger:
        return self.logger

    def shutdown(self) -> None:
        """Detach and close the handlers attached by this manager."""

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.setLevel(logging.NOTSET)

    @contextmanager
    def operation(self, name: str, *, category: Optional[str] = "operation", extra: Optional[Dict[str, Any]] = None) -> Iterator[None]:
        start = time.perf_counter()
        self.logger.debug("%s: start", name, extra={"category": category, "extra_data": extra or {}})
        try:
            yield
        except Exception as e:
            elapsed = (time.perf_counter() - start) * 1000.0
            self.logger.error(
                "%s: error %s",
                name,
                e,
                extra={
                    "category": category,
                    "performance_ms": elapsed,
                    "extra_data": extra or {},
                    "stack": traceback.format_exc(),
                },
            )
            raise
        elapsed = (time.perf_counter() - start) * 1000.0
        self.logger.info(
            "%s: done",
            name,
            extra={"category": category, "performance_ms": elapsed, "extra_data": extra or {}},
        )
