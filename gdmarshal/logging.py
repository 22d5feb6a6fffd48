import datetime as _dt
import json
import logging as _logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional, TextIO

_LOGGER_NAMESPACE = "gdmarshal"
_PLAN_LOGGER_NAME = f"{_LOGGER_NAMESPACE}.plan"
_TRACE_LEVEL = 5

_logging.addLevelName(_TRACE_LEVEL, "TRACE")

_LINE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# only the level name is colored
_LEVEL_COLORS = {
    _TRACE_LEVEL: "\033[90m",
    _logging.DEBUG: "\033[36m",
    _logging.WARNING: "\033[33m",
    _logging.ERROR: "\033[31m",
    _logging.CRITICAL: "\033[41m",
}
_RESET = "\033[0m"


@dataclass
class LoggingState:
    log_dir: Optional[str]
    text_log_path: Optional[str]
    jsonl_log_path: Optional[str]
    console_level: int
    file_level: int
    jsonl_enabled: bool
    plan_trace_enabled: bool


_state: Optional[LoggingState] = None


def _parse_level(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    name = value.upper()
    if name.isdigit():
        return int(name)
    level = _logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


class _ConsoleFormatter(_logging.Formatter):
    def __init__(self, use_color: bool) -> None:
        super().__init__(fmt=_LINE_FORMAT, datefmt=_DATE_FORMAT)
        self.use_color = use_color

    def formatMessage(self, record: _logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno) if self.use_color else None
        if color is None:
            return super().formatMessage(record)
        levelname = record.levelname
        record.levelname = f"{color}{levelname:<8}{_RESET}"
        try:
            return super().formatMessage(record)
        finally:
            record.levelname = levelname


class _PlanEventFormatter(_logging.Formatter):
    """One JSON object per record; plan decisions carry their ``plan_event``."""

    def format(self, record: _logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, _DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
        }
        event = getattr(record, "plan_event", None)
        if event is not None:
            payload["plan_event"] = event
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=repr)


def _console_handler(stream: TextIO, level: int, use_color: bool) -> _logging.Handler:
    handler = _logging.StreamHandler(stream=stream)
    handler.setLevel(level)
    handler.setFormatter(_ConsoleFormatter(use_color and stream.isatty()))
    return handler


def _file_handler(path: str, level: int, formatter: _logging.Formatter) -> _logging.Handler:
    handler = _logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _resolve_log_dir(logging_cfg: Dict[str, Any], output_dir: Optional[str], override: Optional[str]) -> Optional[str]:
    if override:
        return os.path.abspath(override)
    if not logging_cfg.get("to_file", False):
        return None
    if logging_cfg.get("dir"):
        return os.path.abspath(logging_cfg["dir"])
    return os.path.join(os.path.abspath(output_dir or os.getcwd()), logging_cfg.get("subdir", "logs"))


def get_logger(name: Optional[str] = None) -> _logging.Logger:
    if name is None:
        return _logging.getLogger(_LOGGER_NAMESPACE)
    if name.startswith(_LOGGER_NAMESPACE):
        return _logging.getLogger(name)
    return _logging.getLogger(f"{_LOGGER_NAMESPACE}.{name}")


def trace_plan(message: str, *args: Any, **event: Any) -> None:
    """Emit a TRACE record describing a single marshaling decision.

    Keyword arguments become the record's ``plan_event``, which the JSON-lines
    log keeps as a structured object.
    """
    logger = get_logger(_PLAN_LOGGER_NAME)
    if logger.isEnabledFor(_TRACE_LEVEL):
        logger.log(_TRACE_LEVEL, message, *args, extra={"plan_event": event} if event else None)


def configure_logging(
    config: Dict[str, Any],
    *,
    output_dir: Optional[str] = None,
    console_level_override: Optional[str] = None,
    file_level_override: Optional[str] = None,
    log_dir_override: Optional[str] = None,
    disable_color: bool = False,
    enable_jsonl_override: Optional[bool] = None,
    force_reconfigure: bool = False,
) -> LoggingState:
    """Attach console and optional file handlers to the ``gdmarshal`` logger.

    Records below ERROR go to stdout, ERROR and above to stderr. With a log
    directory a text log is written there, plus a JSON-lines log when enabled.
    A second call is a no-op unless ``force_reconfigure`` is set.
    """
    global _state

    logger = get_logger()
    if logger.handlers and not force_reconfigure:
        return _state  # type: ignore[return-value]

    logging_cfg: Dict[str, Any] = config.get("logging", {}) if config else {}
    console_level = _parse_level(console_level_override, _parse_level(logging_cfg.get("console_level"), _logging.INFO))
    file_level = _parse_level(file_level_override, _parse_level(logging_cfg.get("file_level"), _logging.DEBUG))
    use_color = logging_cfg.get("color", True) and not disable_color
    jsonl_enabled = enable_jsonl_override if enable_jsonl_override is not None else logging_cfg.get("jsonl", False)
    plan_trace_enabled = logging_cfg.get("plan_trace", False)
    log_dir = _resolve_log_dir(logging_cfg, output_dir, log_dir_override)

    logger.handlers.clear()
    logger.setLevel(min(console_level, file_level))
    logger.propagate = False

    stdout_handler = _console_handler(sys.stdout, console_level, use_color)
    stdout_handler.addFilter(lambda record: record.levelno < _logging.ERROR)
    logger.addHandler(stdout_handler)
    logger.addHandler(_console_handler(sys.stderr, max(console_level, _logging.ERROR), use_color))

    text_log_path = None
    jsonl_log_path = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        stamp = _dt.datetime.now().strftime(logging_cfg.get("timestamp_format", "%Y%m%dT%H%M%S"))
        filename = logging_cfg.get("filename_pattern", "gdmarshal-{timestamp}.log").format(timestamp=stamp)

        text_log_path = os.path.join(log_dir, filename)
        logger.addHandler(_file_handler(text_log_path, file_level, _logging.Formatter(_LINE_FORMAT, _DATE_FORMAT)))
        if jsonl_enabled:
            jsonl_log_path = os.path.join(log_dir, os.path.splitext(filename)[0] + ".jsonl")
            logger.addHandler(_file_handler(jsonl_log_path, file_level, _PlanEventFormatter()))

    plan_logger = get_logger(_PLAN_LOGGER_NAME)
    if plan_trace_enabled:
        plan_logger.setLevel(_TRACE_LEVEL)
        logger.setLevel(min(_TRACE_LEVEL, logger.level))
    else:
        plan_logger.setLevel(_logging.NOTSET)

    _state = LoggingState(
        log_dir=log_dir,
        text_log_path=text_log_path,
        jsonl_log_path=jsonl_log_path,
        console_level=console_level,
        file_level=file_level,
        jsonl_enabled=jsonl_enabled,
        plan_trace_enabled=plan_trace_enabled,
    )
    return _state


def get_logging_state() -> Optional[LoggingState]:
    return _state


def is_configured() -> bool:
    return bool(get_logger().handlers)
