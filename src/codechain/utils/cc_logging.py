# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: see REFERENCES.md
'''
Logging for the SDK. The library only creates loggers; applications call
setup_logging() once to attach handlers.

    log = get_ctx_logger("codechain.core(order)")
    log.trace("encoded payloads, intermediate hashes")
    log.debug("diagnosis details")
    log.info("milestones: a key was created, a transaction was sent")
    log.warning("transport trouble that the caller may retry")

Context goes in `extra={"network": ..., "tracker": ..., "peer": ...}`.
Records flagged with `extra={"secret": True}` get every 64-hex run masked.
'''

from __future__ import annotations

import os, logging, re, json, time
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from . import config as CFG

# ===== TRACE level (below DEBUG) =====
TRACE = 9
logging.addLevelName(TRACE, "TRACE")
def _trace(self, msg, *a, **k):
    if self.isEnabledFor(TRACE):
        self._log(TRACE, msg, a, **k)
logging.Logger.trace = _trace

SUBPACKAGES = ("core", "utils", "wallet")
CONTEXT_FIELDS = ("network", "tracker", "peer")

_PLAIN_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_PLAIN_CTX_FMT = "%(asctime)s [%(levelname)s] %(name)s net=%(network)s trk=%(tracker)s peer=%(peer)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def subpackage_of(logger_name: Optional[str]) -> Optional[str]:
    """'codechain.wallet(p2pkh)' -> 'wallet'; None for foreign loggers."""
    if not logger_name:
        return None
    parts = logger_name.split("(", 1)[0].split(".")
    if len(parts) < 2 or parts[0] != "codechain":
        return None
    return parts[1].strip().lower()


# =========================
# Filters
# =========================

class RedactFilter(logging.Filter):
    RE_PASSPHRASE = re.compile(r"(passphrase|password)(\s*[=:]\s*)(\S+)", re.I)
    RE_KEY        = re.compile(r"\b(?:0x)?[0-9a-fA-F]{64}\b(?![0-9a-fA-F])")

    def filter(self, record):
        text = self.RE_PASSPHRASE.sub(r"\1\2[REDACTED]", record.getMessage())
        # hashes are 64-hex too, so only flagged records lose them
        if getattr(record, "secret", False):
            text = self.RE_KEY.sub("[REDACTED_KEY]", text)
        record.msg, record.args = text, None
        return True

class RateLimitFilter(logging.Filter):
    """Drop a record identical (logger, level, template) to one seen in the last ``min_interval`` seconds."""
    def __init__(self, min_interval: float = 2.0):
        super().__init__()
        self.min_interval = float(min_interval)
        self._seen: dict[tuple, float] = {}

    def filter(self, record):
        key = (record.name, record.levelno, str(record.msg))
        now = time.monotonic()
        if now - self._seen.get(key, float("-inf")) < self.min_interval:
            return False
        self._seen[key] = now
        return True

class ModuleFilter(logging.Filter):
    """Pass only records of the given codechain subpackages, e.g. ("wallet",)."""
    def __init__(self, modules: Iterable[str]):
        super().__init__()
        self.modules = frozenset(m.lower() for m in modules)
        unknown = self.modules - set(SUBPACKAGES)
        if unknown:
            raise ValueError(f"Unknown modules: {sorted(unknown)}")

    def filter(self, record):
        return subpackage_of(record.name) in self.modules


# =========================
# Formatters & adapter
# =========================

class JsonFormatter(logging.Formatter):
    def format(self, record):
        out = {
            "ts": self.formatTime(record, _DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value not in (None, "-"):
                out[field] = value
        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)
        return json.dumps(out, ensure_ascii=False)

class SafeFormatter(logging.Formatter):
    """Plain formatter that tolerates records logged without context fields."""
    def format(self, record):
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, "-")
        return super().format(record)

class ContextAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        bound = self.extra or {}
        for field in CONTEXT_FIELDS:
            extra.setdefault(field, bound.get(field, "-"))
        return msg, kwargs

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def trace(self, msg, *args, **kwargs):
        if self.logger.isEnabledFor(TRACE):
            self.log(TRACE, msg, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "codechain")

def get_ctx_logger(name: str = "codechain", **ctx) -> ContextAdapter:
    """Logger bound to default context, e.g. get_ctx_logger(name, network="tc")."""
    return ContextAdapter(get_logger(name), ctx)


# =========================
# Setup
# =========================

def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved

def _dress(handler: logging.Handler, formatter: logging.Formatter, rate_seconds: float,
           module_filter: Optional[ModuleFilter]) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(RedactFilter())
    if module_filter is not None:
        handler.addFilter(module_filter)
    if rate_seconds > 0.0:
        handler.addFilter(RateLimitFilter(rate_seconds))
    return handler

def setup_logging(
    log_file: str | os.PathLike | None = None,
    level: int | str | None = None,
    to_console: bool | None = None,
    rotate_max_bytes: int | None = None,
    backup_count: int | None = None,
    force: bool = False,
    modules: Iterable[str] | None = None,
    with_context: bool = False,) -> logging.Logger:
    """Attach a rotating file handler (plus stderr when asked) to the root logger.

    Arguments left as None fall back to the LOG_* values in config.
    """
    lvl = _resolve_level(CFG.LOG_LEVEL if level is None else level)
    log_path = Path(CFG.LOG_PATH if log_file is None else log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    if to_console is None:
        to_console = CFG.LOG_TO_CONSOLE

    as_json = str(CFG.LOG_FORMAT).lower() == "json"
    module_filter = ModuleFilter(modules) if modules else None

    def formatter() -> logging.Formatter:
        if as_json:
            return JsonFormatter()
        return SafeFormatter(_PLAIN_CTX_FMT if with_context else _PLAIN_FMT, _DATEFMT)

    handlers: list[logging.Handler] = [_dress(
        RotatingFileHandler(
            log_path,
            maxBytes=int(rotate_max_bytes if rotate_max_bytes is not None else CFG.LOG_ROTATE_MAX_BYTES),
            backupCount=int(backup_count if backup_count is not None else CFG.LOG_BACKUP_COUNT),
            encoding="utf-8", delay=True),
        formatter(), CFG.LOG_FILE_RATE_LIMIT_SECONDS, module_filter)]
    if to_console:
        handlers.append(_dress(logging.StreamHandler(), formatter(), CFG.LOG_RATE_LIMIT_SECONDS, module_filter))

    logging.basicConfig(level=lvl, handlers=handlers, force=force)
    root = get_logger()
    root.debug("logging ready: level=%s file=%s format=%s console=%s modules=%s",
               logging.getLevelName(lvl), log_path, "json" if as_json else "plain",
               to_console, sorted(module_filter.modules) if module_filter else "all")
    return root
