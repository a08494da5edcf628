# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: see REFERENCES.md

import json
import logging
import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from codechain.utils.cc_logging import (TRACE, JsonFormatter, ModuleFilter, RateLimitFilter,  # noqa: E402
                                        RedactFilter, get_ctx_logger, setup_logging)

KEY = "ab" * 32


def _record(msg, name="codechain.wallet(keystore)", **extra):
    record = logging.LogRecord(name, logging.INFO, __file__, 1, msg, None, None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    saved = (list(root.handlers), root.level)
    yield
    for h in root.handlers:
        h.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])


def test_redact_passphrase_and_flagged_secrets():
    record = _record(f"unlock with passphrase={KEY}")
    RedactFilter().filter(record)
    assert record.getMessage() == "unlock with passphrase=[REDACTED]"

    plain = _record(f"tx hash {KEY}")
    RedactFilter().filter(plain)
    assert KEY in plain.getMessage()

    secret = _record(f"imported {KEY}", secret=True)
    RedactFilter().filter(secret)
    assert secret.getMessage() == "imported [REDACTED_KEY]"


def test_module_filter():
    only_wallet = ModuleFilter(["wallet"])
    assert only_wallet.filter(_record("x", "codechain.wallet(p2pkh)"))
    assert not only_wallet.filter(_record("x", "codechain.core(order)"))
    assert not only_wallet.filter(_record("x", "httpx"))
    with pytest.raises(ValueError):
        ModuleFilter(["consensus"])


def test_rate_limit_filter_drops_repeats():
    limiter = RateLimitFilter(60.0)
    assert limiter.filter(_record("same"))
    assert not limiter.filter(_record("same"))
    assert limiter.filter(_record("other"))


def test_json_formatter_keeps_context():
    line = JsonFormatter().format(_record("hello", tracker="0x11", peer="-"))
    data = json.loads(line)
    assert data["msg"] == "hello"
    assert data["tracker"] == "0x11"
    assert "peer" not in data


def test_context_adapter_defaults():
    log = get_ctx_logger("codechain.core(test)", network="tc")
    _msg, kwargs = log.process("m", {"extra": {"peer": "node"}})
    assert kwargs["extra"] == {"network": "tc", "tracker": "-", "peer": "node"}


def test_setup_logging_writes_filtered_file(tmp_path, restore_root):
    log_file = tmp_path / "logs" / "codechain.log"
    setup_logging(log_file, level="TRACE", to_console=False, force=True, modules=("wallet",))
    get_ctx_logger("codechain.wallet(test)").trace("hello passphrase=abc")
    get_ctx_logger("codechain.core(test)").info("hidden")
    for h in logging.getLogger().handlers:
        h.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "[TRACE]" in text
    assert "hello passphrase=[REDACTED]" in text
    assert "hidden" not in text
    assert logging.getLogger().level == TRACE


def test_setup_logging_rejects_unknown_level(tmp_path, restore_root):
    with pytest.raises(ValueError):
        setup_logging(tmp_path / "x.log", level="LOUD", to_console=False)
