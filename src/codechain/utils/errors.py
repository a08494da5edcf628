# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: see REFERENCES.md

from __future__ import annotations

from typing import Any, Optional


class CodeChainError(Exception):
    pass


class MalformedInput(CodeChainError, ValueError):
    """Raised while constructing a value from bytes, hex, JSON or arguments."""


class InvariantViolation(CodeChainError):
    """Raised when structures are individually valid but inconsistent together."""


class ExternalFailure(CodeChainError):
    """A key store or transport call failed. The original error is kept as __cause__."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data
