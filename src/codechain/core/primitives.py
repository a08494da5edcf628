# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Primitives
"""Fixed-width hash and integer values.

Hashes are stored as lowercase hex without a prefix and encode as fixed-length
byte strings. U64 stores a plain int and encodes as a minimal big-endian
scalar (zero is the empty string), which is what RLP does with ints.
"""
from __future__ import annotations

import json
from functools import total_ordering
from typing import List, Union

from ..utils import config as CFG
from ..utils.errors import MalformedInput
from ..utils.helpers import strip_hex_prefix, to_bytes


class _FixedHash:
    LENGTH = 0

    __slots__ = ("value",)

    def __init__(self, value: Union[str, bytes, bytearray, "_FixedHash"]):
        if isinstance(value, _FixedHash):
            if type(value) is not type(self):
                raise MalformedInput(f"Expected {type(self).__name__}, got {type(value).__name__}")
            value = value.value
        if isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str):
            txt = strip_hex_prefix(value)
            try:
                raw = bytes.fromhex(txt)
            except ValueError as exc:
                raise MalformedInput(f"Invalid {type(self).__name__} hex: {value!r}") from exc
        else:
            raise MalformedInput(f"Cannot build {type(self).__name__} from {type(value).__name__}")
        if len(raw) != self.LENGTH:
            raise MalformedInput(
                f"{type(self).__name__} expects {self.LENGTH} bytes, got {len(raw)}")
        self.value = raw.hex()

    # -------- Construction ----------

    @classmethod
    def zero(cls):
        return cls(bytes(cls.LENGTH))

    @classmethod
    def check(cls, value) -> bool:
        try:
            cls(value)
        except MalformedInput:
            return False
        return True

    @classmethod
    def ensure(cls, value):
        return value if isinstance(value, cls) else cls(value)

    @classmethod
    def from_json(cls, data: str):
        return cls(data)

    # -------- Serde ----------

    def to_bytes(self) -> bytes:
        return bytes.fromhex(self.value)

    def to_encode_object(self) -> bytes:
        return self.to_bytes()

    def to_json(self) -> str:
        return "0x" + self.value

    def is_zero(self) -> bool:
        return self.value == "0" * (2 * self.LENGTH)

    def __eq__(self, other):
        if not isinstance(other, _FixedHash):
            return NotImplemented
        return type(self) is type(other) and self.value == other.value

    def __hash__(self):
        return hash((type(self).__name__, self.value))

    def __str__(self):
        return self.value

    def __repr__(self):
        return f"<{type(self).__name__} {self.value}>"


class H128(_FixedHash):
    LENGTH = 16
    __slots__ = ()


class H160(_FixedHash):
    LENGTH = 20
    __slots__ = ()


class H256(_FixedHash):
    LENGTH = 32
    __slots__ = ()


class H512(_FixedHash):
    LENGTH = 64
    __slots__ = ()


class ValueObject:
    """Equality by JSON form, for the composite model types."""

    def to_json(self):
        raise NotImplementedError

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.to_json() == other.to_json()

    def __hash__(self):
        return hash(json.dumps(self.to_json(), sort_keys=True))


U64Value = Union[int, str, "U64"]


@total_ordering
class U64:
    MAX_VALUE = CFG.U64_MAX

    __slots__ = ("value",)

    def __init__(self, value: U64Value):
        if isinstance(value, U64):
            self.value = value.value
            return
        if isinstance(value, bool):
            raise MalformedInput("U64 does not accept booleans")
        if isinstance(value, int):
            n = value
        elif isinstance(value, str):
            txt = value.strip()
            try:
                if txt[:2].lower() == "0x":
                    n = int(txt[2:], 16) if len(txt) > 2 else 0
                else:
                    if not txt.isdigit():
                        raise ValueError(txt)
                    n = int(txt, 10)
            except ValueError as exc:
                raise MalformedInput(f"Invalid U64 string: {value!r}") from exc
        else:
            raise MalformedInput(f"Cannot build U64 from {type(value).__name__}")
        if not (0 <= n <= self.MAX_VALUE):
            raise MalformedInput(f"U64 out of range: {n}")
        self.value = n

    @classmethod
    def check(cls, value) -> bool:
        try:
            cls(value)
        except MalformedInput:
            return False
        return True

    @classmethod
    def ensure(cls, value: U64Value) -> "U64":
        return value if isinstance(value, U64) else cls(value)

    @classmethod
    def from_json(cls, data: U64Value) -> "U64":
        return cls(data)

    def to_encode_object(self) -> int:
        return self.value

    def to_json(self) -> str:
        return hex(self.value)

    def is_zero(self) -> bool:
        return self.value == 0

    def __int__(self):
        return self.value

    def __index__(self):
        return self.value

    def __eq__(self, other):
        if isinstance(other, U64):
            return self.value == other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return self.value == other
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, U64):
            return self.value < other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return self.value < other
        return NotImplemented

    def __hash__(self):
        return hash(self.value)

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return f"<U64 {self.value}>"


# ===== Shared field checks =====

def ensure_shard_id(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedInput(f"Shard id must be an integer, got {type(value).__name__}")
    if not 0 <= value <= CFG.U16_MAX:
        raise MalformedInput(f"Shard id out of range: {value}")
    return value


def ensure_parameters(params) -> List[bytes]:
    """Lock-script parameters: a list of byte blobs, given as bytes or hex."""
    if params is None:
        return []
    if isinstance(params, (str, bytes, bytearray)) or not isinstance(params, (list, tuple)):
        raise MalformedInput("Parameters must be a list of byte strings")
    return [to_bytes(p) for p in params]


def parameters_to_json(params: List[bytes]) -> List[str]:
    return [p.hex() for p in params]
