# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-VM-Opcodes
from __future__ import annotations

from typing import Iterable, List, Sequence, Union

from ..utils.errors import MalformedInput
from ..utils.helpers import to_bytes

# opcode constants
NOP = 0x00
BURN = 0x01
SUCCESS = 0x02
FAIL = 0x03
NOT = 0x10
EQ = 0x11
JMP = 0x20
JNZ = 0x21
JZ = 0x22
PUSH = 0x30
POP = 0x31
PUSHB = 0x32
DUP = 0x33
SWAP = 0x34
COPY = 0x35
DROP = 0x36
CHKSIG = 0x80
CHKMULTISIG = 0x81
BLAKE256 = 0x90
SHA256 = 0x91
RIPEMD160 = 0x92
KECCAK256 = 0x93
BLAKE160 = 0x94
BLKNUM = 0xA0
CHKTIMELOCK = 0xB0

OPCODES = {
    "NOP": NOP, "BURN": BURN, "SUCCESS": SUCCESS, "FAIL": FAIL,
    "NOT": NOT, "EQ": EQ,
    "JMP": JMP, "JNZ": JNZ, "JZ": JZ,
    "PUSH": PUSH, "POP": POP, "PUSHB": PUSHB, "DUP": DUP, "SWAP": SWAP, "COPY": COPY, "DROP": DROP,
    "CHKSIG": CHKSIG, "CHKMULTISIG": CHKMULTISIG,
    "BLAKE256": BLAKE256, "SHA256": SHA256, "RIPEMD160": RIPEMD160, "KECCAK256": KECCAK256, "BLAKE160": BLAKE160,
    "BLKNUM": BLKNUM, "CHKTIMELOCK": CHKTIMELOCK,
}
OPCODE_NAMES = {v: k for k, v in OPCODES.items()}

# operand shape per opcode
_ZERO_OPERAND = frozenset((
    NOP, BURN, SUCCESS, FAIL, NOT, EQ, POP, DUP, SWAP,
    CHKSIG, CHKMULTISIG, BLAKE256, SHA256, RIPEMD160, KECCAK256, BLAKE160, BLKNUM,
))
_ONE_BYTE_OPERAND = frozenset((PUSH, JMP, JNZ, JZ, COPY, DROP))

TIMELOCK_TOKENS = {1: "BLOCK", 2: "BLOCK_AGE", 3: "TIME", 4: "TIME_AGE"}
TIMELOCK_CODES = {v: k for k, v in TIMELOCK_TOKENS.items()}


class Script:
    """A lock or unlock script: an opaque bytecode buffer plus a disassembler."""

    Opcode = OPCODES

    __slots__ = ("data",)

    def __init__(self, data: Union[bytes, bytearray, str, "Script"] = b""):
        if isinstance(data, Script):
            data = data.data
        self.data = to_bytes(data)

    @classmethod
    def empty(cls) -> "Script":
        return cls(b"")

    # -------- Tokenizer ----------

    @staticmethod
    def _missing(name: str) -> MalformedInput:
        return MalformedInput(f"The parameter of {name} is expected but not exists")

    def tokenize(self) -> List[str]:
        data = self.data
        n = len(data)
        tokens: List[str] = []
        cursor = 0
        while cursor < n:
            opcode = data[cursor]
            cursor += 1
            name = OPCODE_NAMES.get(opcode)

            if opcode in _ZERO_OPERAND:
                tokens.append(name)
            elif opcode == PUSHB:
                if cursor + 1 > n:
                    raise self._missing(name)
                length = data[cursor]
                cursor += 1
                if cursor + length > n:
                    raise self._missing(name)
                blob = data[cursor:cursor + length]
                cursor += length
                tokens.append(name)
                tokens.append("0x" + blob.hex().upper())
            elif opcode in _ONE_BYTE_OPERAND:
                if cursor + 1 > n:
                    raise self._missing(name)
                val = data[cursor]
                cursor += 1
                tokens.append(name)
                tokens.append(f"0x{val:X}")
            elif opcode == CHKTIMELOCK:
                if cursor + 1 > n:
                    raise self._missing(name)
                kind = data[cursor]
                cursor += 1
                if kind not in TIMELOCK_TOKENS:
                    raise MalformedInput(f"{kind} is an invalid timelock type")
                tokens.append(name)
                tokens.append(TIMELOCK_TOKENS[kind])
            else:
                raise MalformedInput(f"Unknown opcode: 0x{opcode:X}")
        return tokens

    def to_tokens(self) -> List[str]:
        return self.tokenize()

    # -------- Assembler ----------

    @staticmethod
    def _parse_byte_operand(name: str, token: str) -> int:
        try:
            val = int(token, 16)
        except (TypeError, ValueError) as exc:
            raise MalformedInput(f"Invalid operand of {name}: {token!r}") from exc
        if not 0 <= val <= 0xFF:
            raise MalformedInput(f"Operand of {name} does not fit in a byte: {token}")
        return val

    @classmethod
    def from_tokens(cls, tokens: Sequence[str]) -> "Script":
        out = bytearray()
        it = iter(tokens)
        for name in it:
            opcode = OPCODES.get(name)
            if opcode is None:
                raise MalformedInput(f"Unknown opcode: {name}")
            out.append(opcode)
            if opcode in _ZERO_OPERAND:
                continue
            operand = next(it, None)
            if operand is None:
                raise cls._missing(name)
            if opcode == PUSHB:
                blob = to_bytes(operand)
                if len(blob) > 0xFF:
                    raise MalformedInput(f"PUSHB blob too long: {len(blob)} bytes")
                out.append(len(blob))
                out += blob
            elif opcode == CHKTIMELOCK:
                if operand not in TIMELOCK_CODES:
                    raise MalformedInput(f"{operand} is an invalid timelock type")
                out.append(TIMELOCK_CODES[operand])
            else:
                out.append(cls._parse_byte_operand(name, operand))
        return cls(bytes(out))

    @staticmethod
    def push_bytes(blob: bytes) -> bytes:
        blob = bytes(blob)
        if len(blob) > 0xFF:
            raise MalformedInput(f"PUSHB blob too long: {len(blob)} bytes")
        return bytes([PUSHB, len(blob)]) + blob

    @classmethod
    def concat(cls, parts: Iterable[bytes]) -> "Script":
        return cls(b"".join(bytes(p) for p in parts))

    # -------- Serde ----------

    def to_encode_object(self) -> bytes:
        return self.data

    def to_json(self) -> str:
        return self.data.hex()

    @classmethod
    def from_json(cls, data: str) -> "Script":
        return cls(data)

    def __len__(self):
        return len(self.data)

    def __eq__(self, other):
        if not isinstance(other, Script):
            return NotImplemented
        return self.data == other.data

    def __hash__(self):
        return hash(self.data)

    def __repr__(self):
        return f"<Script {self.data.hex()}>"


# ===== Standard lock scripts =====
P2PKH_LOCK_SCRIPT = bytes([COPY, 0x01, BLAKE160, EQ, JZ, 0xFF, CHKSIG])
P2PKH_BURN_LOCK_SCRIPT = P2PKH_LOCK_SCRIPT + bytes([JZ, 0xFF, BURN])
