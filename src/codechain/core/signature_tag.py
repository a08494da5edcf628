# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Partial-Signing
"""Signature tags: which inputs and outputs a single unlock signature commits to.

The encoded tag is the output bitmap (most significant byte first) followed
by one descriptor byte ``(bitmap_len << 2) | 0b10 | input_all``. The output bit is
always set; an empty bitmap means every output is covered.
"""
from __future__ import annotations

from typing import Dict, List, Sequence, Union

from ..utils import config as CFG
from ..utils.errors import MalformedInput

SIGN_INPUT_ALL = "all"
SIGN_INPUT_SINGLE = "single"
SIGN_OUTPUT_ALL = "all"

SignatureTag = Dict[str, Union[str, Sequence[int]]]

ALL_ALL: SignatureTag = {"input": SIGN_INPUT_ALL, "output": SIGN_OUTPUT_ALL}

OUTPUT_BIT = 0b10


def normalize_output_indices(output: Sequence[int]) -> List[int]:
    indices = sorted(set(int(i) for i in output))
    for i in indices:
        if not 0 <= i <= CFG.MAX_SIGNATURE_TAG_OUTPUT_INDEX:
            raise MalformedInput(
                f"Output index must be in [0, {CFG.MAX_SIGNATURE_TAG_OUTPUT_INDEX}]: {i}")
    return indices


def is_all_all(tag: SignatureTag) -> bool:
    return tag.get("input") == SIGN_INPUT_ALL and tag.get("output") == SIGN_OUTPUT_ALL


def encode_signature_tag(tag: SignatureTag) -> bytes:
    inp = tag.get("input")
    out = tag.get("output")
    if inp == SIGN_INPUT_ALL:
        input_mask = 0b01
    elif inp == SIGN_INPUT_SINGLE:
        input_mask = 0b00
    else:
        raise MalformedInput(f"Unexpected value of the tag input: {inp!r}")

    if out == SIGN_OUTPUT_ALL:
        return bytes([OUTPUT_BIT | input_mask])
    if isinstance(out, str) or not isinstance(out, (list, tuple, set, frozenset)):
        raise MalformedInput(f"Unexpected value of the tag output: {out!r}")

    indices = normalize_output_indices(out)
    if not indices:
        raise MalformedInput("The tag output must name at least one index")
    byte_count = indices[-1] // 8 + 1
    if byte_count >= CFG.MAX_SIGNATURE_TAG_BITMAP_BYTES:
        raise MalformedInput(f"The output bitmap is too long: {byte_count} bytes")

    bitmap = bytearray(byte_count)
    for i in indices:
        bitmap[i // 8] |= 1 << (i % 8)
    bitmap.reverse()
    return bytes(bitmap) + bytes([(byte_count << 2) | OUTPUT_BIT | input_mask])


def decode_signature_tag(encoded: bytes) -> SignatureTag:
    encoded = bytes(encoded)
    if not encoded:
        raise MalformedInput("Empty signature tag")
    descriptor = encoded[-1]
    if not descriptor & OUTPUT_BIT:
        raise MalformedInput(f"Signature tag descriptor lacks the output bit: 0x{descriptor:02x}")
    inp = SIGN_INPUT_ALL if descriptor & 0b01 else SIGN_INPUT_SINGLE
    byte_count = descriptor >> 2
    if len(encoded) != byte_count + 1:
        raise MalformedInput(
            f"Signature tag bitmap length mismatch: declared {byte_count}, got {len(encoded) - 1}")
    if byte_count == 0:
        return {"input": inp, "output": SIGN_OUTPUT_ALL}
    bitmap = encoded[:-1][::-1]
    indices = [8 * k + bit for k, b in enumerate(bitmap) for bit in range(8) if b >> bit & 1]
    return {"input": inp, "output": indices}
