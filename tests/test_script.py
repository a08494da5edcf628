# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-VM-Opcodes; CodeChain-Partial-Signing

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from codechain.core.script import P2PKH_BURN_LOCK_SCRIPT, P2PKH_LOCK_SCRIPT, Script  # noqa: E402
from codechain.core.signature_tag import (ALL_ALL, decode_signature_tag,  # noqa: E402
                                          encode_signature_tag)
from codechain.utils import config as CFG  # noqa: E402
from codechain.utils.errors import MalformedInput  # noqa: E402


# -----------------------------
# Tokenizer
# -----------------------------

def test_tokenize_push_blob_then_nop():
    tokens = Script(bytes([0x32, 3, 0xFF, 0xEE, 0xDD, 0x00])).tokenize()
    assert tokens == ["PUSHB", "0xFFEEDD", "NOP"]


def test_tokenize_p2pkh_lock_scripts():
    assert Script(P2PKH_LOCK_SCRIPT).tokenize() == ["COPY", "0x1", "BLAKE160", "EQ", "JZ", "0xFF", "CHKSIG"]
    assert Script(P2PKH_BURN_LOCK_SCRIPT).tokenize()[-3:] == ["JZ", "0xFF", "BURN"]


def test_tokenize_timelock():
    assert Script(bytes([0xB0, 0x03])).tokenize() == ["CHKTIMELOCK", "TIME"]
    with pytest.raises(MalformedInput, match="invalid timelock type"):
        Script(bytes([0xB0, 0x09])).tokenize()


@pytest.mark.parametrize("raw", [
    bytes([0x32]),
    bytes([0x32, 3, 0xFF, 0xEE]),
    bytes([0x22]),
    bytes([0x00, 0x35]),
])
def test_tokenize_missing_parameter(raw):
    with pytest.raises(MalformedInput, match="expected but not exists"):
        Script(raw).tokenize()


def test_tokenize_unknown_opcode_fails_whole_call():
    with pytest.raises(MalformedInput, match="Unknown opcode: 0xFF"):
        Script(bytes([0x00, 0x00, 0xFF])).tokenize()


def test_from_tokens_inverts_tokenize():
    for raw in (P2PKH_LOCK_SCRIPT, P2PKH_BURN_LOCK_SCRIPT, bytes([0x32, 2, 0xAB, 0xCD, 0xB0, 0x01, 0x02])):
        script = Script(raw)
        assert Script.from_tokens(script.tokenize()) == script


def test_from_tokens_rejects_bad_operands():
    with pytest.raises(MalformedInput):
        Script.from_tokens(["JZ"])
    with pytest.raises(MalformedInput):
        Script.from_tokens(["JZ", "0x100"])
    with pytest.raises(MalformedInput):
        Script.from_tokens(["WHAT"])


def test_push_bytes_and_concat():
    script = Script.concat([Script.push_bytes(b"\x01\x02"), Script.push_bytes(b"")])
    assert script.data == bytes([0x32, 2, 1, 2, 0x32, 0])
    assert script.to_json() == "320201023200"
    with pytest.raises(MalformedInput):
        Script.push_bytes(bytes(256))


# -----------------------------
# Signature tags
# -----------------------------

def test_all_all_tag_is_single_byte():
    assert encode_signature_tag(ALL_ALL) == bytes([0x03])
    assert decode_signature_tag(bytes([0x03])) == ALL_ALL


def test_single_input_with_output_list():
    tag = {"input": "single", "output": [0, 1, 2]}
    encoded = encode_signature_tag(tag)
    assert encoded == bytes([0x07, 0x06])
    assert decode_signature_tag(encoded) == tag


def test_output_list_is_deduped_and_sorted():
    assert encode_signature_tag({"input": "all", "output": [8, 0, 8]}) == \
        encode_signature_tag({"input": "all", "output": [0, 8]})
    encoded = encode_signature_tag({"input": "all", "output": [0, 8]})
    assert encoded == bytes([0x01, 0x01, (2 << 2) | 0b11])
    assert decode_signature_tag(encoded) == {"input": "all", "output": [0, 8]}


def test_single_input_all_outputs():
    assert encode_signature_tag({"input": "single", "output": "all"}) == bytes([0x02])


@pytest.mark.parametrize("tag", [
    {"input": "single", "output": []},
    {"input": "single", "output": [504]},
    {"input": "some", "output": "all"},
    {"input": "all", "output": "none"},
])
def test_invalid_tags(tag):
    with pytest.raises(MalformedInput):
        encode_signature_tag(tag)


def test_largest_output_index_fits():
    encoded = encode_signature_tag({"input": "all", "output": [503]})
    assert len(encoded) == 64
    assert decode_signature_tag(encoded)["output"] == [503]


def test_bitmap_length_limit_is_read_from_config(monkeypatch):
    monkeypatch.setattr(CFG, "MAX_SIGNATURE_TAG_BITMAP_BYTES", 2)
    assert encode_signature_tag({"input": "all", "output": [7]}) == bytes([0x80, (1 << 2) | 0b11])
    with pytest.raises(MalformedInput, match="bitmap is too long"):
        encode_signature_tag({"input": "all", "output": [8]})


def test_decode_rejects_length_mismatch():
    with pytest.raises(MalformedInput):
        decode_signature_tag(bytes([0x07]))
    with pytest.raises(MalformedInput):
        decode_signature_tag(bytes([0x01]))
