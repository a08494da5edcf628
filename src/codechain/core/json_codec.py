# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Transaction-Format; Ethereum-RLP
"""Rebuild transactions from JSON (dispatch on ``action.type``) or from signed
RLP bytes (dispatch on the action tag)."""
from __future__ import annotations

from typing import Dict, Type

from ..utils.cc_logging import get_ctx_logger
from ..utils.errors import MalformedInput
from ..utils.helpers import decode_rlp_bytes, decode_rlp_int, decode_rlp_list, rlp_decode
from .asset_io import expect_fields, json_field
from .asset_tx import ASSET_TRANSACTION_TYPES
from .signed_tx import SignedTransaction
from .transaction import (CreateShard, Custom, Pay, Remove, SetRegularKey, SetShardOwners, SetShardUsers, Store,
                          Transaction, WrapCCC, decode_text)

log = get_ctx_logger("codechain.core(json_codec)")

TRANSACTION_TYPES = (
    Pay, SetRegularKey, CreateShard, SetShardOwners, SetShardUsers, WrapCCC, Store, Remove, Custom,
) + ASSET_TRANSACTION_TYPES

BY_TYPE: Dict[str, Type[Transaction]] = {cls.TYPE: cls for cls in TRANSACTION_TYPES}
BY_TAG: Dict[int, Type[Transaction]] = {cls.TAG: cls for cls in TRANSACTION_TYPES}


def from_json_to_transaction(data: dict) -> Transaction:
    action = json_field(data, "action")
    kind = json_field(action, "type")
    cls = BY_TYPE.get(kind)
    if cls is None:
        raise MalformedInput(f"Unexpected transaction type: {kind!r}")
    tx = cls.from_action_json(action, json_field(data, "networkId"))
    if data.get("seq") is not None:
        tx.set_seq(int(data["seq"]))
    if data.get("fee") is not None:
        tx.set_fee(data["fee"])
    return tx


def from_json_to_signed_transaction(data: dict) -> SignedTransaction:
    signed = SignedTransaction(
        from_json_to_transaction(data),
        json_field(data, "sig"),
        block_number=data.get("blockNumber"),
        block_hash=data.get("blockHash"),
        transaction_index=data.get("transactionIndex"),
    )
    expected = data.get("hash")
    if expected is not None and signed.hash().to_json() != expected.lower():
        raise MalformedInput(f"Transaction hash mismatch: {expected} != {signed.hash().to_json()}")
    return signed


def _decode_envelope(items: list) -> Transaction:
    seq, fee, network_id, action = items
    action = decode_rlp_list(action)
    if not action:
        raise MalformedInput("Empty action")
    tag = decode_rlp_int(action[0])
    cls = BY_TAG.get(tag)
    if cls is None:
        raise MalformedInput(f"Unexpected action tag: 0x{tag:02x}")
    tx = cls.from_action_encode_object(action, decode_text(network_id))
    tx.set_seq(decode_rlp_int(seq))
    tx.set_fee(decode_rlp_int(fee))
    return tx


def decode_signed_transaction(raw) -> SignedTransaction:
    """Parse the RLP bytes of a signed transaction."""
    items = expect_fields(rlp_decode(raw), 5, "SignedTransaction")
    tx = _decode_envelope(items[:4])
    signed = SignedTransaction(tx, decode_rlp_bytes(items[4]))
    log.trace("decoded %s tx %s", tx.TYPE, signed.hash().value)
    return signed


def decode_transaction(raw) -> Transaction:
    """Parse the RLP bytes of an unsigned (seq/fee bound) transaction."""
    return _decode_envelope(expect_fields(rlp_decode(raw), 4, "Transaction"))
