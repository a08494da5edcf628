# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Asset-Transaction
"""Out points, timelocks and the inputs/outputs of asset transactions.

Every type here has three forms: the Python object, an RLP encode object
(nested lists of bytes and ints) and a JSON dict. ``from_encode_object``
is the inverse of ``to_encode_object`` and is what the binary decoder uses.
"""
from __future__ import annotations

from typing import List, Optional, Union

from ..utils import config as CFG
from ..utils.errors import MalformedInput
from ..utils.helpers import decode_rlp_bytes, decode_rlp_int, decode_rlp_list
from .address import AssetAddress
from .primitives import (H160, H256, U64, ValueObject, ensure_parameters, ensure_shard_id,
                         parameters_to_json)
from .script import Script


def json_field(data: dict, key: str):
    if key not in data:
        raise MalformedInput(f"Missing field in JSON: {key}")
    return data[key]


def decode_u16(item) -> int:
    return ensure_shard_id(decode_rlp_int(item))


def decode_parameters(item) -> List[bytes]:
    return [decode_rlp_bytes(p) for p in decode_rlp_list(item)]


def expect_fields(items: list, n: int, what: str) -> list:
    items = decode_rlp_list(items)
    if len(items) != n:
        raise MalformedInput(f"{what} expects {n} fields, got {len(items)}")
    return items


# -----------------------------
# OUT POINT
# -----------------------------

class AssetOutPoint(ValueObject):
    """Reference to an unspent output: (tracker, index) plus what it holds."""

    def __init__(self, tracker, index: int, asset_type, shard_id: int, quantity,
                 lock_script_hash=None, parameters=None):
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise MalformedInput(f"Invalid output index: {index!r}")
        self.tracker = H256.ensure(tracker)
        self.index = index
        self.asset_type = H160.ensure(asset_type)
        self.shard_id = ensure_shard_id(shard_id)
        self.quantity = U64.ensure(quantity)
        self.lock_script_hash = H160.ensure(lock_script_hash) if lock_script_hash is not None else None
        self.parameters = ensure_parameters(parameters) if parameters is not None else None

    def to_encode_object(self) -> list:
        return [
            self.tracker.to_encode_object(),
            self.index,
            self.asset_type.to_encode_object(),
            self.shard_id,
            self.quantity.to_encode_object(),
        ]

    @classmethod
    def from_encode_object(cls, item) -> "AssetOutPoint":
        tracker, index, asset_type, shard_id, quantity = expect_fields(item, 5, "AssetOutPoint")
        return cls(H256(decode_rlp_bytes(tracker)), decode_rlp_int(index),
                   H160(decode_rlp_bytes(asset_type)), decode_u16(shard_id),
                   U64(decode_rlp_int(quantity)))

    def to_json(self) -> dict:
        data = {
            "tracker": self.tracker.to_json(),
            "index": self.index,
            "assetType": self.asset_type.to_json(),
            "shardId": self.shard_id,
            "quantity": self.quantity.to_json(),
        }
        if self.lock_script_hash is not None:
            data["lockScriptHash"] = self.lock_script_hash.to_json()
        if self.parameters is not None:
            data["parameters"] = parameters_to_json(self.parameters)
        return data

    @classmethod
    def from_json(cls, data: dict) -> "AssetOutPoint":
        return cls(
            H256.from_json(json_field(data, "tracker")),
            json_field(data, "index"),
            H160.from_json(json_field(data, "assetType")),
            json_field(data, "shardId"),
            U64.from_json(json_field(data, "quantity")),
            data.get("lockScriptHash"),
            data.get("parameters"),
        )

    def __repr__(self):
        return f"<AssetOutPoint {self.tracker.value}:{self.index}>"


# -----------------------------
# TIMELOCK
# -----------------------------

TIMELOCK_TYPES = {"block": 1, "blockAge": 2, "time": 3, "timeAge": 4}
TIMELOCK_NAMES = {v: k for k, v in TIMELOCK_TYPES.items()}


class Timelock(ValueObject):
    def __init__(self, type_: str, value):
        if type_ not in TIMELOCK_TYPES:
            raise MalformedInput(f"Unexpected timelock type: {type_!r}")
        self.type = type_
        self.value = U64.ensure(value)

    def to_encode_object(self) -> list:
        return [TIMELOCK_TYPES[self.type], self.value.to_encode_object()]

    @classmethod
    def from_encode_object(cls, item) -> "Timelock":
        code, value = expect_fields(item, 2, "Timelock")
        code = decode_rlp_int(code)
        if code not in TIMELOCK_NAMES:
            raise MalformedInput(f"{code} is an invalid timelock type")
        return cls(TIMELOCK_NAMES[code], decode_rlp_int(value))

    def to_json(self) -> dict:
        return {"type": self.type, "value": int(self.value)}

    @classmethod
    def from_json(cls, data: dict) -> "Timelock":
        return cls(json_field(data, "type"), json_field(data, "value"))


# -----------------------------
# TRANSFER INPUT
# -----------------------------

class AssetTransferInput(ValueObject):
    """Spends ``prev_out``. Script setters return a new input; the original is untouched."""

    def __init__(self, prev_out: AssetOutPoint, timelock: Optional[Timelock] = None,
                 lock_script: Union[Script, bytes, str, None] = None,
                 unlock_script: Union[Script, bytes, str, None] = None):
        if not isinstance(prev_out, AssetOutPoint):
            raise MalformedInput("prev_out must be an AssetOutPoint")
        if timelock is not None and not isinstance(timelock, Timelock):
            raise MalformedInput("timelock must be a Timelock")
        self.prev_out = prev_out
        self.timelock = timelock
        self.lock_script = Script(lock_script if lock_script is not None else b"")
        self.unlock_script = Script(unlock_script if unlock_script is not None else b"")

    def without_script(self) -> "AssetTransferInput":
        return AssetTransferInput(self.prev_out, self.timelock)

    def set_lock_script(self, lock_script) -> "AssetTransferInput":
        return AssetTransferInput(self.prev_out, self.timelock, lock_script, self.unlock_script)

    def set_unlock_script(self, unlock_script) -> "AssetTransferInput":
        return AssetTransferInput(self.prev_out, self.timelock, self.lock_script, unlock_script)

    def to_encode_object(self) -> list:
        return [
            self.prev_out.to_encode_object(),
            [self.timelock.to_encode_object()] if self.timelock is not None else [],
            self.lock_script.to_encode_object(),
            self.unlock_script.to_encode_object(),
        ]

    @classmethod
    def from_encode_object(cls, item) -> "AssetTransferInput":
        prev_out, timelock, lock_script, unlock_script = expect_fields(item, 4, "AssetTransferInput")
        timelock = decode_rlp_list(timelock)
        if len(timelock) > 1:
            raise MalformedInput("AssetTransferInput carries more than one timelock")
        return cls(
            AssetOutPoint.from_encode_object(prev_out),
            Timelock.from_encode_object(timelock[0]) if timelock else None,
            decode_rlp_bytes(lock_script),
            decode_rlp_bytes(unlock_script),
        )

    def to_json(self) -> dict:
        return {
            "prevOut": self.prev_out.to_json(),
            "timelock": self.timelock.to_json() if self.timelock is not None else None,
            "lockScript": self.lock_script.to_json(),
            "unlockScript": self.unlock_script.to_json(),
        }

    @classmethod
    def from_json(cls, data: dict) -> "AssetTransferInput":
        timelock = data.get("timelock")
        return cls(
            AssetOutPoint.from_json(json_field(data, "prevOut")),
            Timelock.from_json(timelock) if timelock is not None else None,
            Script.from_json(data.get("lockScript", "")),
            Script.from_json(data.get("unlockScript", "")),
        )


# -----------------------------
# OUTPUTS
# -----------------------------

def lock_target(lock_script_hash, parameters, recipient):
    if recipient is not None:
        if lock_script_hash is not None or parameters is not None:
            raise MalformedInput("Give either a recipient or lock_script_hash/parameters, not both")
        return AssetAddress.ensure(recipient).decompose()
    if lock_script_hash is None:
        raise MalformedInput("Either recipient or lock_script_hash is required")
    return H160.ensure(lock_script_hash), ensure_parameters(parameters)


class AssetTransferOutput(ValueObject):
    def __init__(self, asset_type, shard_id: int, quantity, lock_script_hash=None, parameters=None,
                 recipient: Union[AssetAddress, str, None] = None):
        self.lock_script_hash, self.parameters = lock_target(lock_script_hash, parameters, recipient)
        self.asset_type = H160.ensure(asset_type)
        self.shard_id = ensure_shard_id(shard_id)
        self.quantity = U64.ensure(quantity)

    def to_encode_object(self) -> list:
        return [
            self.lock_script_hash.to_encode_object(),
            list(self.parameters),
            self.asset_type.to_encode_object(),
            self.shard_id,
            self.quantity.to_encode_object(),
        ]

    @classmethod
    def from_encode_object(cls, item) -> "AssetTransferOutput":
        lsh, params, asset_type, shard_id, quantity = expect_fields(item, 5, "AssetTransferOutput")
        return cls(H160(decode_rlp_bytes(asset_type)), decode_u16(shard_id),
                   U64(decode_rlp_int(quantity)), H160(decode_rlp_bytes(lsh)),
                   decode_parameters(params))

    def to_json(self) -> dict:
        return {
            "lockScriptHash": self.lock_script_hash.to_json(),
            "parameters": parameters_to_json(self.parameters),
            "assetType": self.asset_type.to_json(),
            "shardId": self.shard_id,
            "quantity": self.quantity.to_json(),
        }

    @classmethod
    def from_json(cls, data: dict) -> "AssetTransferOutput":
        return cls(
            H160.from_json(json_field(data, "assetType")),
            json_field(data, "shardId"),
            U64.from_json(json_field(data, "quantity")),
            H160.from_json(json_field(data, "lockScriptHash")),
            json_field(data, "parameters"),
        )


class AssetMintOutput(ValueObject):
    def __init__(self, lock_script_hash=None, parameters=None, supply=None,
                 recipient: Union[AssetAddress, str, None] = None):
        self.lock_script_hash, self.parameters = lock_target(lock_script_hash, parameters, recipient)
        self.supply = U64.ensure(supply) if supply is not None else U64(CFG.U64_MAX)

    def to_json(self) -> dict:
        return {
            "lockScriptHash": self.lock_script_hash.to_json(),
            "parameters": parameters_to_json(self.parameters),
            "supply": self.supply.to_json(),
        }

    @classmethod
    def from_json(cls, data: dict) -> "AssetMintOutput":
        return cls(
            H160.from_json(json_field(data, "lockScriptHash")),
            json_field(data, "parameters"),
            U64.from_json(json_field(data, "supply")),
        )
