# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-DEX-Order
"""Exchange orders attached to asset transfers.

An order offers ``assetQuantityFrom`` of one asset for ``assetQuantityTo`` of
another, optionally paying ``assetQuantityFee`` of a third asset to whoever
fills it. Quantities scale linearly: consuming part of an order leaves an
order with the same ratio. Arithmetic is exact; a partial fill that would
need rounding is rejected instead.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from ..utils.cc_logging import get_ctx_logger
from ..utils.errors import InvariantViolation, MalformedInput
from ..utils.helpers import blake256, decode_rlp_bytes, decode_rlp_int, decode_rlp_list, rlp_encode
from .address import AssetAddress
from .asset_io import AssetOutPoint, decode_parameters, decode_u16, expect_fields, json_field
from .primitives import (H160, H256, U64, ValueObject, ensure_parameters, ensure_shard_id,
                         parameters_to_json)

log = get_ctx_logger("codechain.core(order)")


def _lock_pair(lock_script_hash, parameters, recipient, side: str):
    if recipient is not None:
        if lock_script_hash is not None or parameters is not None:
            raise MalformedInput(f"Give either recipient{side} or lockScriptHash{side}/parameters{side}")
        return AssetAddress.ensure(recipient).decompose()
    if lock_script_hash is None or parameters is None:
        raise MalformedInput(f"Either recipient{side} or lockScriptHash{side} and parameters{side} are required")
    return H160.ensure(lock_script_hash), ensure_parameters(parameters)


class Order(ValueObject):
    def __init__(self, asset_type_from, asset_type_to, asset_quantity_from, asset_quantity_to,
                 origin_outputs: Sequence[AssetOutPoint], expiration,
                 shard_id_from: int, shard_id_to: int,
                 asset_type_fee=None, shard_id_fee: int = 0, asset_quantity_fee=0,
                 lock_script_hash_from=None, parameters_from=None,
                 lock_script_hash_fee=None, parameters_fee=None,
                 recipient_from: Optional[AssetAddress] = None,
                 recipient_fee: Optional[AssetAddress] = None):
        self.asset_type_from = H160.ensure(asset_type_from)
        self.asset_type_to = H160.ensure(asset_type_to)
        self.asset_type_fee = H160.ensure(asset_type_fee) if asset_type_fee is not None else H160.zero()
        self.shard_id_from = ensure_shard_id(shard_id_from)
        self.shard_id_to = ensure_shard_id(shard_id_to)
        self.shard_id_fee = ensure_shard_id(shard_id_fee)
        self.asset_quantity_from = U64.ensure(asset_quantity_from)
        self.asset_quantity_to = U64.ensure(asset_quantity_to)
        self.asset_quantity_fee = U64.ensure(asset_quantity_fee)
        self.origin_outputs: List[AssetOutPoint] = list(origin_outputs or [])
        self.expiration = U64.ensure(expiration)
        self.lock_script_hash_from, self.parameters_from = _lock_pair(
            lock_script_hash_from, parameters_from, recipient_from, "From")
        self.lock_script_hash_fee, self.parameters_fee = _lock_pair(
            lock_script_hash_fee, parameters_fee, recipient_fee, "Fee")
        self._validate()

    def _validate(self):
        side_from = (self.asset_type_from, self.shard_id_from)
        side_to = (self.asset_type_to, self.shard_id_to)
        side_fee = (self.asset_type_fee, self.shard_id_fee)
        if side_from == side_to:
            raise MalformedInput(
                f"assetTypeFrom and assetTypeTo is same: {self.asset_type_from.value}(shard {self.shard_id_from})")
        if not self.asset_quantity_fee.is_zero():
            if side_fee == side_from:
                raise MalformedInput(
                    f"assetTypeFrom and assetTypeFee is same: {self.asset_type_from.value}(shard {self.shard_id_from})")
            if side_fee == side_to:
                raise MalformedInput(
                    f"assetTypeTo and assetTypeFee is same: {self.asset_type_to.value}(shard {self.shard_id_to})")

        q_from = int(self.asset_quantity_from)
        q_to = int(self.asset_quantity_to)
        q_fee = int(self.asset_quantity_fee)
        if ((q_from == 0) != (q_to == 0)
                or (q_from == 0 and q_fee != 0)
                or (q_from != 0 and q_fee % q_from != 0)):
            raise MalformedInput(
                f"The given quantity ratio is invalid: {q_from}:{q_to}:{q_fee}")
        if not self.origin_outputs:
            raise MalformedInput("originOutputs is missing")
        for o in self.origin_outputs:
            if not isinstance(o, AssetOutPoint):
                raise MalformedInput("originOutputs must be AssetOutPoint values")

    # -------- Derived ----------

    def hash(self) -> H256:
        return H256(blake256(rlp_encode(self.to_encode_object())))

    def is_fully_spent(self) -> bool:
        return self.asset_quantity_from.is_zero()

    def consume(self, quantity) -> "Order":
        """The order left after ``quantity`` of the "from" asset has been exchanged."""
        quantity = U64.ensure(quantity)
        q_from = int(self.asset_quantity_from)
        if quantity > q_from:
            raise InvariantViolation(
                f"The given quantity is too big: {quantity} > {q_from}")
        if q_from == 0:
            return self._with_quantities(0, 0, 0)
        remain = q_from - int(quantity)
        if remain * int(self.asset_quantity_to) % q_from != 0:
            raise InvariantViolation(
                f"The given quantity does not fit to the ratio: {quantity} of {q_from}:{self.asset_quantity_to}")
        remain_to = remain * int(self.asset_quantity_to) // q_from
        remain_fee = remain * int(self.asset_quantity_fee) // q_from
        log.trace("order consumed: spent=%s remain=%s/%s/%s", quantity, remain, remain_to, remain_fee)
        return self._with_quantities(remain, remain_to, remain_fee)

    def _with_quantities(self, q_from: int, q_to: int, q_fee: int) -> "Order":
        return Order(
            self.asset_type_from, self.asset_type_to, q_from, q_to,
            self.origin_outputs, self.expiration, self.shard_id_from, self.shard_id_to,
            asset_type_fee=self.asset_type_fee, shard_id_fee=self.shard_id_fee, asset_quantity_fee=q_fee,
            lock_script_hash_from=self.lock_script_hash_from, parameters_from=self.parameters_from,
            lock_script_hash_fee=self.lock_script_hash_fee, parameters_fee=self.parameters_fee,
        )

    # -------- Serde ----------

    def to_encode_object(self) -> list:
        return [
            self.asset_type_from.to_encode_object(),
            self.asset_type_to.to_encode_object(),
            self.asset_type_fee.to_encode_object(),
            self.shard_id_from,
            self.shard_id_to,
            self.shard_id_fee,
            self.asset_quantity_from.to_encode_object(),
            self.asset_quantity_to.to_encode_object(),
            self.asset_quantity_fee.to_encode_object(),
            [o.to_encode_object() for o in self.origin_outputs],
            self.expiration.to_encode_object(),
            self.lock_script_hash_from.to_encode_object(),
            list(self.parameters_from),
            self.lock_script_hash_fee.to_encode_object(),
            list(self.parameters_fee),
        ]

    @classmethod
    def from_encode_object(cls, item) -> "Order":
        (type_from, type_to, type_fee, shard_from, shard_to, shard_fee, q_from, q_to, q_fee,
         origins, expiration, lsh_from, params_from, lsh_fee, params_fee) = expect_fields(item, 15, "Order")
        return cls(
            H160(decode_rlp_bytes(type_from)), H160(decode_rlp_bytes(type_to)),
            decode_rlp_int(q_from), decode_rlp_int(q_to),
            [AssetOutPoint.from_encode_object(o) for o in decode_rlp_list(origins)],
            decode_rlp_int(expiration),
            decode_u16(shard_from), decode_u16(shard_to),
            asset_type_fee=H160(decode_rlp_bytes(type_fee)),
            shard_id_fee=decode_u16(shard_fee),
            asset_quantity_fee=decode_rlp_int(q_fee),
            lock_script_hash_from=H160(decode_rlp_bytes(lsh_from)),
            parameters_from=decode_parameters(params_from),
            lock_script_hash_fee=H160(decode_rlp_bytes(lsh_fee)),
            parameters_fee=decode_parameters(params_fee),
        )

    def to_json(self) -> dict:
        return {
            "assetTypeFrom": self.asset_type_from.to_json(),
            "assetTypeTo": self.asset_type_to.to_json(),
            "assetTypeFee": self.asset_type_fee.to_json(),
            "shardIdFrom": self.shard_id_from,
            "shardIdTo": self.shard_id_to,
            "shardIdFee": self.shard_id_fee,
            "assetQuantityFrom": self.asset_quantity_from.to_json(),
            "assetQuantityTo": self.asset_quantity_to.to_json(),
            "assetQuantityFee": self.asset_quantity_fee.to_json(),
            "originOutputs": [o.to_json() for o in self.origin_outputs],
            "expiration": self.expiration.to_json(),
            "lockScriptHashFrom": self.lock_script_hash_from.to_json(),
            "parametersFrom": parameters_to_json(self.parameters_from),
            "lockScriptHashFee": self.lock_script_hash_fee.to_json(),
            "parametersFee": parameters_to_json(self.parameters_fee),
        }

    @classmethod
    def from_json(cls, data: dict) -> "Order":
        return cls(
            json_field(data, "assetTypeFrom"), json_field(data, "assetTypeTo"),
            U64.from_json(json_field(data, "assetQuantityFrom")),
            U64.from_json(json_field(data, "assetQuantityTo")),
            [AssetOutPoint.from_json(o) for o in json_field(data, "originOutputs")],
            U64.from_json(json_field(data, "expiration")),
            json_field(data, "shardIdFrom"), json_field(data, "shardIdTo"),
            asset_type_fee=data.get("assetTypeFee"),
            shard_id_fee=data.get("shardIdFee", 0),
            asset_quantity_fee=U64.from_json(data.get("assetQuantityFee", 0)),
            lock_script_hash_from=json_field(data, "lockScriptHashFrom"),
            parameters_from=json_field(data, "parametersFrom"),
            lock_script_hash_fee=json_field(data, "lockScriptHashFee"),
            parameters_fee=json_field(data, "parametersFee"),
        )

    def __repr__(self):
        return (f"<Order {self.asset_quantity_from}:{self.asset_quantity_to}:{self.asset_quantity_fee}"
                f" {self.asset_type_from.value}->{self.asset_type_to.value}>")


def _indices(values, name: str) -> List[int]:
    if values is None:
        return []
    out = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int) or v < 0:
            raise MalformedInput(f"{name} must hold non-negative integers: {v!r}")
        out.append(v)
    return out


class OrderOnTransfer(ValueObject):
    """An order together with how one transfer fills it."""

    INDEX_FIELDS = (
        "input_from_indices", "input_fee_indices",
        "output_from_indices", "output_to_indices",
        "output_owned_fee_indices", "output_transferred_fee_indices",
    )
    JSON_INDEX_FIELDS = (
        "inputFromIndices", "inputFeeIndices",
        "outputFromIndices", "outputToIndices",
        "outputOwnedFeeIndices", "outputTransferredFeeIndices",
    )

    def __init__(self, order: Order, spent_quantity,
                 input_from_indices=None, input_fee_indices=None,
                 output_from_indices=None, output_to_indices=None,
                 output_owned_fee_indices=None, output_transferred_fee_indices=None):
        if not isinstance(order, Order):
            raise MalformedInput("order must be an Order")
        self.order = order
        self.spent_quantity = U64.ensure(spent_quantity)
        self.input_from_indices = _indices(input_from_indices, "inputFromIndices")
        self.input_fee_indices = _indices(input_fee_indices, "inputFeeIndices")
        self.output_from_indices = _indices(output_from_indices, "outputFromIndices")
        self.output_to_indices = _indices(output_to_indices, "outputToIndices")
        self.output_owned_fee_indices = _indices(output_owned_fee_indices, "outputOwnedFeeIndices")
        self.output_transferred_fee_indices = _indices(
            output_transferred_fee_indices, "outputTransferredFeeIndices")

    def get_consumed_order(self) -> Order:
        return self.order.consume(self.spent_quantity)

    def input_indices(self) -> List[int]:
        return self.input_from_indices + self.input_fee_indices

    def output_indices(self) -> List[int]:
        return (self.output_from_indices + self.output_to_indices
                + self.output_owned_fee_indices + self.output_transferred_fee_indices)

    def to_encode_object(self) -> list:
        return [self.order.to_encode_object(), self.spent_quantity.to_encode_object()] + [
            list(getattr(self, f)) for f in self.INDEX_FIELDS
        ]

    @classmethod
    def from_encode_object(cls, item) -> "OrderOnTransfer":
        fields = expect_fields(item, 8, "OrderOnTransfer")
        groups = [[decode_rlp_int(i) for i in decode_rlp_list(g)] for g in fields[2:]]
        return cls(Order.from_encode_object(fields[0]), decode_rlp_int(fields[1]), *groups)

    def to_json(self) -> dict:
        data = {"order": self.order.to_json(), "spentQuantity": self.spent_quantity.to_json()}
        for attr, key in zip(self.INDEX_FIELDS, self.JSON_INDEX_FIELDS):
            data[key] = list(getattr(self, attr))
        return data

    @classmethod
    def from_json(cls, data: dict) -> "OrderOnTransfer":
        groups = [data.get(key, []) for key in cls.JSON_INDEX_FIELDS]
        return cls(Order.from_json(json_field(data, "order")),
                   U64.from_json(json_field(data, "spentQuantity")), *groups)
