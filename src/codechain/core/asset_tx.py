# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Asset-Transaction; CodeChain-Partial-Signing; CodeChain-DEX-Order
"""Shard-level asset transactions.

Each action is an inner list (tag first) followed by witness fields such as
approvals. The tracker hashes the inner list only, so co-signer approvals
never change the identity of what they approve.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Union

from ..utils import config as CFG
from ..utils.cc_logging import get_ctx_logger
from ..utils.errors import InvariantViolation, MalformedInput
from ..utils.helpers import (blake128, blake160, blake256, blake256_with_key, decode_rlp_bytes, decode_rlp_int,
                             decode_rlp_list, rlp_encode)
from .address import PlatformAddress
from .asset import Asset, AssetScheme
from .asset_io import (AssetMintOutput, AssetTransferInput, AssetTransferOutput, decode_parameters, decode_u16,
                       expect_fields, json_field)
from .order import Order, OrderOnTransfer
from .primitives import H160, H256, U64, ensure_shard_id
from .signature_tag import (ALL_ALL, SIGN_INPUT_ALL, SIGN_INPUT_SINGLE, SIGN_OUTPUT_ALL, SignatureTag,
                            encode_signature_tag, is_all_all, normalize_output_indices)
from .signed_tx import check_signature
from .transaction import Transaction, decode_account, decode_text, encode_text, optional_account

log = get_ctx_logger("codechain.core(asset_tx)")


# -----------------------------
# HELPERS
# -----------------------------

def _as_input(item, what: str = "input") -> AssetTransferInput:
    if isinstance(item, AssetTransferInput):
        return item
    if isinstance(item, Asset):
        return item.create_transfer_input()
    raise MalformedInput(f"Expected {what} to be either AssetTransferInput or Asset but found {item!r}")


def _as_output(item) -> AssetTransferOutput:
    if isinstance(item, AssetTransferOutput):
        return item
    if isinstance(item, dict):
        try:
            return AssetTransferOutput(**item)
        except TypeError as exc:
            raise MalformedInput(f"Invalid output description: {item!r}") from exc
    raise MalformedInput(f"Expected an AssetTransferOutput or a dict but found {item!r}")


def _optional_account(address: Optional[PlatformAddress]) -> list:
    return [address.account_id.to_encode_object()] if address is not None else []


def _optional_address(address) -> Optional[PlatformAddress]:
    return PlatformAddress.ensure(address) if address is not None else None


def _address_json(address: Optional[PlatformAddress]):
    return address.to_json() if address is not None else None


def _tag_key(tag: SignatureTag) -> bytes:
    return blake128(encode_signature_tag(tag))


def _hash_with_tag(inner: list, tag: SignatureTag) -> H256:
    return H256(blake256_with_key(rlp_encode(inner), _tag_key(tag)))


def _shard_address(seed: H256, shard_id: int, key: bytes) -> H256:
    blake = blake256_with_key(seed.to_bytes(), key)
    return H256(CFG.ASSET_ADDRESS_PREFIX + shard_id.to_bytes(2, "big") + blake[4:])


def _check_index(index, length: int, what: str) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < length:
        raise InvariantViolation(f"Invalid {what} index: {index!r}")
    return index


def _check_distinct(entry: OrderOnTransfer):
    """Each index appears once across the input groups and once across the output groups of an order."""
    for what, indices in (("input", entry.input_indices()), ("output", entry.output_indices())):
        seen = set()
        for i in indices:
            if i in seen:
                raise InvariantViolation(f"The {what} index {i} appears twice in one order")
            seen.add(i)


def _decode_approvals(item) -> List[bytes]:
    return [decode_rlp_bytes(a) for a in decode_rlp_list(item)]


def _decode_hashes(item) -> List[H160]:
    return [H160(decode_rlp_bytes(h)) for h in decode_rlp_list(item)]


class AssetTransaction(Transaction):
    """Base of the shard transactions: an inner action plus approvals."""

    def __init__(self, network_id: str, approvals=None):
        super().__init__(network_id)
        self.approvals: List[str] = [check_signature(a) for a in (approvals or [])]

    def inner_encode_object(self) -> list:
        raise NotImplementedError

    def witness_encode_object(self) -> list:
        return [[bytes.fromhex(a) for a in self.approvals]]

    def action_to_encode_object(self) -> list:
        return self.inner_encode_object() + self.witness_encode_object()

    def tracker(self) -> H256:
        return H256(blake256(rlp_encode(self.inner_encode_object())))

    def add_approval(self, approval) -> "AssetTransaction":
        self.approvals.append(check_signature(approval))
        return self

    def _approvals_json(self) -> List[str]:
        return ["0x" + a for a in self.approvals]


# -----------------------------
# MINT
# -----------------------------

class MintAsset(AssetTransaction):
    TYPE = "mintAsset"
    TAG = 0x13

    def __init__(self, network_id: str, shard_id: int, metadata: str, output: AssetMintOutput,
                 approver=None, registrar=None, allowed_script_hashes=None, approvals=None):
        super().__init__(network_id, approvals)
        if not isinstance(metadata, str):
            raise MalformedInput("metadata must be a string")
        if not isinstance(output, AssetMintOutput):
            raise MalformedInput("output must be an AssetMintOutput")
        self.shard_id = ensure_shard_id(shard_id)
        self.metadata = metadata
        self.output = output
        self.approver = _optional_address(approver)
        self.registrar = _optional_address(registrar)
        self.allowed_script_hashes = [H160.ensure(h) for h in (allowed_script_hashes or [])]

    def inner_encode_object(self) -> list:
        return [
            self.TAG,
            encode_text(self.network_id),
            self.shard_id,
            encode_text(self.metadata),
            self.output.lock_script_hash.to_encode_object(),
            list(self.output.parameters),
            self.output.supply.to_encode_object(),
            _optional_account(self.approver),
            _optional_account(self.registrar),
            [h.to_encode_object() for h in self.allowed_script_hashes],
        ]

    def get_asset_type(self) -> H160:
        return H160(blake160(self.tracker().to_bytes()))

    def get_asset_address(self) -> H256:
        return _shard_address(self.tracker(), self.shard_id, CFG.ASSET_ADDRESS_KEY)

    def get_minted_asset(self) -> Asset:
        return Asset(self.get_asset_type(), self.shard_id, self.output.lock_script_hash,
                     self.output.parameters, self.output.supply, self.tracker(), 0)

    def get_asset_scheme(self) -> AssetScheme:
        return AssetScheme(self.network_id, self.shard_id, self.metadata, self.output.supply,
                           approver=self.approver, registrar=self.registrar,
                           allowed_script_hashes=self.allowed_script_hashes)

    def action_to_json(self) -> dict:
        return {
            "shardId": self.shard_id,
            "metadata": self.metadata,
            "output": self.output.to_json(),
            "approver": _address_json(self.approver),
            "registrar": _address_json(self.registrar),
            "allowedScriptHashes": [h.to_json() for h in self.allowed_script_hashes],
            "approvals": self._approvals_json(),
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        (_tag, _net, shard_id, metadata, lsh, params, supply, approver, registrar, allowed,
         approvals) = expect_fields(action, 11, "MintAsset")
        output = AssetMintOutput(H160(decode_rlp_bytes(lsh)), decode_parameters(params), decode_rlp_int(supply))
        return cls(network_id, decode_u16(shard_id), decode_text(metadata), output,
                   approver=optional_account(approver, network_id),
                   registrar=optional_account(registrar, network_id),
                   allowed_script_hashes=_decode_hashes(allowed),
                   approvals=_decode_approvals(approvals))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(network_id, json_field(action, "shardId"), json_field(action, "metadata"),
                   AssetMintOutput.from_json(json_field(action, "output")),
                   approver=action.get("approver"), registrar=action.get("registrar"),
                   allowed_script_hashes=action.get("allowedScriptHashes"),
                   approvals=action.get("approvals"))


# -----------------------------
# TRANSFER
# -----------------------------

class TransferAsset(AssetTransaction):
    """Spends inputs and burns into outputs, optionally filling exchange orders.

    Builders validate before they mutate, so a rejected call leaves the
    transaction as it was. Cross-field order checks run in ``finalize``.
    """

    TYPE = "transferAsset"
    TAG = 0x14

    def __init__(self, network_id: str, burns=None, inputs=None, outputs=None, orders=None,
                 metadata: str = "", approvals=None, expiration=None):
        super().__init__(network_id, approvals)
        if not isinstance(metadata, str):
            raise MalformedInput("metadata must be a string")
        self.burns: List[AssetTransferInput] = [_as_input(b, "burn") for b in (burns or [])]
        self.inputs: List[AssetTransferInput] = [_as_input(i) for i in (inputs or [])]
        self.outputs: List[AssetTransferOutput] = [_as_output(o) for o in (outputs or [])]
        self.orders: List[OrderOnTransfer] = []
        for o in orders or []:
            if not isinstance(o, OrderOnTransfer):
                raise MalformedInput("orders must hold OrderOnTransfer values")
            self.orders.append(o)
        self.metadata = metadata
        self.expiration = U64.ensure(expiration) if expiration is not None else None

    # -------- Builders ----------

    def add_burns(self, *burns) -> "TransferAsset":
        items = [_as_input(b, "burn") for b in burns]
        self.burns.extend(items)
        return self

    def add_inputs(self, *inputs) -> "TransferAsset":
        items = [_as_input(i) for i in inputs]
        self.inputs.extend(items)
        return self

    def add_outputs(self, *outputs) -> "TransferAsset":
        items = [_as_output(o) for o in outputs]
        self.outputs.extend(items)
        return self

    def add_order(self, order: Order, spent_quantity, input_from_indices: Sequence[int],
                  input_fee_indices: Sequence[int] = (), output_from_indices: Sequence[int] = (),
                  output_to_indices: Sequence[int] = (), output_owned_fee_indices: Sequence[int] = (),
                  output_transferred_fee_indices: Sequence[int] = ()) -> "TransferAsset":
        if not input_from_indices:
            raise InvariantViolation("inputFromIndices should not be empty")
        entry = OrderOnTransfer(
            order, spent_quantity,
            list(input_from_indices), list(input_fee_indices),
            list(output_from_indices), list(output_to_indices),
            list(output_owned_fee_indices), list(output_transferred_fee_indices),
        )
        _check_distinct(entry)
        new_inputs = set(entry.input_indices())
        new_outputs = set(entry.output_indices())
        for existing in self.orders:
            if new_inputs & set(existing.input_indices()) or new_outputs & set(existing.output_indices()):
                raise InvariantViolation(
                    f"Input and output indices should not intersect with other orders: {existing.order!r}")
        self.orders.append(entry)
        log.debug("order attached: spent=%s inputs=%s outputs=%s",
                  entry.spent_quantity, sorted(new_inputs), sorted(new_outputs))
        return self

    def _order_covers(self, index: int) -> bool:
        return any(index in o.input_indices() for o in self.orders)

    def set_lock_script(self, index: int, lock_script) -> "TransferAsset":
        _check_index(index, len(self.inputs), "input")
        self.inputs[index] = self.inputs[index].set_lock_script(lock_script)
        return self

    def set_unlock_script(self, index: int, unlock_script) -> "TransferAsset":
        _check_index(index, len(self.inputs), "input")
        if self._order_covers(index):
            raise InvariantViolation(f"The input {index} is already covered by an order")
        self.inputs[index] = self.inputs[index].set_unlock_script(unlock_script)
        return self

    def set_burn_lock_script(self, index: int, lock_script) -> "TransferAsset":
        _check_index(index, len(self.burns), "burn")
        self.burns[index] = self.burns[index].set_lock_script(lock_script)
        return self

    def set_burn_unlock_script(self, index: int, unlock_script) -> "TransferAsset":
        _check_index(index, len(self.burns), "burn")
        self.burns[index] = self.burns[index].set_unlock_script(unlock_script)
        return self

    # -------- Order checks ----------

    def _check_group(self, indices, entries, what: str, asset_type: H160, shard_id: int, lock=None):
        for i in indices:
            _check_index(i, len(entries), what)
            entry = entries[i]
            ref = entry.prev_out if isinstance(entry, AssetTransferInput) else entry
            if ref.asset_type != asset_type or ref.shard_id != shard_id:
                raise InvariantViolation(
                    f"The {what} {i} does not hold the asset the order expects: {ref.asset_type.value}")
            if lock is not None and (entry.lock_script_hash, entry.parameters) != lock:
                raise InvariantViolation(f"The {what} {i} is not locked to the order owner")

    def finalize(self) -> "TransferAsset":
        """Cross-check attached orders against inputs and outputs."""
        for entry in self.orders:
            order = entry.order
            _check_distinct(entry)
            owner = (order.lock_script_hash_from, order.parameters_from)
            fee_owner = (order.lock_script_hash_fee, order.parameters_fee)
            fee_side = (order.asset_type_fee, order.shard_id_fee)
            from_side = (order.asset_type_from, order.shard_id_from)
            to_side = (order.asset_type_to, order.shard_id_to)

            self._check_group(entry.input_from_indices, self.inputs, "input", *from_side)
            self._check_group(entry.input_fee_indices, self.inputs, "input", *fee_side)
            self._check_group(entry.output_from_indices, self.outputs, "output", *from_side, lock=owner)
            self._check_group(entry.output_to_indices, self.outputs, "output", *to_side, lock=owner)
            self._check_group(entry.output_owned_fee_indices, self.outputs, "output", *fee_side, lock=owner)
            self._check_group(entry.output_transferred_fee_indices, self.outputs, "output", *fee_side,
                              lock=fee_owner)

            consumed = entry.get_consumed_order()
            spent = not entry.spent_quantity.is_zero()
            if not consumed.asset_quantity_from.is_zero() and not entry.output_from_indices:
                raise InvariantViolation("outputFromIndices should not be empty while the order has remaining assets")
            if spent and not entry.output_to_indices:
                raise InvariantViolation("outputToIndices should not be empty when the order is spent")
            if spent and not order.asset_quantity_fee.is_zero() and not entry.input_fee_indices:
                raise InvariantViolation("inputFeeIndices should not be empty when the order pays a fee")
        return self

    def check_build(self) -> "TransferAsset":
        return self.finalize()

    # -------- Hashing ----------

    def inner_encode_object(self) -> list:
        return self._inner(self.burns, self.inputs, self.outputs)

    def _inner(self, burns, inputs, outputs) -> list:
        return [
            self.TAG,
            encode_text(self.network_id),
            [b.to_encode_object() for b in burns],
            [i.to_encode_object() for i in inputs],
            [o.to_encode_object() for o in outputs],
            [o.to_encode_object() for o in self.orders],
        ]

    def witness_encode_object(self) -> list:
        return [
            encode_text(self.metadata),
            [bytes.fromhex(a) for a in self.approvals],
            [self.expiration.to_encode_object()] if self.expiration is not None else [],
        ]

    def hash_without_script(self, tag: SignatureTag = ALL_ALL, type_: str = "input",
                            index: Optional[int] = None) -> H256:
        """Message a per-input signature commits to, scripts stripped and filtered by ``tag``."""
        if self.orders and not is_all_all(tag):
            raise InvariantViolation("Partial signing is unavailable with orders")
        self.finalize()

        if tag.get("input") == SIGN_INPUT_ALL:
            burns = [b.without_script() for b in self.burns]
            inputs = [i.without_script() for i in self.inputs]
        elif tag.get("input") == SIGN_INPUT_SINGLE:
            if type_ == "input":
                _check_index(index, len(self.inputs), "input")
                burns, inputs = [], [self.inputs[index].without_script()]
            elif type_ == "burn":
                _check_index(index, len(self.burns), "burn")
                burns, inputs = [self.burns[index].without_script()], []
            else:
                raise MalformedInput(f"Unexpected value of the type param: {type_!r}")
        else:
            raise MalformedInput(f"Unexpected value of the tag input: {tag.get('input')!r}")

        if tag.get("output") == SIGN_OUTPUT_ALL:
            outputs = list(self.outputs)
        else:
            selected = normalize_output_indices(tag.get("output") or [])
            outputs = [self.outputs[_check_index(i, len(self.outputs), "output")] for i in selected]

        digest = _hash_with_tag(self._inner(burns, inputs, outputs), tag)
        log.trace("transfer hash without script: tag=%s type=%s index=%s -> %s", tag, type_, index, digest.value)
        return digest

    # -------- Derived ----------

    def get_transferred_asset(self, index: int) -> Asset:
        _check_index(index, len(self.outputs), "output")
        out = self.outputs[index]
        return Asset(out.asset_type, out.shard_id, out.lock_script_hash, out.parameters, out.quantity,
                     self.tracker(), index)

    def get_transferred_assets(self) -> List[Asset]:
        return [self.get_transferred_asset(i) for i in range(len(self.outputs))]

    def get_asset_address(self, index: int) -> H256:
        _check_index(index, len(self.outputs), "output")
        key = bytes(8) + index.to_bytes(8, "big")
        return _shard_address(self.tracker(), self.outputs[index].shard_id, key)

    # -------- Serde ----------

    def action_to_json(self) -> dict:
        return {
            "burns": [b.to_json() for b in self.burns],
            "inputs": [i.to_json() for i in self.inputs],
            "outputs": [o.to_json() for o in self.outputs],
            "orders": [o.to_json() for o in self.orders],
            "metadata": self.metadata,
            "approvals": self._approvals_json(),
            "expiration": self.expiration.to_json() if self.expiration is not None else None,
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        (_tag, _net, burns, inputs, outputs, orders, metadata, approvals,
         expiration) = expect_fields(action, 9, "TransferAsset")
        expiration = decode_rlp_list(expiration)
        if len(expiration) > 1:
            raise MalformedInput("TransferAsset carries more than one expiration")
        return cls(
            network_id,
            burns=[AssetTransferInput.from_encode_object(b) for b in decode_rlp_list(burns)],
            inputs=[AssetTransferInput.from_encode_object(i) for i in decode_rlp_list(inputs)],
            outputs=[AssetTransferOutput.from_encode_object(o) for o in decode_rlp_list(outputs)],
            orders=[OrderOnTransfer.from_encode_object(o) for o in decode_rlp_list(orders)],
            metadata=decode_text(metadata),
            approvals=_decode_approvals(approvals),
            expiration=decode_rlp_int(expiration[0]) if expiration else None,
        )

    @classmethod
    def from_action_json(cls, action, network_id):
        expiration = action.get("expiration")
        return cls(
            network_id,
            burns=[AssetTransferInput.from_json(b) for b in action.get("burns", [])],
            inputs=[AssetTransferInput.from_json(i) for i in action.get("inputs", [])],
            outputs=[AssetTransferOutput.from_json(o) for o in action.get("outputs", [])],
            orders=[OrderOnTransfer.from_json(o) for o in action.get("orders", [])],
            metadata=action.get("metadata", ""),
            approvals=action.get("approvals"),
            expiration=U64.from_json(expiration) if expiration is not None else None,
        )


# -----------------------------
# SCHEME MANAGEMENT
# -----------------------------

class ChangeAssetScheme(AssetTransaction):
    TYPE = "changeAssetScheme"
    TAG = 0x15

    def __init__(self, network_id: str, shard_id: int, asset_type, seq: int, metadata: str,
                 approver=None, registrar=None, allowed_script_hashes=None, approvals=None):
        super().__init__(network_id, approvals)
        if not isinstance(metadata, str):
            raise MalformedInput("metadata must be a string")
        if isinstance(seq, bool) or not isinstance(seq, int) or seq < 0:
            raise MalformedInput(f"Invalid scheme seq: {seq!r}")
        self.shard_id = ensure_shard_id(shard_id)
        self.asset_type = H160.ensure(asset_type)
        self.scheme_seq = seq
        self.metadata = metadata
        self.approver = _optional_address(approver)
        self.registrar = _optional_address(registrar)
        self.allowed_script_hashes = [H160.ensure(h) for h in (allowed_script_hashes or [])]

    def inner_encode_object(self) -> list:
        return [
            self.TAG,
            encode_text(self.network_id),
            self.shard_id,
            self.asset_type.to_encode_object(),
            self.scheme_seq,
            encode_text(self.metadata),
            _optional_account(self.approver),
            _optional_account(self.registrar),
            [h.to_encode_object() for h in self.allowed_script_hashes],
        ]

    def action_to_json(self) -> dict:
        return {
            "shardId": self.shard_id,
            "assetType": self.asset_type.to_json(),
            "seq": self.scheme_seq,
            "metadata": self.metadata,
            "approver": _address_json(self.approver),
            "registrar": _address_json(self.registrar),
            "allowedScriptHashes": [h.to_json() for h in self.allowed_script_hashes],
            "approvals": self._approvals_json(),
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        (_tag, _net, shard_id, asset_type, seq, metadata, approver, registrar, allowed,
         approvals) = expect_fields(action, 10, "ChangeAssetScheme")
        return cls(network_id, decode_u16(shard_id), H160(decode_rlp_bytes(asset_type)), decode_rlp_int(seq),
                   decode_text(metadata),
                   approver=optional_account(approver, network_id),
                   registrar=optional_account(registrar, network_id),
                   allowed_script_hashes=_decode_hashes(allowed),
                   approvals=_decode_approvals(approvals))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(network_id, json_field(action, "shardId"), json_field(action, "assetType"),
                   json_field(action, "seq"), json_field(action, "metadata"),
                   approver=action.get("approver"), registrar=action.get("registrar"),
                   allowed_script_hashes=action.get("allowedScriptHashes"),
                   approvals=action.get("approvals"))


class IncreaseAssetSupply(AssetTransaction):
    TYPE = "increaseAssetSupply"
    TAG = 0x18

    def __init__(self, network_id: str, shard_id: int, asset_type, seq: int, output: AssetMintOutput,
                 approvals=None):
        super().__init__(network_id, approvals)
        if not isinstance(output, AssetMintOutput):
            raise MalformedInput("output must be an AssetMintOutput")
        if isinstance(seq, bool) or not isinstance(seq, int) or seq < 0:
            raise MalformedInput(f"Invalid scheme seq: {seq!r}")
        self.shard_id = ensure_shard_id(shard_id)
        self.asset_type = H160.ensure(asset_type)
        self.scheme_seq = seq
        self.output = output

    def inner_encode_object(self) -> list:
        return [
            self.TAG,
            encode_text(self.network_id),
            self.shard_id,
            self.asset_type.to_encode_object(),
            self.scheme_seq,
            self.output.lock_script_hash.to_encode_object(),
            list(self.output.parameters),
            self.output.supply.to_encode_object(),
        ]

    def get_minted_asset(self) -> Asset:
        return Asset(self.asset_type, self.shard_id, self.output.lock_script_hash, self.output.parameters,
                     self.output.supply, self.tracker(), 0)

    def action_to_json(self) -> dict:
        return {
            "shardId": self.shard_id,
            "assetType": self.asset_type.to_json(),
            "seq": self.scheme_seq,
            "output": self.output.to_json(),
            "approvals": self._approvals_json(),
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        (_tag, _net, shard_id, asset_type, seq, lsh, params, supply,
         approvals) = expect_fields(action, 9, "IncreaseAssetSupply")
        output = AssetMintOutput(H160(decode_rlp_bytes(lsh)), decode_parameters(params), decode_rlp_int(supply))
        return cls(network_id, decode_u16(shard_id), H160(decode_rlp_bytes(asset_type)), decode_rlp_int(seq),
                   output, approvals=_decode_approvals(approvals))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(network_id, json_field(action, "shardId"), json_field(action, "assetType"),
                   json_field(action, "seq"), AssetMintOutput.from_json(json_field(action, "output")),
                   approvals=action.get("approvals"))


# -----------------------------
# COMPOSE / DECOMPOSE
# -----------------------------

class ComposeAsset(AssetTransaction):
    """Locks several inputs into one newly registered asset."""

    TYPE = "composeAsset"
    TAG = 0x16

    def __init__(self, network_id: str, shard_id: int, metadata: str, output: AssetMintOutput,
                 inputs=None, approver=None, registrar=None, allowed_script_hashes=None, approvals=None):
        super().__init__(network_id, approvals)
        if not isinstance(metadata, str):
            raise MalformedInput("metadata must be a string")
        if not isinstance(output, AssetMintOutput):
            raise MalformedInput("output must be an AssetMintOutput")
        self.shard_id = ensure_shard_id(shard_id)
        self.metadata = metadata
        self.output = output
        self.inputs: List[AssetTransferInput] = [_as_input(i) for i in (inputs or [])]
        self.approver = _optional_address(approver)
        self.registrar = _optional_address(registrar)
        self.allowed_script_hashes = [H160.ensure(h) for h in (allowed_script_hashes or [])]

    def add_inputs(self, *inputs) -> "ComposeAsset":
        items = [_as_input(i) for i in inputs]
        self.inputs.extend(items)
        return self

    def set_lock_script(self, index: int, lock_script) -> "ComposeAsset":
        _check_index(index, len(self.inputs), "input")
        self.inputs[index] = self.inputs[index].set_lock_script(lock_script)
        return self

    def set_unlock_script(self, index: int, unlock_script) -> "ComposeAsset":
        _check_index(index, len(self.inputs), "input")
        self.inputs[index] = self.inputs[index].set_unlock_script(unlock_script)
        return self

    def inner_encode_object(self) -> list:
        return self._inner(self.inputs)

    def _inner(self, inputs) -> list:
        return [
            self.TAG,
            encode_text(self.network_id),
            self.shard_id,
            encode_text(self.metadata),
            _optional_account(self.approver),
            _optional_account(self.registrar),
            [h.to_encode_object() for h in self.allowed_script_hashes],
            [i.to_encode_object() for i in inputs],
            self.output.lock_script_hash.to_encode_object(),
            list(self.output.parameters),
            self.output.supply.to_encode_object(),
        ]

    def hash_without_script(self, tag: SignatureTag = ALL_ALL, index: Optional[int] = None) -> H256:
        if tag.get("output") != SIGN_OUTPUT_ALL:
            raise MalformedInput(f"Unexpected value of the tag output: {tag.get('output')!r}")
        if tag.get("input") == SIGN_INPUT_ALL:
            inputs = [i.without_script() for i in self.inputs]
        elif tag.get("input") == SIGN_INPUT_SINGLE:
            _check_index(index, len(self.inputs), "input")
            inputs = [self.inputs[index].without_script()]
        else:
            raise MalformedInput(f"Unexpected value of the tag input: {tag.get('input')!r}")
        return _hash_with_tag(self._inner(inputs), tag)

    def get_asset_type(self) -> H160:
        return H160(blake160(self.tracker().to_bytes()))

    def get_asset_address(self) -> H256:
        return _shard_address(self.tracker(), self.shard_id, CFG.ASSET_ADDRESS_KEY)

    def get_composed_asset(self) -> Asset:
        return Asset(self.get_asset_type(), self.shard_id, self.output.lock_script_hash,
                     self.output.parameters, self.output.supply, self.tracker(), 0)

    def action_to_json(self) -> dict:
        return {
            "shardId": self.shard_id,
            "metadata": self.metadata,
            "approver": _address_json(self.approver),
            "registrar": _address_json(self.registrar),
            "allowedScriptHashes": [h.to_json() for h in self.allowed_script_hashes],
            "inputs": [i.to_json() for i in self.inputs],
            "output": self.output.to_json(),
            "approvals": self._approvals_json(),
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        (_tag, _net, shard_id, metadata, approver, registrar, allowed, inputs, lsh, params, supply,
         approvals) = expect_fields(action, 12, "ComposeAsset")
        output = AssetMintOutput(H160(decode_rlp_bytes(lsh)), decode_parameters(params), decode_rlp_int(supply))
        return cls(network_id, decode_u16(shard_id), decode_text(metadata), output,
                   inputs=[AssetTransferInput.from_encode_object(i) for i in decode_rlp_list(inputs)],
                   approver=optional_account(approver, network_id),
                   registrar=optional_account(registrar, network_id),
                   allowed_script_hashes=_decode_hashes(allowed),
                   approvals=_decode_approvals(approvals))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(network_id, json_field(action, "shardId"), json_field(action, "metadata"),
                   AssetMintOutput.from_json(json_field(action, "output")),
                   inputs=[AssetTransferInput.from_json(i) for i in action.get("inputs", [])],
                   approver=action.get("approver"), registrar=action.get("registrar"),
                   allowed_script_hashes=action.get("allowedScriptHashes"),
                   approvals=action.get("approvals"))


class DecomposeAsset(AssetTransaction):
    """Spends a composed asset back into its parts."""

    TYPE = "decomposeAsset"
    TAG = 0x17

    def __init__(self, network_id: str, input_, outputs=None, approvals=None):
        super().__init__(network_id, approvals)
        self.input = _as_input(input_)
        self.outputs: List[AssetTransferOutput] = [_as_output(o) for o in (outputs or [])]

    def add_outputs(self, *outputs) -> "DecomposeAsset":
        items = [_as_output(o) for o in outputs]
        self.outputs.extend(items)
        return self

    def set_lock_script(self, lock_script) -> "DecomposeAsset":
        self.input = self.input.set_lock_script(lock_script)
        return self

    def set_unlock_script(self, unlock_script) -> "DecomposeAsset":
        self.input = self.input.set_unlock_script(unlock_script)
        return self

    def inner_encode_object(self) -> list:
        return self._inner(self.input)

    def _inner(self, input_) -> list:
        return [
            self.TAG,
            encode_text(self.network_id),
            input_.to_encode_object(),
            [o.to_encode_object() for o in self.outputs],
        ]

    def hash_without_script(self) -> H256:
        return _hash_with_tag(self._inner(self.input.without_script()), ALL_ALL)

    def get_transferred_asset(self, index: int) -> Asset:
        _check_index(index, len(self.outputs), "output")
        out = self.outputs[index]
        return Asset(out.asset_type, out.shard_id, out.lock_script_hash, out.parameters, out.quantity,
                     self.tracker(), index)

    def get_transferred_assets(self) -> List[Asset]:
        return [self.get_transferred_asset(i) for i in range(len(self.outputs))]

    def action_to_json(self) -> dict:
        return {
            "input": self.input.to_json(),
            "outputs": [o.to_json() for o in self.outputs],
            "approvals": self._approvals_json(),
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, _net, input_, outputs, approvals = expect_fields(action, 5, "DecomposeAsset")
        return cls(network_id, AssetTransferInput.from_encode_object(input_),
                   [AssetTransferOutput.from_encode_object(o) for o in decode_rlp_list(outputs)],
                   approvals=_decode_approvals(approvals))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(network_id, AssetTransferInput.from_json(json_field(action, "input")),
                   [AssetTransferOutput.from_json(o) for o in action.get("outputs", [])],
                   approvals=action.get("approvals"))


# -----------------------------
# CCC / SHARD STORAGE
# -----------------------------

class UnwrapCCC(AssetTransaction):
    """Burns wrapped CCC in a shard and credits it back to ``receiver``."""

    TYPE = "unwrapCCC"
    TAG = 0x11

    def __init__(self, network_id: str, burn, receiver: Union[PlatformAddress, str], approvals=None):
        super().__init__(network_id, approvals)
        burn = _as_input(burn, "burn")
        if burn.prev_out.asset_type != H160(CFG.WRAPPED_CCC_ASSET_TYPE):
            raise MalformedInput(f"Only wrapped CCC can be unwrapped, got {burn.prev_out.asset_type.value}")
        self.burn = burn
        self.receiver = PlatformAddress.ensure(receiver)

    def set_lock_script(self, lock_script) -> "UnwrapCCC":
        self.burn = self.burn.set_lock_script(lock_script)
        return self

    def set_unlock_script(self, unlock_script) -> "UnwrapCCC":
        self.burn = self.burn.set_unlock_script(unlock_script)
        return self

    def inner_encode_object(self) -> list:
        return self._inner(self.burn)

    def _inner(self, burn) -> list:
        return [
            self.TAG,
            encode_text(self.network_id),
            burn.to_encode_object(),
            self.receiver.account_id.to_encode_object(),
        ]

    def hash_without_script(self) -> H256:
        return _hash_with_tag(self._inner(self.burn.without_script()), ALL_ALL)

    def action_to_json(self) -> dict:
        return {
            "burn": self.burn.to_json(),
            "receiver": self.receiver.to_json(),
            "approvals": self._approvals_json(),
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, _net, burn, receiver, approvals = expect_fields(action, 5, "UnwrapCCC")
        return cls(network_id, AssetTransferInput.from_encode_object(burn), decode_account(receiver, network_id),
                   approvals=_decode_approvals(approvals))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(network_id, AssetTransferInput.from_json(json_field(action, "burn")),
                   json_field(action, "receiver"), approvals=action.get("approvals"))


class ShardStore(AssetTransaction):
    TYPE = "shardStore"
    TAG = 0x19

    def __init__(self, network_id: str, shard_id: int, content: str):
        super().__init__(network_id)
        if not isinstance(content, str):
            raise MalformedInput("content must be a string")
        self.shard_id = ensure_shard_id(shard_id)
        self.content = content

    def inner_encode_object(self) -> list:
        return [self.TAG, encode_text(self.network_id), self.shard_id, encode_text(self.content)]

    def witness_encode_object(self) -> list:
        return []

    def add_approval(self, approval):
        raise InvariantViolation("shardStore transactions carry no approvals")

    def action_to_json(self) -> dict:
        return {"shardId": self.shard_id, "content": self.content}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, _net, shard_id, content = expect_fields(action, 4, "ShardStore")
        return cls(network_id, decode_u16(shard_id), decode_text(content))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(network_id, json_field(action, "shardId"), json_field(action, "content"))


ASSET_TRANSACTION_TYPES = (
    MintAsset, TransferAsset, ChangeAssetScheme, IncreaseAssetSupply,
    ComposeAsset, DecomposeAsset, UnwrapCCC, ShardStore,
)
