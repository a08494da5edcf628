# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Transaction-Format; Ethereum-RLP
"""Unsigned transactions and the platform-level actions.

A transaction is ``[seq, fee, networkId, action]`` where ``action`` is a list
whose first element is the action tag. ``seq`` and ``fee`` are bound late,
either directly or by ``sign``; encoding an unsigned transaction without them
is an error.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Union

from ..utils.cc_logging import get_ctx_logger
from ..utils.errors import InvariantViolation, MalformedInput
from ..utils.helpers import (blake256, decode_rlp_bytes, decode_rlp_int, decode_rlp_list, get_public_from_private,
                             rlp_encode, sign_ecdsa, to_bytes)
from .address import PlatformAddress, check_network_id
from .asset import Asset
from .asset_io import decode_parameters, decode_u16, expect_fields, json_field, lock_target
from .primitives import H160, H256, H512, U64, ensure_shard_id, parameters_to_json
from .signed_tx import SignedTransaction, check_signature

log = get_ctx_logger("codechain.core(transaction)")


def ensure_seq(seq) -> int:
    if isinstance(seq, bool) or not isinstance(seq, int) or seq < 0:
        raise MalformedInput(f"Invalid seq: {seq!r}")
    return seq


def encode_text(text: str) -> bytes:
    return text.encode("utf-8")


def decode_text(item) -> str:
    try:
        return decode_rlp_bytes(item).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInput("Expected UTF-8 text in RLP field") from exc


def decode_account(item, network_id: str) -> PlatformAddress:
    return PlatformAddress(H160(decode_rlp_bytes(item)), network_id)


def decode_accounts(item, network_id: str) -> List[PlatformAddress]:
    return [decode_account(a, network_id) for a in decode_rlp_list(item)]


def optional_account(item, network_id: str) -> Optional[PlatformAddress]:
    """``[]`` or ``[accountId]`` as used for approver and registrar."""
    items = decode_rlp_list(item)
    if len(items) > 1:
        raise MalformedInput("Expected at most one account id")
    return decode_account(items[0], network_id) if items else None


class Transaction:
    TYPE = ""
    TAG = -1

    def __init__(self, network_id: str):
        self._network_id = check_network_id(network_id)
        self._seq: Optional[int] = None
        self._fee: Optional[U64] = None

    # -------- Envelope ----------

    @property
    def network_id(self) -> str:
        return self._network_id

    def seq(self) -> Optional[int]:
        return self._seq

    def fee(self) -> Optional[U64]:
        return self._fee

    def set_seq(self, seq: int) -> "Transaction":
        self._seq = ensure_seq(seq)
        return self

    def set_fee(self, fee) -> "Transaction":
        self._fee = U64.ensure(fee)
        return self

    def type(self) -> str:
        return self.TYPE

    def tracker(self) -> H256:
        raise InvariantViolation(f"{self.TYPE} transaction has no tracker")

    # -------- Action (per variant) ----------

    def action_to_encode_object(self) -> list:
        raise NotImplementedError

    def action_to_json(self) -> dict:
        raise NotImplementedError

    @classmethod
    def from_action_encode_object(cls, action: list, network_id: str) -> "Transaction":
        raise NotImplementedError

    @classmethod
    def from_action_json(cls, action: dict, network_id: str) -> "Transaction":
        raise NotImplementedError

    # -------- Encoding ----------

    def unsigned_encode(self) -> list:
        if self._seq is None or self._fee is None:
            raise InvariantViolation("Seq and fee in the tx must be present")
        return self._envelope(self._seq, self._fee)

    def _envelope(self, seq: int, fee: U64) -> list:
        return [
            seq,
            fee.to_encode_object(),
            encode_text(self._network_id),
            self.action_to_encode_object(),
        ]

    def rlp_bytes(self) -> bytes:
        return rlp_encode(self.unsigned_encode())

    def unsigned_hash(self) -> H256:
        return H256(blake256(self.rlp_bytes()))

    def signing_hash(self, seq: int, fee) -> H256:
        """The unsigned hash this tx would have with ``seq`` and ``fee``, leaving both unbound."""
        return H256(blake256(rlp_encode(self._envelope(ensure_seq(seq), U64.ensure(fee)))))

    def check_build(self) -> "Transaction":
        """Raise InvariantViolation when the action is not ready to be signed."""
        return self

    def sign(self, secret, seq: int, fee) -> SignedTransaction:
        if self._seq is not None:
            raise InvariantViolation("The tx seq is already set")
        if self._fee is not None:
            raise InvariantViolation("The tx fee is already set")
        seq, fee = ensure_seq(seq), U64.ensure(fee)
        self.check_build()
        digest = self.signing_hash(seq, fee)
        signature = sign_ecdsa(digest.to_bytes(), secret)
        self._seq, self._fee = seq, fee
        log.debug("signing %s tx seq=%s fee=%s hash=%s", self.TYPE, seq, fee, digest.value)
        return SignedTransaction(self, signature)

    def to_json(self) -> dict:
        action = {"type": self.TYPE}
        action.update(self.action_to_json())
        return {
            "type": self.TYPE,
            "action": action,
            "networkId": self._network_id,
            "seq": self._seq,
            "fee": self._fee.to_json() if self._fee is not None else None,
        }

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.to_json() == other.to_json()

    __hash__ = None

    def __repr__(self):
        return f"<{type(self).__name__} network={self._network_id} seq={self._seq} fee={self._fee}>"


# -----------------------------
# PLATFORM ACTIONS
# -----------------------------

class Pay(Transaction):
    TYPE = "pay"
    TAG = 0x02

    def __init__(self, receiver: Union[PlatformAddress, str], quantity, network_id: str):
        super().__init__(network_id)
        self.receiver = PlatformAddress.ensure(receiver)
        self.quantity = U64.ensure(quantity)

    def action_to_encode_object(self) -> list:
        return [self.TAG, self.receiver.account_id.to_encode_object(), self.quantity.to_encode_object()]

    def action_to_json(self) -> dict:
        return {"receiver": self.receiver.to_json(), "quantity": self.quantity.to_json()}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, receiver, quantity = expect_fields(action, 3, "Pay")
        return cls(decode_account(receiver, network_id), decode_rlp_int(quantity), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "receiver"), U64.from_json(json_field(action, "quantity")), network_id)


class SetRegularKey(Transaction):
    TYPE = "setRegularKey"
    TAG = 0x03

    def __init__(self, key, network_id: str):
        super().__init__(network_id)
        self.key = H512.ensure(key)

    def action_to_encode_object(self) -> list:
        return [self.TAG, self.key.to_encode_object()]

    def action_to_json(self) -> dict:
        return {"key": self.key.to_json()}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, key = expect_fields(action, 2, "SetRegularKey")
        return cls(H512(decode_rlp_bytes(key)), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "key"), network_id)


class CreateShard(Transaction):
    TYPE = "createShard"
    TAG = 0x04

    def __init__(self, users: Sequence[Union[PlatformAddress, str]], network_id: str):
        super().__init__(network_id)
        self.users = [PlatformAddress.ensure(u) for u in users]

    def action_to_encode_object(self) -> list:
        return [self.TAG, [u.account_id.to_encode_object() for u in self.users]]

    def action_to_json(self) -> dict:
        return {"users": [u.to_json() for u in self.users]}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, users = expect_fields(action, 2, "CreateShard")
        return cls(decode_accounts(users, network_id), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "users"), network_id)


class SetShardOwners(Transaction):
    TYPE = "setShardOwners"
    TAG = 0x05

    def __init__(self, shard_id: int, owners: Sequence[Union[PlatformAddress, str]], network_id: str):
        super().__init__(network_id)
        self.shard_id = ensure_shard_id(shard_id)
        self.owners = [PlatformAddress.ensure(o) for o in owners]

    def action_to_encode_object(self) -> list:
        return [self.TAG, self.shard_id, [o.account_id.to_encode_object() for o in self.owners]]

    def action_to_json(self) -> dict:
        return {"shardId": self.shard_id, "owners": [o.to_json() for o in self.owners]}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, shard_id, owners = expect_fields(action, 3, "SetShardOwners")
        return cls(decode_u16(shard_id), decode_accounts(owners, network_id), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "shardId"), json_field(action, "owners"), network_id)


class SetShardUsers(Transaction):
    TYPE = "setShardUsers"
    TAG = 0x06

    def __init__(self, shard_id: int, users: Sequence[Union[PlatformAddress, str]], network_id: str):
        super().__init__(network_id)
        self.shard_id = ensure_shard_id(shard_id)
        self.users = [PlatformAddress.ensure(u) for u in users]

    def action_to_encode_object(self) -> list:
        return [self.TAG, self.shard_id, [u.account_id.to_encode_object() for u in self.users]]

    def action_to_json(self) -> dict:
        return {"shardId": self.shard_id, "users": [u.to_json() for u in self.users]}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, shard_id, users = expect_fields(action, 3, "SetShardUsers")
        return cls(decode_u16(shard_id), decode_accounts(users, network_id), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "shardId"), json_field(action, "users"), network_id)


class WrapCCC(Transaction):
    """Moves CCC from an account into a shard as an asset of the all-zero type."""

    TYPE = "wrapCCC"
    TAG = 0x07

    def __init__(self, shard_id: int, quantity, payer: Union[PlatformAddress, str], network_id: str,
                 lock_script_hash=None, parameters=None, recipient=None):
        super().__init__(network_id)
        self.lock_script_hash, self.parameters = lock_target(lock_script_hash, parameters, recipient)
        self.shard_id = ensure_shard_id(shard_id)
        self.quantity = U64.ensure(quantity)
        self.payer = PlatformAddress.ensure(payer)

    def tracker(self) -> H256:
        return self.unsigned_hash()

    def get_asset(self) -> Asset:
        return Asset(H160.zero(), self.shard_id, self.lock_script_hash, self.parameters,
                     self.quantity, self.tracker(), 0)

    def action_to_encode_object(self) -> list:
        return [
            self.TAG,
            self.shard_id,
            self.lock_script_hash.to_encode_object(),
            list(self.parameters),
            self.quantity.to_encode_object(),
            self.payer.account_id.to_encode_object(),
        ]

    def action_to_json(self) -> dict:
        return {
            "shardId": self.shard_id,
            "lockScriptHash": self.lock_script_hash.to_json(),
            "parameters": parameters_to_json(self.parameters),
            "quantity": self.quantity.to_json(),
            "payer": self.payer.to_json(),
        }

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, shard_id, lsh, params, quantity, payer = expect_fields(action, 6, "WrapCCC")
        return cls(decode_u16(shard_id), decode_rlp_int(quantity), decode_account(payer, network_id), network_id,
                   lock_script_hash=H160(decode_rlp_bytes(lsh)), parameters=decode_parameters(params))

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "shardId"), U64.from_json(json_field(action, "quantity")),
                   json_field(action, "payer"), network_id,
                   lock_script_hash=json_field(action, "lockScriptHash"),
                   parameters=json_field(action, "parameters"))


class Store(Transaction):
    """Text stored on chain, certified by a signature over blake256(rlp(content))."""

    TYPE = "store"
    TAG = 0x08

    def __init__(self, content: str, certifier: Union[PlatformAddress, str], signature, network_id: str):
        super().__init__(network_id)
        if not isinstance(content, str):
            raise MalformedInput("Store content must be a string")
        self.content = content
        self.certifier = PlatformAddress.ensure(certifier)
        self.signature = check_signature(signature)

    @staticmethod
    def content_hash(content: str) -> bytes:
        return blake256(rlp_encode(encode_text(content)))

    @classmethod
    def from_secret(cls, content: str, secret, network_id: str) -> "Store":
        certifier = PlatformAddress.from_public(get_public_from_private(secret), network_id)
        return cls(content, certifier, sign_ecdsa(cls.content_hash(content), secret), network_id)

    def action_to_encode_object(self) -> list:
        return [self.TAG, encode_text(self.content), self.certifier.account_id.to_encode_object(),
                bytes.fromhex(self.signature)]

    def action_to_json(self) -> dict:
        return {"content": self.content, "certifier": self.certifier.to_json(), "signature": "0x" + self.signature}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, content, certifier, signature = expect_fields(action, 4, "Store")
        return cls(decode_text(content), decode_account(certifier, network_id),
                   decode_rlp_bytes(signature), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "content"), json_field(action, "certifier"),
                   json_field(action, "signature"), network_id)


class Remove(Transaction):
    TYPE = "remove"
    TAG = 0x09

    def __init__(self, hash_, signature, network_id: str):
        super().__init__(network_id)
        self.hash = H256.ensure(hash_)
        self.signature = check_signature(signature)

    @classmethod
    def from_secret(cls, hash_, secret, network_id: str) -> "Remove":
        hash_ = H256.ensure(hash_)
        return cls(hash_, sign_ecdsa(hash_.to_bytes(), secret), network_id)

    def action_to_encode_object(self) -> list:
        return [self.TAG, self.hash.to_encode_object(), bytes.fromhex(self.signature)]

    def action_to_json(self) -> dict:
        return {"hash": self.hash.to_json(), "signature": "0x" + self.signature}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, hash_, signature = expect_fields(action, 3, "Remove")
        return cls(H256(decode_rlp_bytes(hash_)), decode_rlp_bytes(signature), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "hash"), json_field(action, "signature"), network_id)


class Custom(Transaction):
    """Opaque payload routed to a node-side handler."""

    TYPE = "custom"
    TAG = 0xFF

    def __init__(self, handler_id: int, payload, network_id: str):
        super().__init__(network_id)
        if isinstance(handler_id, bool) or not isinstance(handler_id, int) or handler_id < 0:
            raise MalformedInput(f"Invalid handler id: {handler_id!r}")
        self.handler_id = handler_id
        self.payload = to_bytes(payload)

    def action_to_encode_object(self) -> list:
        return [self.TAG, self.handler_id, self.payload]

    def action_to_json(self) -> dict:
        return {"handlerId": self.handler_id, "bytes": self.payload.hex()}

    @classmethod
    def from_action_encode_object(cls, action, network_id):
        _tag, handler_id, payload = expect_fields(action, 3, "Custom")
        return cls(decode_rlp_int(handler_id), decode_rlp_bytes(payload), network_id)

    @classmethod
    def from_action_json(cls, action, network_id):
        return cls(json_field(action, "handlerId"), json_field(action, "bytes"), network_id)
