# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Transaction-Format; SEC1-PubKeyRecovery
"""A transaction wrapped with its owner's signature.

``hash()`` covers the full encoding, approvals and signature included, and is
what the node indexes transactions by. ``tracker()`` is delegated to the
inner transaction and does not change when approvals are added.
"""
from __future__ import annotations

from typing import Optional

from ..utils import config as CFG
from ..utils.errors import MalformedInput
from ..utils.helpers import blake160, blake256, recover_ecdsa, rlp_encode, to_bytes
from .address import PlatformAddress
from .primitives import H160, H256, H512


def check_signature(signature) -> str:
    """65-byte r||s||v signature, returned as lowercase hex without prefix."""
    raw = to_bytes(signature)
    if len(raw) != CFG.SIGNATURE_LENGTH:
        raise MalformedInput(f"Signature must be {CFG.SIGNATURE_LENGTH} bytes, got {len(raw)}")
    return raw.hex()


class SignedTransaction:
    def __init__(self, unsigned, signature, block_number: Optional[int] = None,
                 block_hash=None, transaction_index: Optional[int] = None):
        self.unsigned = unsigned
        self._signature = check_signature(signature)
        self.block_number = block_number
        self.block_hash = H256.ensure(block_hash) if block_hash is not None else None
        self.transaction_index = transaction_index

    def signature(self) -> str:
        return self._signature

    def to_encode_object(self) -> list:
        return self.unsigned.unsigned_encode() + [bytes.fromhex(self._signature)]

    def rlp_bytes(self) -> bytes:
        return rlp_encode(self.to_encode_object())

    def hash(self) -> H256:
        return H256(blake256(self.rlp_bytes()))

    def tracker(self) -> H256:
        return self.unsigned.tracker()

    # -------- Signer ----------

    def get_signer_public(self) -> H512:
        digest = self.unsigned.unsigned_hash()
        return H512(recover_ecdsa(digest.to_bytes(), self._signature))

    def get_signer_account_id(self) -> H160:
        return H160(blake160(self.get_signer_public().to_bytes()))

    def get_signer_address(self, network_id: Optional[str] = None) -> PlatformAddress:
        return PlatformAddress(self.get_signer_account_id(), network_id or self.unsigned.network_id)

    # -------- Serde ----------

    def to_json(self) -> dict:
        data = self.unsigned.to_json()
        data.update({
            "sig": "0x" + self._signature,
            "hash": self.hash().to_json(),
            "blockNumber": self.block_number,
            "blockHash": self.block_hash.to_json() if self.block_hash is not None else None,
            "transactionIndex": self.transaction_index,
        })
        return data

    def __eq__(self, other):
        if not isinstance(other, SignedTransaction):
            return NotImplemented
        return self.to_json() == other.to_json()

    __hash__ = None

    def __repr__(self):
        return f"<SignedTransaction {self.unsigned.type()} {self.hash().value}>"
