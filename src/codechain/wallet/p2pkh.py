# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-P2PKH; CodeChain-Partial-Signing
"""Pay-to-public-key-hash signers for asset inputs and burns.

The lock script parameter is the key id (blake160 of the owner's public key).
Unlock scripts push the signature, the signature tag and the public key, in
that order.
"""
from __future__ import annotations

from ..core.address import P2PKH_BURN_LOCK_SCRIPT_HASH, P2PKH_LOCK_SCRIPT_HASH, AssetAddress
from ..core.asset_io import AssetTransferInput
from ..core.asset_tx import ComposeAsset, DecomposeAsset, TransferAsset, UnwrapCCC
from ..core.primitives import H256
from ..core.script import P2PKH_BURN_LOCK_SCRIPT, P2PKH_LOCK_SCRIPT, Script
from ..core.signature_tag import ALL_ALL, SignatureTag, encode_signature_tag, is_all_all
from ..utils import config as CFG
from ..utils.errors import InvariantViolation, MalformedInput
from .keystore import KeyStore

# ---------------- Logger ----------------
from ..utils.cc_logging import get_ctx_logger
log = get_ctx_logger("codechain.wallet(p2pkh)")


class P2PKH:
    ADDRESS_TYPE = CFG.ASSET_ADDRESS_TYPE_P2PKH
    LOCK_SCRIPT = P2PKH_LOCK_SCRIPT
    LOCK_SCRIPT_HASH = P2PKH_LOCK_SCRIPT_HASH

    def __init__(self, keystore: KeyStore, network_id: str = CFG.DEFAULT_NETWORK_ID):
        self.keystore = keystore
        self.network_id = network_id

    def create_address(self, passphrase: str = "") -> AssetAddress:
        key = self.keystore.asset.create_key(passphrase)
        return AssetAddress(self.ADDRESS_TYPE, key, self.network_id)

    def get_lock_script(self) -> Script:
        return Script(self.LOCK_SCRIPT)

    def create_unlock_script(self, key: str, message: H256, tag: SignatureTag = ALL_ALL,
                             passphrase: str = "") -> Script:
        signature = self.keystore.asset.sign(key, message.to_bytes(), passphrase)
        public_key = self.keystore.asset.get_public_key(key)
        return Script.concat([
            Script.push_bytes(bytes.fromhex(signature)),
            Script.push_bytes(encode_signature_tag(tag)),
            Script.push_bytes(bytes.fromhex(public_key)),
        ])

    def _key_of(self, item: AssetTransferInput) -> str:
        prev_out = item.prev_out
        if prev_out.lock_script_hash is None or prev_out.parameters is None:
            raise MalformedInput("The input does not carry its lock script hash and parameters")
        if prev_out.lock_script_hash != self.LOCK_SCRIPT_HASH:
            raise MalformedInput(f"Unexpected lock script hash: {prev_out.lock_script_hash.value}")
        if len(prev_out.parameters) != 1:
            raise MalformedInput(f"Unexpected length of parameters: {len(prev_out.parameters)}")
        return prev_out.parameters[0].hex()

    def sign_input(self, tx, index: int = 0, tag: SignatureTag = ALL_ALL, passphrase: str = ""):
        """Fill the lock and unlock scripts of input ``index``. Returns ``tx``."""
        if isinstance(tx, TransferAsset):
            if any(index in o.input_indices() for o in tx.orders):
                raise InvariantViolation(f"The input {index} is already covered by an order")
            if index < 0 or index >= len(tx.inputs):
                raise InvariantViolation(f"Invalid input index: {index}")
            key = self._key_of(tx.inputs[index])
            message = tx.hash_without_script(tag, "input", index)
        elif isinstance(tx, ComposeAsset):
            if index < 0 or index >= len(tx.inputs):
                raise InvariantViolation(f"Invalid input index: {index}")
            key = self._key_of(tx.inputs[index])
            message = tx.hash_without_script(tag, index)
        elif isinstance(tx, DecomposeAsset):
            if index != 0 or not is_all_all(tag):
                raise InvariantViolation("DecomposeAsset has a single input signed with the all/all tag")
            key = self._key_of(tx.input)
            message = tx.hash_without_script()
        else:
            raise MalformedInput(f"{type(tx).__name__} has no inputs to sign")

        unlock = self.create_unlock_script(key, message, tag, passphrase)
        if isinstance(tx, DecomposeAsset):
            tx.set_lock_script(self.get_lock_script()).set_unlock_script(unlock)
        else:
            tx.set_lock_script(index, self.get_lock_script()).set_unlock_script(index, unlock)
        log.debug("signed %s input %d with key %s", tx.TYPE, index, key)
        return tx


class P2PKHBurn(P2PKH):
    ADDRESS_TYPE = CFG.ASSET_ADDRESS_TYPE_P2PKH_BURN
    LOCK_SCRIPT = P2PKH_BURN_LOCK_SCRIPT
    LOCK_SCRIPT_HASH = P2PKH_BURN_LOCK_SCRIPT_HASH

    def sign_input(self, tx, index: int = 0, tag: SignatureTag = ALL_ALL, passphrase: str = ""):
        raise InvariantViolation("P2PKHBurn assets can only be spent as burns")

    def sign_burn(self, tx, index: int = 0, tag: SignatureTag = ALL_ALL, passphrase: str = ""):
        """Fill the lock and unlock scripts of burn ``index``. Returns ``tx``."""
        if isinstance(tx, TransferAsset):
            if index < 0 or index >= len(tx.burns):
                raise InvariantViolation(f"Invalid burn index: {index}")
            key = self._key_of(tx.burns[index])
            message = tx.hash_without_script(tag, "burn", index)
            unlock = self.create_unlock_script(key, message, tag, passphrase)
            tx.set_burn_lock_script(index, self.get_lock_script()).set_burn_unlock_script(index, unlock)
        elif isinstance(tx, UnwrapCCC):
            if index != 0 or not is_all_all(tag):
                raise InvariantViolation("UnwrapCCC has a single burn signed with the all/all tag")
            key = self._key_of(tx.burn)
            unlock = self.create_unlock_script(key, tx.hash_without_script(), tag, passphrase)
            tx.set_lock_script(self.get_lock_script()).set_unlock_script(unlock)
        else:
            raise MalformedInput(f"{type(tx).__name__} has no burns to sign")
        log.debug("signed %s burn %d with key %s", tx.TYPE, index, key)
        return tx
