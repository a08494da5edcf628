# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: see REFERENCES.md
from __future__ import annotations

import time
from typing import Optional

# ---------------- Local Project ----------------
from ..core.address import PlatformAddress
from ..core.primitives import H256, U64
from ..core.signed_tx import SignedTransaction
from ..core.transaction import Transaction, ensure_seq
from ..utils import config as CFG
from ..utils.errors import ExternalFailure, InvariantViolation
from ..utils.helpers import get_account_id_from_public, recover_ecdsa
from .keystore import KeyStore
from .rpc_client import NodeClient

# ---------------- Logger ----------------
from ..utils.cc_logging import get_ctx_logger
log = get_ctx_logger("codechain.wallet(send_service)")


class SendService:
    def __init__(self, client: NodeClient, keystore: KeyStore):
        self.client = client
        self.keystore = keystore

    def sign_transaction(self, tx: Transaction, key: str, fee, seq: Optional[int] = None,
                         passphrase: str = "") -> SignedTransaction:
        """Bind seq and fee, then sign with platform key ``key``.

        When neither ``seq`` nor the transaction carries one, the next seq of the
        signer's account is fetched from the node.
        """
        if seq is None:
            seq = tx.seq()
        if seq is None:
            seq = self.client.get_seq(PlatformAddress(key, tx.network_id))
        seq, fee = ensure_seq(seq), U64.ensure(fee)
        tx.check_build()
        digest = tx.signing_hash(seq, fee)
        signature = self.keystore.platform.sign(key, digest.to_bytes(), passphrase)
        if get_account_id_from_public(recover_ecdsa(digest.to_bytes(), signature)) != key.lower():
            raise InvariantViolation("The signature does not recover to the signing key")
        signed = SignedTransaction(tx.set_seq(seq).set_fee(fee), signature)
        log.debug("signed %s seq=%d fee=%s hash=%s", tx.TYPE, seq, fee, signed.hash().value)
        return signed

    def send(self, signed: SignedTransaction) -> H256:
        tx_hash = self.client.send_signed_transaction(signed)
        log.info("submitted %s tx %s", signed.unsigned.TYPE, tx_hash.value)
        return tx_hash

    def sign_and_send(self, tx: Transaction, key: str, fee, seq: Optional[int] = None,
                      passphrase: str = "") -> H256:
        return self.send(self.sign_transaction(tx, key, fee, seq=seq, passphrase=passphrase))

    def wait_for_inclusion(self, tx_hash, timeout: float = CFG.RPC_POLL_TIMEOUT,
                           interval: float = CFG.RPC_POLL_INTERVAL) -> bool:
        """Poll ``contains_transaction`` until it is true or ``timeout`` seconds pass."""
        tx_hash = H256.ensure(tx_hash)
        deadline = time.monotonic() + timeout
        while True:
            if self.client.contains_transaction(tx_hash):
                log.info("tx %s included", tx_hash.value)
                return True
            if time.monotonic() >= deadline:
                raise ExternalFailure(f"Transaction {tx_hash.value} was not included within {timeout}s")
            time.sleep(interval)
