# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-P2PKH; CodeChain-Partial-Signing

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from codechain.core.address import AssetAddress, PlatformAddress  # noqa: E402
from codechain.core.asset_io import (AssetMintOutput, AssetOutPoint, AssetTransferInput,  # noqa: E402
                                     AssetTransferOutput)
from codechain.core.asset_tx import ComposeAsset, DecomposeAsset, MintAsset, TransferAsset, UnwrapCCC  # noqa: E402
from codechain.core.order import Order  # noqa: E402
from codechain.core.script import P2PKH_BURN_LOCK_SCRIPT, P2PKH_LOCK_SCRIPT, Script  # noqa: E402
from codechain.utils.errors import ExternalFailure, InvariantViolation, MalformedInput  # noqa: E402
from codechain.utils.helpers import verify_ecdsa  # noqa: E402
from codechain.wallet.keystore import MemoryKeyStore  # noqa: E402
from codechain.wallet.p2pkh import P2PKH, P2PKHBurn  # noqa: E402

TYPE_A = "aa" * 20
TYPE_B = "bb" * 20
WRAPPED_CCC = "00" * 20
TRACKER = "11" * 32
TAKER = AssetAddress(1, "02" * 20, "tc")
RECEIVER = PlatformAddress("03" * 20, "tc")


def _locked_input(address, asset_type=TYPE_A, quantity=10, index=0):
    lsh, params = address.decompose()
    return AssetTransferInput(AssetOutPoint(TRACKER, index, asset_type, 0, quantity,
                                            lock_script_hash=lsh, parameters=params))


def _signer(cls=P2PKH, passphrase=""):
    signer = cls(MemoryKeyStore(), "tc")
    return signer, signer.create_address(passphrase)


def _unlock_parts(item):
    tokens = item.unlock_script.tokenize()
    assert tokens[0::2] == ["PUSHB", "PUSHB", "PUSHB"]
    return tokens[1][2:].lower(), tokens[3], tokens[5][2:].lower()


def test_create_address_uses_key_id():
    signer, address = _signer()
    assert address.type == 1
    key = address.payload.value
    assert signer.keystore.asset.get_key_list() == [key]
    assert signer.get_lock_script() == Script(P2PKH_LOCK_SCRIPT)


def test_sign_transfer_input():
    signer, address = _signer(passphrase="pw")
    tx = TransferAsset("tc", inputs=[_locked_input(address)],
                       outputs=[AssetTransferOutput(TYPE_A, 0, 10, recipient=TAKER)])
    assert signer.sign_input(tx, 0, passphrase="pw") is tx

    item = tx.inputs[0]
    assert item.lock_script == Script(P2PKH_LOCK_SCRIPT)
    signature, tag, public = _unlock_parts(item)
    assert tag == "0x03"
    assert public == signer.keystore.asset.get_public_key(address.payload.value)
    assert verify_ecdsa(tx.hash_without_script().to_bytes(), signature, public)


def test_sign_transfer_input_with_partial_tag():
    signer, address = _signer()
    tx = TransferAsset("tc", inputs=[_locked_input(TAKER), _locked_input(address, index=1)],
                       outputs=[AssetTransferOutput(TYPE_A, 0, 20, recipient=TAKER)])
    tag = {"input": "single", "output": [0]}
    signer.sign_input(tx, 1, tag)
    signature, encoded_tag, public = _unlock_parts(tx.inputs[1])
    assert encoded_tag == "0x0106"
    message = tx.hash_without_script(tag, "input", 1)
    assert verify_ecdsa(message.to_bytes(), signature, public)
    assert tx.inputs[0].unlock_script.data == b""


def test_sign_input_failures_leave_tx_untouched():
    signer, address = _signer(passphrase="pw")
    tx = TransferAsset("tc", inputs=[_locked_input(address), _locked_input(TAKER, index=1)])
    with pytest.raises(ExternalFailure):
        signer.sign_input(tx, 0, passphrase="wrong")
    with pytest.raises(ExternalFailure, match="Unknown asset key"):
        signer.sign_input(tx, 1, passphrase="pw")
    with pytest.raises(InvariantViolation):
        signer.sign_input(tx, 2, passphrase="pw")
    assert all(i.unlock_script.data == b"" for i in tx.inputs)


def test_sign_input_rejects_foreign_lock():
    signer, _ = _signer()
    burn_address = AssetAddress(2, "04" * 20, "tc")
    bare = AssetTransferInput(AssetOutPoint(TRACKER, 0, TYPE_A, 0, 10))
    with pytest.raises(MalformedInput, match="Unexpected lock script hash"):
        signer.sign_input(TransferAsset("tc", inputs=[_locked_input(burn_address)]), 0)
    with pytest.raises(MalformedInput, match="does not carry"):
        signer.sign_input(TransferAsset("tc", inputs=[bare]), 0)


def test_sign_input_refuses_order_covered_input():
    signer, address = _signer()
    tx = TransferAsset(
        "tc",
        inputs=[_locked_input(address)],
        outputs=[AssetTransferOutput(TYPE_A, 0, 6, recipient=address),
                 AssetTransferOutput(TYPE_B, 0, 8, recipient=address)],
    )
    order = Order(TYPE_A, TYPE_B, 10, 20, [tx.inputs[0].prev_out], 2 ** 40, 0, 0,
                  recipient_from=address, recipient_fee=address)
    tx.add_order(order, 4, input_from_indices=[0], output_from_indices=[0], output_to_indices=[1])
    with pytest.raises(InvariantViolation, match="covered by an order"):
        signer.sign_input(tx, 0)


def test_sign_compose_and_decompose():
    signer, address = _signer()
    compose = ComposeAsset("tc", 0, "bundle", AssetMintOutput(recipient=TAKER, supply=1),
                           inputs=[_locked_input(address), _locked_input(TAKER, TYPE_B, index=1)])
    single = {"input": "single", "output": "all"}
    signer.sign_input(compose, 0, single)
    signature, tag, public = _unlock_parts(compose.inputs[0])
    assert tag == "0x02"
    assert verify_ecdsa(compose.hash_without_script(single, 0).to_bytes(), signature, public)

    decompose = DecomposeAsset("tc", _locked_input(address), [AssetTransferOutput(TYPE_B, 0, 1, recipient=TAKER)])
    with pytest.raises(InvariantViolation):
        signer.sign_input(decompose, 0, single)
    signer.sign_input(decompose)
    signature, _, public = _unlock_parts(decompose.input)
    assert verify_ecdsa(decompose.hash_without_script().to_bytes(), signature, public)


def test_sign_input_rejects_transactions_without_inputs():
    signer, address = _signer()
    mint = MintAsset("tc", 0, "", AssetMintOutput(recipient=address, supply=1))
    with pytest.raises(MalformedInput):
        signer.sign_input(mint)


# -----------------------------
# Burns
# -----------------------------

def test_burn_signer_fills_transfer_burn():
    signer, address = _signer(P2PKHBurn)
    assert address.type == 2
    tx = TransferAsset("tc", burns=[_locked_input(address)])
    signer.sign_burn(tx, 0)
    assert tx.burns[0].lock_script == Script(P2PKH_BURN_LOCK_SCRIPT)
    signature, tag, public = _unlock_parts(tx.burns[0])
    assert tag == "0x03"
    assert verify_ecdsa(tx.hash_without_script().to_bytes(), signature, public)
    with pytest.raises(InvariantViolation):
        signer.sign_input(tx, 0)


def test_burn_signer_fills_unwrap():
    signer, address = _signer(P2PKHBurn)
    tx = UnwrapCCC("tc", _locked_input(address, WRAPPED_CCC, 500), RECEIVER)
    tracker = tx.tracker()
    signer.sign_burn(tx)
    signature, _, public = _unlock_parts(tx.burn)
    assert verify_ecdsa(tx.hash_without_script().to_bytes(), signature, public)
    assert tx.tracker() != tracker
    with pytest.raises(InvariantViolation):
        signer.sign_burn(tx, 1)
