# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Transaction-Format; Ethereum-RLP; SEC1-PubKeyRecovery

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from codechain.core.address import AssetAddress, PlatformAddress  # noqa: E402
from codechain.core.json_codec import (decode_signed_transaction, decode_transaction,  # noqa: E402
                                       from_json_to_signed_transaction, from_json_to_transaction)
from codechain.core.primitives import H160, H256  # noqa: E402
from codechain.core.signed_tx import SignedTransaction  # noqa: E402
from codechain.core.transaction import (CreateShard, Custom, Pay, Remove, SetRegularKey,  # noqa: E402
                                        SetShardOwners, SetShardUsers, Store, WrapCCC)
from codechain.utils.errors import InvariantViolation, MalformedInput  # noqa: E402
from codechain.utils.helpers import (get_account_id_from_private, get_public_from_private,  # noqa: E402
                                     recover_ecdsa, sign_ecdsa, verify_ecdsa)

SECRET = "ede1d4ccb4ec9a8bbbae9a13db3f4a7b56ea04189be86ac3a6a439d9a0a1addd"
OTHER_SECRET = "ee" * 32
ZERO_RECEIVER = PlatformAddress(H160.zero(), "tc")


def _pay(quantity=11):
    return Pay(ZERO_RECEIVER, quantity, "tc")


def _signer_address(secret=SECRET, network_id="tc"):
    return PlatformAddress(get_account_id_from_private(secret), network_id)


# -----------------------------
# Pay known answers
# -----------------------------

def test_pay_rlp_bytes():
    tx = _pay().set_seq(0).set_fee(0)
    expected = bytes([221, 128, 128, 130, 116, 99, 215, 2, 148]) + bytes(20) + bytes([11])
    assert tx.rlp_bytes() == expected


def test_pay_unsigned_hash():
    tx = _pay().set_seq(0).set_fee(0)
    assert tx.unsigned_hash() == H256("3b578bebb32cae770ab1094d572a4721b624fc101bb88fbc580eeb2931f65665")


def test_pay_signature_and_signed_hash():
    signed = _pay().sign(SECRET, seq=0, fee=0)
    assert signed.signature() == (
        "3f9bcff484bd5f1d5549f912f9eeaf8c2fe349b257bde2b61fb1036013d4e44c"
        "204a4215d26cb879eaad2028fe1a7898e4cf9a5d979eb383e0a384140d6e04c101"
    )
    assert signed.hash() == H256("6547527d42f407352b8d23470322e09261d6dee6fda43c10aa2f59aafa70ba4b")


def test_signer_is_recovered_from_signature():
    signed = _pay().sign(SECRET, seq=3, fee=10)
    assert signed.get_signer_public().value == get_public_from_private(SECRET)
    assert signed.get_signer_address() == _signer_address()


def test_unsigned_encoding_requires_seq_and_fee():
    with pytest.raises(InvariantViolation, match="Seq and fee"):
        _pay().rlp_bytes()
    with pytest.raises(InvariantViolation):
        _pay().set_seq(0).unsigned_hash()


def test_sign_refuses_already_bound_seq_or_fee():
    with pytest.raises(InvariantViolation, match="seq is already set"):
        _pay().set_seq(1).sign(SECRET, seq=1, fee=0)
    with pytest.raises(InvariantViolation, match="fee is already set"):
        _pay().set_fee(1).sign(SECRET, seq=1, fee=0)


def test_failed_sign_leaves_seq_and_fee_unbound():
    tx = _pay()
    with pytest.raises(MalformedInput):
        tx.sign(SECRET, seq=0, fee=-1)
    with pytest.raises(MalformedInput):
        tx.sign(SECRET, seq=-1, fee=10)
    with pytest.raises(MalformedInput):
        tx.sign("00" * 32, seq=0, fee=10)
    assert tx.seq() is None
    assert tx.fee() is None
    assert tx.sign(SECRET, seq=0, fee=10) == _pay().sign(SECRET, seq=0, fee=10)


def test_platform_transactions_have_no_tracker():
    with pytest.raises(InvariantViolation):
        _pay().tracker()


def test_invalid_seq_and_signature():
    with pytest.raises(MalformedInput):
        _pay().set_seq(-1)
    with pytest.raises(MalformedInput):
        SignedTransaction(_pay().set_seq(0).set_fee(0), "00" * 64)


# -----------------------------
# ECDSA helpers
# -----------------------------

def test_sign_recover_verify():
    digest = bytes(range(32))
    sig = sign_ecdsa(digest, OTHER_SECRET)
    assert len(bytes.fromhex(sig)) == 65
    assert bytes.fromhex(sig)[64] in (0, 1)
    assert recover_ecdsa(digest, sig) == get_public_from_private(OTHER_SECRET)
    assert verify_ecdsa(digest, sig, get_public_from_private(OTHER_SECRET))
    assert not verify_ecdsa(bytes(32), sig, get_public_from_private(OTHER_SECRET))
    assert sign_ecdsa(digest, OTHER_SECRET) == sig


def test_sign_requires_32_byte_digest():
    with pytest.raises(MalformedInput):
        sign_ecdsa(b"short", OTHER_SECRET)


# -----------------------------
# JSON and binary round trips
# -----------------------------

def _platform_transactions():
    owner = _signer_address()
    other = _signer_address(OTHER_SECRET)
    return [
        _pay(),
        SetRegularKey(get_public_from_private(OTHER_SECRET), "tc"),
        CreateShard([owner, other], "tc"),
        SetShardOwners(3, [owner], "tc"),
        SetShardUsers(3, [owner, other], "tc"),
        WrapCCC(0, 1000, owner, "tc", recipient=AssetAddress(1, owner.account_id, "tc")),
        Store.from_secret("hello, chain", SECRET, "tc"),
        Remove.from_secret("ab" * 32, SECRET, "tc"),
        Custom(2, b"\x01\x02\x03", "tc"),
    ]


@pytest.mark.parametrize("tx", _platform_transactions(), ids=lambda tx: tx.TYPE)
def test_platform_transaction_json_round_trip(tx):
    tx.set_seq(44).set_fee(33)
    assert from_json_to_transaction(tx.to_json()) == tx


@pytest.mark.parametrize("tx", _platform_transactions(), ids=lambda tx: tx.TYPE)
def test_platform_transaction_binary_round_trip(tx):
    signed = tx.sign(SECRET, seq=7, fee=100)
    decoded = decode_signed_transaction(signed.rlp_bytes())
    assert decoded == signed
    assert decoded.hash() == signed.hash()
    assert decode_transaction(tx.rlp_bytes()) == tx


def test_signed_json_checks_hash():
    signed = _pay().sign(SECRET, seq=0, fee=0)
    data = signed.to_json()
    assert from_json_to_signed_transaction(data) == signed
    data["hash"] = "0x" + "00" * 32
    with pytest.raises(MalformedInput, match="hash mismatch"):
        from_json_to_signed_transaction(data)


def test_unknown_action_type_or_tag():
    data = _pay().set_seq(0).set_fee(0).to_json()
    data["action"]["type"] = "mint"
    with pytest.raises(MalformedInput):
        from_json_to_transaction(data)
    with pytest.raises(MalformedInput):
        decode_transaction(bytes([0xC7, 0x80, 0x80, 0x82, 0x74, 0x63, 0xC1, 0x42]))


def test_store_certifier_signature():
    store = Store.from_secret("content", SECRET, "tc")
    assert store.certifier == _signer_address()
    assert verify_ecdsa(Store.content_hash("content"), store.signature, get_public_from_private(SECRET))


def test_wrap_ccc_tracker_is_unsigned_hash():
    owner = _signer_address()
    tx = WrapCCC(1, 500, owner, "tc", recipient=AssetAddress(1, owner.account_id, "tc"))
    tx.set_seq(0).set_fee(10)
    assert tx.tracker() == tx.unsigned_hash()
    asset = tx.get_asset()
    assert asset.asset_type == H160.zero()
    assert asset.shard_id == 1
    assert int(asset.quantity) == 500
    assert asset.parameters == [owner.account_id.to_bytes()]
