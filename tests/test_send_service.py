# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-RPC

import json
import os
import sys

import httpx
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from codechain.core.address import AssetAddress, PlatformAddress  # noqa: E402
from codechain.core.asset_io import AssetOutPoint, AssetTransferInput, AssetTransferOutput  # noqa: E402
from codechain.core.asset_tx import TransferAsset  # noqa: E402
from codechain.core.order import Order  # noqa: E402
from codechain.core.primitives import H160, H256  # noqa: E402
from codechain.core.transaction import Pay  # noqa: E402
from codechain.utils.errors import ExternalFailure, InvariantViolation, MalformedInput  # noqa: E402
from codechain.wallet.keystore import MemoryKeyStore  # noqa: E402
from codechain.wallet.rpc_client import NodeClient  # noqa: E402
from codechain.wallet.send_service import SendService  # noqa: E402

SECRET = "ede1d4ccb4ec9a8bbbae9a13db3f4a7b56ea04189be86ac3a6a439d9a0a1addd"
TX_HASH = "cd" * 32
HOLDER = AssetAddress(1, "01" * 20, "tc")


class ScriptedNode:
    """Pops one queued result per call; the last result of a method repeats."""

    def __init__(self, queues=None):
        self.queues = {k: list(v) for k, v in (queues or {}).items()}
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        self.calls.append((method, body["params"]))
        queue = self.queues.get(method, [None])
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def _service(node, passphrase=""):
    keystore = MemoryKeyStore()
    key = keystore.platform.import_raw_key(SECRET, passphrase)
    client = NodeClient("http://node.test/", transport=httpx.MockTransport(node))
    return SendService(client, keystore), key


def _pay():
    return Pay(PlatformAddress(H160.zero(), "tc"), 11, "tc")


def test_sign_fetches_seq_from_node():
    node = ScriptedNode({"chain_getSeq": [5]})
    service, key = _service(node)
    signed = service.sign_transaction(_pay(), key, fee=10)
    assert signed.unsigned.seq() == 5
    assert int(signed.unsigned.fee()) == 10
    assert signed.get_signer_account_id().value == key
    assert node.calls == [("chain_getSeq", [PlatformAddress(key, "tc").value, None])]


def test_sign_uses_given_or_bound_seq():
    node = ScriptedNode()
    service, key = _service(node)
    assert service.sign_transaction(_pay(), key, fee=0, seq=9).unsigned.seq() == 9
    assert service.sign_transaction(_pay().set_seq(3), key, fee=0).unsigned.seq() == 3
    assert node.calls == []


def test_sign_matches_direct_signature():
    service, key = _service(ScriptedNode())
    signed = service.sign_transaction(_pay(), key, fee=0, seq=0)
    assert signed == _pay().sign(SECRET, seq=0, fee=0)


def test_sign_rejects_bad_fee_before_binding():
    service, key = _service(ScriptedNode())
    tx = _pay()
    with pytest.raises(MalformedInput):
        service.sign_transaction(tx, key, fee=-1, seq=0)
    assert tx.seq() is None
    assert tx.fee() is None


def test_sign_with_wrong_passphrase_leaves_tx_untouched():
    service, key = _service(ScriptedNode(), passphrase="pw")
    tx = _pay()
    with pytest.raises(ExternalFailure):
        service.sign_transaction(tx, key, fee=10, seq=0, passphrase="nope")
    assert tx.seq() is None
    assert tx.fee() is None

    bound = _pay().set_seq(4)
    with pytest.raises(ExternalFailure):
        service.sign_transaction(bound, "ee" * 20, fee=10)
    assert bound.seq() == 4
    assert bound.fee() is None
    assert service.sign_transaction(tx, key, fee=10, seq=0, passphrase="pw").unsigned.seq() == 0


def test_sign_runs_order_checks_before_binding():
    service, key = _service(ScriptedNode())
    out = AssetOutPoint("11" * 32, 0, "bb" * 20, 0, 10)
    order = Order("aa" * 20, "bb" * 20, 10, 20, [out], 2 ** 40, 0, 0,
                  recipient_from=HOLDER, recipient_fee=HOLDER)
    tx = TransferAsset("tc", inputs=[AssetTransferInput(out)],
                       outputs=[AssetTransferOutput("aa" * 20, 0, 6, recipient=HOLDER),
                                AssetTransferOutput("bb" * 20, 0, 8, recipient=HOLDER)])
    tx.add_order(order, 4, input_from_indices=[0], output_from_indices=[0], output_to_indices=[1])
    with pytest.raises(InvariantViolation, match="does not hold the asset"):
        service.sign_transaction(tx, key, fee=10, seq=0)
    assert tx.seq() is None
    assert tx.fee() is None


def test_sign_and_send():
    expected = _pay().sign(SECRET, seq=1, fee=10)
    node = ScriptedNode({"chain_sendSignedTransaction": [expected.hash().to_json()]})
    service, key = _service(node)
    assert service.sign_and_send(_pay(), key, fee=10, seq=1) == expected.hash()
    assert node.calls == [("chain_sendSignedTransaction", ["0x" + expected.rlp_bytes().hex()])]


def test_wait_for_inclusion_polls_until_found():
    node = ScriptedNode({"chain_containTransaction": [False, False, True]})
    service, _ = _service(node)
    assert service.wait_for_inclusion(TX_HASH, timeout=5, interval=0) is True
    assert len(node.calls) == 3
    assert node.calls[0] == ("chain_containTransaction", [H256(TX_HASH).to_json()])


def test_wait_for_inclusion_times_out():
    service, _ = _service(ScriptedNode({"chain_containTransaction": [False]}))
    with pytest.raises(ExternalFailure, match="not included"):
        service.wait_for_inclusion(TX_HASH, timeout=0, interval=0)
