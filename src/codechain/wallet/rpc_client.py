# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: JSON-RPC-2.0; CodeChain-RPC

from __future__ import annotations

import itertools, time
from typing import Any, Dict, List, Optional, Union

import httpx

# ---------------- Local Project ----------------
from ..core.address import PlatformAddress
from ..core.asset import Asset, AssetScheme
from ..core.json_codec import from_json_to_signed_transaction
from ..core.primitives import H160, H256, U64
from ..core.signed_tx import SignedTransaction
from ..utils import config as CFG
from ..utils.errors import ExternalFailure

# ---------------- Logger ----------------
from ..utils.cc_logging import get_ctx_logger
log = get_ctx_logger("codechain.wallet(rpc_client)")

_last_log_gate = {}


def _mk_extra(peer=None, rpc=None, req=None):
    return {"peer": peer or "-", "rpc": rpc or "-", "req": req or "-"}

def _throttle(key: str, interval_sec: float) -> bool:
    now = time.time()
    last = _last_log_gate.get(key, 0.0)
    if now - last >= interval_sec:
        _last_log_gate[key] = now
        return True
    return False

def _hex(value) -> str:
    return "0x" + value.value


class NodeClient:
    """Synchronous JSON-RPC 2.0 client for a CodeChain node.

    ``transport`` is handed to ``httpx.Client`` as is, so tests can plug in an
    ``httpx.MockTransport``. Every transport or node error surfaces as
    :class:`ExternalFailure`; nothing is retried here.
    """

    def __init__(self, url: str = CFG.RPC_URL, timeout: float = CFG.RPC_TIMEOUT,
                 transport: Optional[httpx.BaseTransport] = None):
        self.url = url
        self._ids = itertools.count(1)
        self._http = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": CFG.RPC_USER_AGENT},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ----------- Transport -----------
    def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        req_id = next(self._ids)
        payload = {"jsonrpc": "2.0", "id": req_id, "method": method, "params": params or []}
        extra = _mk_extra(peer=self.url, rpc=method, req=str(req_id))
        log.debug("rpc -> %s %s", method, payload["params"], extra=extra)
        try:
            response = self._http.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            if _throttle(f"http:{self.url}", 5.0):
                log.warning("rpc %s failed: %s", method, exc, extra=extra)
            raise ExternalFailure(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise ExternalFailure(f"{method} returned a non JSON body") from exc

        if not isinstance(body, dict):
            raise ExternalFailure(f"{method} returned an unexpected body")
        error = body.get("error")
        if error is not None:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            log.info("rpc %s error %s: %s", method, error.get("code"), error.get("message"), extra=extra)
            raise ExternalFailure(
                f"{method}: {error.get('message', 'unknown error')}",
                code=error.get("code"),
                data=error.get("data"),
            )
        if "result" not in body:
            raise ExternalFailure(f"{method} response carries neither result nor error")
        log.trace("rpc <- %s %r", method, body["result"], extra=extra)
        return body["result"]

    # ----------- Chain -----------
    def send_signed_transaction(self, signed: SignedTransaction) -> H256:
        result = self._call("chain_sendSignedTransaction", ["0x" + signed.rlp_bytes().hex()])
        return H256(result)

    def get_seq(self, address: Union[PlatformAddress, str], block_number: Optional[int] = None) -> int:
        address = PlatformAddress.ensure(address)
        result = self._call("chain_getSeq", [address.value, block_number])
        if result is None:
            raise ExternalFailure(f"No seq for {address.value}")
        return int(result)

    def get_balance(self, address: Union[PlatformAddress, str], block_number: Optional[int] = None) -> U64:
        address = PlatformAddress.ensure(address)
        return U64.from_json(self._call("chain_getBalance", [address.value, block_number]))

    def contains_transaction(self, tx_hash) -> bool:
        return bool(self._call("chain_containTransaction", [_hex(H256.ensure(tx_hash))]))

    def get_transaction(self, tx_hash) -> Optional[SignedTransaction]:
        result = self._call("chain_getTransaction", [_hex(H256.ensure(tx_hash))])
        if result is None:
            return None
        return from_json_to_signed_transaction(result)

    def get_asset(self, tracker, index: int, shard_id: int,
                  block_number: Optional[int] = None) -> Optional[Asset]:
        tracker = H256.ensure(tracker)
        result = self._call("chain_getAsset", [_hex(tracker), index, shard_id, block_number])
        if result is None:
            return None
        data: Dict[str, Any] = dict(result)
        data.update({"shardId": shard_id, "tracker": tracker.to_json(), "transactionOutputIndex": index})
        return Asset.from_json(data)

    def get_asset_scheme_by_type(self, asset_type, shard_id: int,
                                 block_number: Optional[int] = None) -> Optional[AssetScheme]:
        asset_type = H160.ensure(asset_type)
        result = self._call("chain_getAssetSchemeByType", [_hex(asset_type), shard_id, block_number])
        if result is None:
            return None
        data: Dict[str, Any] = dict(result)
        data.setdefault("shardId", shard_id)
        if "networkId" not in data:
            data["networkId"] = self.get_network_id()
        return AssetScheme.from_json(data)

    def get_network_id(self) -> str:
        return str(self._call("chain_getNetworkId"))

    def get_best_block_number(self) -> int:
        return int(self._call("chain_getBestBlockNumber"))
