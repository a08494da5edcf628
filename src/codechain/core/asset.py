# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Asset-Transaction
from __future__ import annotations

import json
from typing import List, Optional, Sequence, Tuple, Union

from ..utils import config as CFG
from ..utils.errors import InvariantViolation, MalformedInput
from .address import AssetAddress, PlatformAddress
from .asset_io import AssetMintOutput, AssetOutPoint, AssetTransferInput, Timelock, json_field
from .primitives import (H160, H256, U64, ValueObject, ensure_parameters, ensure_shard_id,
                         parameters_to_json)


class Asset(ValueObject):
    """An unspent asset output as seen by its owner."""

    def __init__(self, asset_type, shard_id: int, lock_script_hash, parameters, quantity,
                 tracker, output_index: int):
        if isinstance(output_index, bool) or not isinstance(output_index, int) or output_index < 0:
            raise MalformedInput(f"Invalid output index: {output_index!r}")
        self.asset_type = H160.ensure(asset_type)
        self.shard_id = ensure_shard_id(shard_id)
        self.lock_script_hash = H160.ensure(lock_script_hash)
        self.parameters = ensure_parameters(parameters)
        self.quantity = U64.ensure(quantity)
        self.tracker = H256.ensure(tracker)
        self.output_index = output_index

    @property
    def out_point(self) -> AssetOutPoint:
        return AssetOutPoint(
            self.tracker, self.output_index, self.asset_type, self.shard_id, self.quantity,
            lock_script_hash=self.lock_script_hash, parameters=self.parameters,
        )

    def create_transfer_input(self, timelock: Optional[Timelock] = None) -> AssetTransferInput:
        return AssetTransferInput(self.out_point, timelock)

    def create_transfer_transaction(self, recipients: Sequence[Tuple[Union[AssetAddress, str], object]] = (),
                                    timelock: Optional[Timelock] = None,
                                    network_id: str = CFG.DEFAULT_NETWORK_ID,
                                    metadata: str = "", approvals=None, expiration=None):
        """TransferAsset spending this asset to ``recipients``, a list of (address, quantity)."""
        from .asset_tx import TransferAsset

        tx = TransferAsset(network_id, metadata=metadata, approvals=approvals, expiration=expiration)
        tx.add_inputs(self.create_transfer_input(timelock))
        tx.add_outputs(*[
            {"recipient": address, "quantity": quantity, "asset_type": self.asset_type, "shard_id": self.shard_id}
            for address, quantity in recipients
        ])
        return tx

    def to_json(self) -> dict:
        return {
            "assetType": self.asset_type.to_json(),
            "shardId": self.shard_id,
            "lockScriptHash": self.lock_script_hash.to_json(),
            "parameters": parameters_to_json(self.parameters),
            "quantity": self.quantity.to_json(),
            "tracker": self.tracker.to_json(),
            "transactionOutputIndex": self.output_index,
        }

    @classmethod
    def from_json(cls, data: dict) -> "Asset":
        return cls(
            json_field(data, "assetType"),
            json_field(data, "shardId"),
            json_field(data, "lockScriptHash"),
            json_field(data, "parameters"),
            U64.from_json(json_field(data, "quantity")),
            json_field(data, "tracker"),
            json_field(data, "transactionOutputIndex"),
        )

    def __repr__(self):
        return f"<Asset {self.asset_type.value} x{self.quantity} @{self.tracker.value}:{self.output_index}>"


class AssetScheme(ValueObject):
    """Registration record of an asset type: metadata, supply and who may manage it."""

    def __init__(self, network_id: str, shard_id: int, metadata: str, supply,
                 approver: Union[PlatformAddress, str, None] = None,
                 registrar: Union[PlatformAddress, str, None] = None,
                 allowed_script_hashes=None, pool=None, seq: int = 0):
        if not isinstance(metadata, str):
            raise MalformedInput("metadata must be a string")
        self.network_id = network_id
        self.shard_id = ensure_shard_id(shard_id)
        self.metadata = metadata
        self.supply = U64.ensure(supply)
        self.approver = PlatformAddress.ensure(approver) if approver is not None else None
        self.registrar = PlatformAddress.ensure(registrar) if registrar is not None else None
        self.allowed_script_hashes: List[H160] = [H160.ensure(h) for h in (allowed_script_hashes or [])]
        self.pool: List[Tuple[H160, U64]] = [(H160.ensure(t), U64.ensure(q)) for t, q in (pool or [])]
        self.seq = int(seq)

    def metadata_json(self):
        """Parsed metadata, or None when it is not a JSON document."""
        try:
            return json.loads(self.metadata)
        except ValueError:
            return None

    def create_mint_transaction(self, recipient: Union[AssetAddress, str]):
        from .asset_tx import MintAsset

        if self.pool:
            raise InvariantViolation("Cannot mint a pooled asset scheme")
        return MintAsset(
            self.network_id, self.shard_id, self.metadata,
            AssetMintOutput(recipient=recipient, supply=self.supply),
            approver=self.approver, registrar=self.registrar,
            allowed_script_hashes=self.allowed_script_hashes,
        )

    def to_json(self) -> dict:
        return {
            "networkId": self.network_id,
            "shardId": self.shard_id,
            "metadata": self.metadata,
            "supply": self.supply.to_json(),
            "approver": self.approver.to_json() if self.approver else None,
            "registrar": self.registrar.to_json() if self.registrar else None,
            "allowedScriptHashes": [h.to_json() for h in self.allowed_script_hashes],
            "pool": [{"assetType": t.to_json(), "quantity": q.to_json()} for t, q in self.pool],
            "seq": self.seq,
        }

    @classmethod
    def from_json(cls, data: dict) -> "AssetScheme":
        return cls(
            json_field(data, "networkId"),
            json_field(data, "shardId"),
            json_field(data, "metadata"),
            U64.from_json(json_field(data, "supply")),
            approver=data.get("approver"),
            registrar=data.get("registrar"),
            allowed_script_hashes=data.get("allowedScriptHashes"),
            pool=[(p["assetType"], U64.from_json(p["quantity"])) for p in data.get("pool", [])],
            seq=data.get("seq", 0),
        )
