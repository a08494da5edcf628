# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: BIP173-Bech32; CodeChain-Address-Format
"""Platform (account) and asset addresses.

Both are bech32 strings without the usual "1" separator: the human readable
part is always three characters, the network id followed by "c" for platform
addresses or "a" for asset addresses.
"""
from __future__ import annotations

from typing import List, Tuple, Union

from ..utils import config as CFG
from ..utils.errors import MalformedInput
from ..utils.helpers import blake160, decode_bech32_payload, encode_bech32_payload, get_account_id_from_public
from .primitives import H160
from .script import P2PKH_BURN_LOCK_SCRIPT, P2PKH_LOCK_SCRIPT

P2PKH_LOCK_SCRIPT_HASH = H160(blake160(P2PKH_LOCK_SCRIPT))
P2PKH_BURN_LOCK_SCRIPT_HASH = H160(blake160(P2PKH_BURN_LOCK_SCRIPT))

_HRP_LENGTH = CFG.NETWORK_ID_LENGTH + 1


def check_network_id(network_id: str) -> str:
    if not isinstance(network_id, str) or len(network_id) != CFG.NETWORK_ID_LENGTH:
        raise MalformedInput(f"Network id must be {CFG.NETWORK_ID_LENGTH} characters: {network_id!r}")
    return network_id


class PlatformAddress:
    __slots__ = ("account_id", "network_id", "value")

    def __init__(self, account_id: Union[H160, str, bytes], network_id: str = CFG.DEFAULT_NETWORK_ID):
        self.account_id = H160.ensure(account_id)
        self.network_id = check_network_id(network_id)
        hrp = self.network_id + CFG.PLATFORM_ADDRESS_HRP_SUFFIX
        payload = bytes([CFG.PLATFORM_ADDRESS_VERSION]) + self.account_id.to_bytes()
        self.value = encode_bech32_payload(hrp, payload)

    @classmethod
    def from_account_id(cls, account_id, network_id: str = CFG.DEFAULT_NETWORK_ID) -> "PlatformAddress":
        return cls(account_id, network_id)

    @classmethod
    def from_public(cls, public_key, network_id: str = CFG.DEFAULT_NETWORK_ID) -> "PlatformAddress":
        return cls(get_account_id_from_public(public_key), network_id)

    @classmethod
    def from_string(cls, address: str) -> "PlatformAddress":
        hrp, payload = decode_bech32_payload(address, _HRP_LENGTH)
        if not hrp.endswith(CFG.PLATFORM_ADDRESS_HRP_SUFFIX):
            raise MalformedInput(f"Not a platform address: {address}")
        if len(payload) != 21:
            raise MalformedInput(f"Invalid platform address payload length: {len(payload)}")
        if payload[0] != CFG.PLATFORM_ADDRESS_VERSION:
            raise MalformedInput(f"Unsupported platform address version: {payload[0]}")
        return cls(H160(payload[1:]), hrp[:CFG.NETWORK_ID_LENGTH])

    @classmethod
    def check(cls, address) -> bool:
        if isinstance(address, cls):
            return True
        try:
            cls.from_string(address)
        except MalformedInput:
            return False
        return True

    @classmethod
    def ensure(cls, address: Union["PlatformAddress", str]) -> "PlatformAddress":
        if isinstance(address, cls):
            return address
        return cls.from_string(address)

    def get_account_id(self) -> H160:
        return self.account_id

    def to_json(self) -> str:
        return self.value

    def __eq__(self, other):
        if not isinstance(other, PlatformAddress):
            return NotImplemented
        return self.value == other.value

    def __hash__(self):
        return hash(self.value)

    def __str__(self):
        return self.value

    def __repr__(self):
        return f"<PlatformAddress {self.value}>"


class AssetAddress:
    __slots__ = ("type", "payload", "network_id", "value")

    TYPES = (
        CFG.ASSET_ADDRESS_TYPE_LOCK_SCRIPT_HASH,
        CFG.ASSET_ADDRESS_TYPE_P2PKH,
        CFG.ASSET_ADDRESS_TYPE_P2PKH_BURN,
    )

    def __init__(self, type_: int, payload: Union[H160, str, bytes], network_id: str = CFG.DEFAULT_NETWORK_ID):
        if type_ not in self.TYPES:
            raise MalformedInput(f"Unsupported asset address type: {type_}")
        self.type = int(type_)
        self.payload = H160.ensure(payload)
        self.network_id = check_network_id(network_id)
        hrp = self.network_id + CFG.ASSET_ADDRESS_HRP_SUFFIX
        data = bytes([CFG.ASSET_ADDRESS_VERSION, self.type]) + self.payload.to_bytes()
        self.value = encode_bech32_payload(hrp, data)

    @classmethod
    def from_type_and_payload(cls, type_: int, payload, network_id: str = CFG.DEFAULT_NETWORK_ID) -> "AssetAddress":
        return cls(type_, payload, network_id)

    @classmethod
    def from_lock_script_hash(cls, lock_script_hash, network_id: str = CFG.DEFAULT_NETWORK_ID) -> "AssetAddress":
        return cls(CFG.ASSET_ADDRESS_TYPE_LOCK_SCRIPT_HASH, lock_script_hash, network_id)

    @classmethod
    def from_string(cls, address: str) -> "AssetAddress":
        hrp, data = decode_bech32_payload(address, _HRP_LENGTH)
        if not hrp.endswith(CFG.ASSET_ADDRESS_HRP_SUFFIX):
            raise MalformedInput(f"Not an asset address: {address}")
        if len(data) != 22:
            raise MalformedInput(f"Invalid asset address payload length: {len(data)}")
        if data[0] != CFG.ASSET_ADDRESS_VERSION:
            raise MalformedInput(f"Unsupported asset address version: {data[0]}")
        return cls(data[1], H160(data[2:]), hrp[:CFG.NETWORK_ID_LENGTH])

    @classmethod
    def check(cls, address) -> bool:
        if isinstance(address, cls):
            return True
        try:
            cls.from_string(address)
        except MalformedInput:
            return False
        return True

    @classmethod
    def ensure(cls, address: Union["AssetAddress", str]) -> "AssetAddress":
        if isinstance(address, cls):
            return address
        return cls.from_string(address)

    def decompose(self) -> Tuple[H160, List[bytes]]:
        """Split into the (lock_script_hash, parameters) pair an output is locked with."""
        if self.type == CFG.ASSET_ADDRESS_TYPE_LOCK_SCRIPT_HASH:
            return self.payload, []
        if self.type == CFG.ASSET_ADDRESS_TYPE_P2PKH:
            return P2PKH_LOCK_SCRIPT_HASH, [self.payload.to_bytes()]
        return P2PKH_BURN_LOCK_SCRIPT_HASH, [self.payload.to_bytes()]

    def to_json(self) -> str:
        return self.value

    def __eq__(self, other):
        if not isinstance(other, AssetAddress):
            return NotImplemented
        return self.value == other.value

    def __hash__(self):
        return hash(self.value)

    def __str__(self):
        return self.value

    def __repr__(self):
        return f"<AssetAddress {self.value}>"


def decompose_recipient(recipient: Union[AssetAddress, str]) -> Tuple[H160, List[bytes]]:
    return AssetAddress.ensure(recipient).decompose()
