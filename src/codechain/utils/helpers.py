# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: BLAKE2b-RFC7693; RFC6979; SEC1-PubKeyRecovery; LowS-Policy; BIP173-Bech32; Ethereum-RLP
from __future__ import annotations
import hashlib
from typing import Any, List, Tuple, Union

import rlp
from rlp.exceptions import DecodingError, DeserializationError
from rlp.sedes import big_endian_int
from bech32 import CHARSET, bech32_create_checksum, bech32_verify_checksum, convertbits
from ecdsa import SECP256k1, SigningKey, VerifyingKey, util, BadSignatureError, MalformedPointError
from ecdsa.numbertheory import SquareRootError

from . import config as CFG
from .errors import MalformedInput

BytesLike = Union[bytes, bytearray, memoryview, str]

# ======== SIGNATURE HELPERS ========
SECP256K1_N = SECP256k1.order
HALF_N = SECP256K1_N // 2


# -----------------------------
# BYTES
# -----------------------------

def strip_hex_prefix(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return value[2:]
    return value

def to_bytes(x: BytesLike) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    if isinstance(x, str):
        try:
            return bytes.fromhex(strip_hex_prefix(x))
        except ValueError as exc:
            raise MalformedInput(f"Invalid hex string: {x!r}") from exc
    raise MalformedInput(f"Expected bytes or hex string, got {type(x).__name__}")


# -----------------------------
# HASHING
# -----------------------------

def blake256(data: bytes) -> bytes:
    return hashlib.blake2b(to_bytes(data), digest_size=32).digest()

def blake160(data: bytes) -> bytes:
    return hashlib.blake2b(to_bytes(data), digest_size=20).digest()

def blake128(data: bytes) -> bytes:
    return hashlib.blake2b(to_bytes(data), digest_size=16).digest()

def blake256_with_key(data: bytes, key: bytes) -> bytes:
    return hashlib.blake2b(to_bytes(data), digest_size=32, key=to_bytes(key)).digest()

def blake160_with_key(data: bytes, key: bytes) -> bytes:
    return hashlib.blake2b(to_bytes(data), digest_size=20, key=to_bytes(key)).digest()


# -----------------------------
# SECP256K1 (r || s || v)
# -----------------------------

def _signing_key(priv: BytesLike) -> SigningKey:
    raw = to_bytes(priv)
    if len(raw) != CFG.PRIVATE_KEY_LENGTH:
        raise MalformedInput(f"Private key must be {CFG.PRIVATE_KEY_LENGTH} bytes, got {len(raw)}")
    try:
        return SigningKey.from_string(raw, curve=SECP256k1)
    except MalformedPointError as exc:
        raise MalformedInput("Private key is out of range") from exc

def _digest32(message: BytesLike) -> bytes:
    digest = to_bytes(message)
    if len(digest) != 32:
        raise MalformedInput(f"Expected a 32-byte message digest, got {len(digest)}")
    return digest

def generate_private_key() -> str:
    return SigningKey.generate(curve=SECP256k1).to_string().hex()

def get_public_from_private(priv: BytesLike) -> str:
    """64-byte uncompressed public key (no 0x04 prefix), as hex."""
    return _signing_key(priv).get_verifying_key().to_string().hex()

def get_account_id_from_public(public_key: BytesLike) -> str:
    pub = to_bytes(public_key)
    if len(pub) != CFG.PUBLIC_KEY_LENGTH:
        raise MalformedInput(f"Public key must be {CFG.PUBLIC_KEY_LENGTH} bytes, got {len(pub)}")
    return blake160(pub).hex()

def get_account_id_from_private(priv: BytesLike) -> str:
    return get_account_id_from_public(get_public_from_private(priv))

def sign_ecdsa(message: BytesLike, priv: BytesLike) -> str:
    """Deterministic low-S signature over a 32-byte digest, returned as r||s||v hex."""
    digest = _digest32(message)
    sk = _signing_key(priv)
    r_b, s_b = sk.sign_digest_deterministic(
        digest,
        sigencode=util.sigencode_strings,
        hashfunc=hashlib.sha256,)
    r = int.from_bytes(r_b, "big")
    s = int.from_bytes(s_b, "big")
    if s > HALF_N:
        s = SECP256K1_N - s
    rs = r.to_bytes(32, "big") + s.to_bytes(32, "big")

    expected = sk.get_verifying_key().to_string()
    for v, vk in enumerate(_recover_candidates(rs, digest)):
        if vk.to_string() == expected:
            return (rs + bytes([v])).hex()
    raise MalformedInput("Unable to compute the recovery id of the signature")

def _split_signature(signature: BytesLike) -> Tuple[bytes, int]:
    sig = to_bytes(signature)
    if len(sig) != CFG.SIGNATURE_LENGTH:
        raise MalformedInput(f"Signature must be {CFG.SIGNATURE_LENGTH} bytes, got {len(sig)}")
    v = sig[64]
    if v not in (0, 1):
        raise MalformedInput(f"Invalid recovery id: {v}")
    return sig[:64], v

def _recover_candidates(rs: bytes, digest: bytes) -> List[VerifyingKey]:
    return VerifyingKey.from_public_key_recovery_with_digest(
        rs, digest, SECP256k1, hashfunc=hashlib.sha256, sigdecode=util.sigdecode_string)

def recover_ecdsa(message: BytesLike, signature: BytesLike) -> str:
    digest = _digest32(message)
    rs, v = _split_signature(signature)
    try:
        candidates = _recover_candidates(rs, digest)
    except (MalformedPointError, BadSignatureError, SquareRootError, ValueError) as exc:
        raise MalformedInput("Unable to recover a public key from the signature") from exc
    if v >= len(candidates):
        raise MalformedInput("Unable to recover a public key from the signature")
    return candidates[v].to_string().hex()

def verify_ecdsa(message: BytesLike, signature: BytesLike, public_key: BytesLike) -> bool:
    digest = _digest32(message)
    rs, _v = _split_signature(signature)
    if int.from_bytes(rs[32:], "big") > HALF_N:
        return False
    try:
        vk = VerifyingKey.from_string(to_bytes(public_key), curve=SECP256k1, hashfunc=hashlib.sha256)
        return vk.verify_digest(rs, digest, sigdecode=util.sigdecode_string)
    except (MalformedPointError, BadSignatureError):
        return False


# -----------------------------
# BECH32 (no separator)
# -----------------------------

def encode_bech32_payload(hrp: str, payload: bytes) -> str:
    words = convertbits(list(payload), 8, 5, True)
    checksum = bech32_create_checksum(hrp, words)
    return hrp + "".join(CHARSET[d] for d in words + checksum)

def decode_bech32_payload(address: str, hrp_length: int) -> Tuple[str, bytes]:
    if not isinstance(address, str) or len(address) < hrp_length + 6:
        raise MalformedInput(f"Invalid address: {address!r}")
    if address.lower() != address and address.upper() != address:
        raise MalformedInput(f"Mixed-case address: {address!r}")
    address = address.lower()
    hrp, body = address[:hrp_length], address[hrp_length:]
    data = [CHARSET.find(c) for c in body]
    if -1 in data:
        raise MalformedInput(f"Invalid bech32 character in address: {address!r}")
    if not bech32_verify_checksum(hrp, data):
        raise MalformedInput(f"Invalid checksum in address: {address!r}")
    decoded = convertbits(data[:-6], 5, 8, False)
    if decoded is None:
        raise MalformedInput(f"Invalid padding in address: {address!r}")
    return hrp, bytes(decoded)


# -----------------------------
# RLP
# -----------------------------

def rlp_encode(obj: Any) -> bytes:
    return rlp.encode(obj)

def rlp_decode(raw: BytesLike) -> Any:
    try:
        return rlp.decode(to_bytes(raw))
    except DecodingError as exc:
        raise MalformedInput(f"Invalid RLP payload: {exc}") from exc

def decode_rlp_int(item: Any) -> int:
    if not isinstance(item, (bytes, bytearray)):
        raise MalformedInput("Expected an RLP scalar for an integer field")
    try:
        return big_endian_int.deserialize(bytes(item))
    except DeserializationError as exc:
        raise MalformedInput(f"Invalid RLP integer: {bytes(item).hex()}") from exc

def decode_rlp_list(item: Any) -> list:
    if not isinstance(item, list):
        raise MalformedInput("Expected an RLP list")
    return item

def decode_rlp_bytes(item: Any) -> bytes:
    if not isinstance(item, (bytes, bytearray)):
        raise MalformedInput("Expected an RLP scalar")
    return bytes(item)
