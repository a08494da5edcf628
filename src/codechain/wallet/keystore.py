# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: NIST-800-38D-AES-GCM; RFC7914-scrypt; SEC1-PubKeyRecovery
"""Key stores holding secp256k1 keys for platform accounts and asset owners.

Keys are addressed by their id, the blake160 of the public key as hex, which
is also the payload of a P2PKH asset address and the account id of a
platform address. Every store exposes two independent managers, ``platform``
and ``asset``.
"""
from __future__ import annotations

import hmac, json, os, threading
from typing import Dict, List, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

# ---------------- Local Project ----------------
from ..utils import config as CFG
from ..utils.errors import ExternalFailure, MalformedInput
from ..utils.helpers import (generate_private_key, get_account_id_from_public, get_public_from_private,
                             sign_ecdsa)

# ---------------- Logger ----------------
from ..utils.cc_logging import get_ctx_logger
log = get_ctx_logger("codechain.wallet(keystore)")


# -----------------------------
# SECRET SEALING (AES-GCM + scrypt)
# -----------------------------

def _derive_key(password: str, salt: bytes, n: int = CFG.KDF_N, r: int = CFG.KDF_R, p: int = CFG.KDF_P) -> bytes:
    kdf = Scrypt(salt=salt, length=32, n=n, r=r, p=p, backend=default_backend())
    return kdf.derive(password.encode("utf-8"))


def encrypt_blob(blob: bytes, password: str, n: int = CFG.KDF_N, r: int = CFG.KDF_R, p: int = CFG.KDF_P) -> Dict:
    salt = os.urandom(16)
    key = _derive_key(password, salt, n=n, r=r, p=p)
    nonce = os.urandom(12)
    ct = AESGCM(key).encrypt(nonce, blob, None)
    return {
        "alg": "AESGCM",
        "nonce": nonce.hex(),
        "ct": ct.hex(),
        "kdf": "scrypt",
        "salt": salt.hex(),
        "n": n,
        "r": r,
        "p": p,
    }


def decrypt_blob(enc: Dict, password: str) -> bytes:
    if str(enc.get("alg")).upper() != "AESGCM":
        raise ExternalFailure("Unsupported cipher")
    if str(enc.get("kdf")).lower() != "scrypt":
        raise ExternalFailure("Unsupported kdf")

    salt = bytes.fromhex(enc["salt"])
    key = _derive_key(password, salt, n=int(enc.get("n", CFG.KDF_N)), r=int(enc.get("r", CFG.KDF_R)),
                      p=int(enc.get("p", CFG.KDF_P)))
    try:
        return AESGCM(key).decrypt(bytes.fromhex(enc["nonce"]), bytes.fromhex(enc["ct"]), None)
    except InvalidTag as exc:
        raise ExternalFailure("The passphrase does not match") from exc


# -----------------------------
# KEY IDS
# -----------------------------

def ensure_key_id(key: str) -> str:
    if not isinstance(key, str) or len(key) != 40:
        raise MalformedInput(f"Key id must be 40 hex characters: {key!r}")
    try:
        bytes.fromhex(key)
    except ValueError as exc:
        raise MalformedInput(f"Key id must be hex: {key!r}") from exc
    return key.lower()


# -----------------------------
# KEY MANAGERS
# -----------------------------

class KeyManager:
    """Common operations over a ``{key_id: record}`` table.

    Subclasses decide how a private key is sealed into a record and how it is
    recovered with a passphrase, and how the table is persisted.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._lock = threading.RLock()

    # -------- storage hooks ----------
    def _records(self) -> Dict[str, Dict]:
        raise NotImplementedError

    def _commit(self) -> None:
        pass

    def _seal(self, private_key: str, passphrase: str) -> Dict:
        raise NotImplementedError

    def _open(self, record: Dict, passphrase: str) -> str:
        raise NotImplementedError

    # -------- API ----------
    def _record(self, key: str) -> Dict:
        record = self._records().get(ensure_key_id(key))
        if record is None:
            raise ExternalFailure(f"Unknown {self.kind} key: {key}")
        return record

    def get_key_list(self) -> List[str]:
        with self._lock:
            return list(self._records().keys())

    def create_key(self, passphrase: str = "") -> str:
        return self.import_raw_key(generate_private_key(), passphrase)

    def import_raw_key(self, private_key: str, passphrase: str = "") -> str:
        public_key = get_public_from_private(private_key)
        key = get_account_id_from_public(public_key)
        with self._lock:
            record = self._seal(private_key, passphrase)
            record["public"] = public_key
            records = self._records()
            previous = records.get(key)
            records[key] = record
            try:
                self._commit()
            except ExternalFailure:
                if previous is None:
                    del records[key]
                else:
                    records[key] = previous
                raise
        log.info("[%s] key %s stored", self.kind, key)
        return key

    def remove_key(self, key: str, passphrase: str = "") -> bool:
        key = ensure_key_id(key)
        with self._lock:
            records = self._records()
            record = records.get(key)
            if record is None:
                return False
            self._open(record, passphrase)
            del records[key]
            try:
                self._commit()
            except ExternalFailure:
                records[key] = record
                raise
        log.info("[%s] key %s removed", self.kind, key)
        return True

    def get_public_key(self, key: str) -> str:
        with self._lock:
            return self._record(key)["public"]

    def export_raw_key(self, key: str, passphrase: str = "") -> str:
        with self._lock:
            return self._open(self._record(key), passphrase)

    def sign(self, key: str, message, passphrase: str = "") -> str:
        """65-byte r||s||v signature of a 32-byte digest, as hex."""
        with self._lock:
            private_key = self._open(self._record(key), passphrase)
        signature = sign_ecdsa(message, private_key)
        log.debug("[%s] signed with key %s", self.kind, key)
        return signature


class _MemoryKeyManager(KeyManager):
    def __init__(self, kind: str):
        super().__init__(kind)
        self._table: Dict[str, Dict] = {}

    def _records(self) -> Dict[str, Dict]:
        return self._table

    def _seal(self, private_key: str, passphrase: str) -> Dict:
        return {"secret": private_key, "passphrase": passphrase}

    def _open(self, record: Dict, passphrase: str) -> str:
        if not hmac.compare_digest(record["passphrase"].encode("utf-8"), passphrase.encode("utf-8")):
            raise ExternalFailure("The passphrase does not match")
        return record["secret"]


class _LocalKeyManager(KeyManager):
    def __init__(self, kind: str, store: "LocalKeyStore"):
        super().__init__(kind)
        self._store = store
        self._lock = store._lock

    def _records(self) -> Dict[str, Dict]:
        return self._store._data[self.kind]

    def _commit(self) -> None:
        self._store._save()

    def _seal(self, private_key: str, passphrase: str) -> Dict:
        return {"secret": encrypt_blob(bytes.fromhex(private_key), passphrase,
                                       n=self._store.n, r=self._store.r, p=self._store.p)}

    def _open(self, record: Dict, passphrase: str) -> str:
        return decrypt_blob(record["secret"], passphrase).hex()


# -----------------------------
# KEY STORES
# -----------------------------

class KeyStore:
    platform: KeyManager
    asset: KeyManager

    def close(self) -> None:
        pass


class MemoryKeyStore(KeyStore):
    """Volatile store for tests and short-lived tools."""

    def __init__(self):
        self.platform = _MemoryKeyManager("platform")
        self.asset = _MemoryKeyManager("asset")


class LocalKeyStore(KeyStore):
    """JSON file store; private keys are sealed per key with AES-GCM under a scrypt-derived key."""

    def __init__(self, path: Optional[str] = None, n: int = CFG.KDF_N, r: int = CFG.KDF_R, p: int = CFG.KDF_P):
        self.path = path or os.path.join(CFG.KEYSTORE_DIR, CFG.KEYSTORE_FILE)
        self.n, self.r, self.p = n, r, p
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, Dict]] = self._load()
        self.platform = _LocalKeyManager("platform", self)
        self.asset = _LocalKeyManager("asset", self)

    def _load(self) -> Dict[str, Dict[str, Dict]]:
        data: Dict[str, Dict[str, Dict]] = {"platform": {}, "asset": {}}
        if not os.path.exists(self.path):
            return data
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                stored = json.load(f)
        except (OSError, ValueError) as exc:
            raise ExternalFailure(f"Key store at {self.path} is unreadable") from exc
        if not isinstance(stored, dict):
            raise ExternalFailure(f"Key store at {self.path} is corrupted")
        for kind in data:
            section = stored.get(kind, {})
            if not isinstance(section, dict):
                raise ExternalFailure(f"Key store section {kind!r} is corrupted")
            data[kind].update(section)
        log.debug("key store loaded from %s (%d platform, %d asset)",
                  self.path, len(data["platform"]), len(data["asset"]))
        return data

    def _save(self) -> None:
        tmp = self.path + ".tmp"
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise ExternalFailure(f"Unable to write key store at {self.path}") from exc

    def close(self) -> None:
        with self._lock:
            self._save()
