# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of codechain-sdk - see LICENSE
# Refs: CodeChain-Transaction-Format; BLAKE2b-RFC7693; BIP173-Bech32

'''
=============================================================================
 -------- !!! WIRE-COMPATIBILITY REMINDER - READ BEFORE EDITING !!! --------
=============================================================================

The values below **MUST MATCH** what the validating node expects.
Changing them makes client-built payloads decode differently on the node,
or makes signatures/trackers computed here disagree with the chain.

  1) NETWORK IDENTITY
   - NETWORK_ID_MAINNET, NETWORK_ID_TESTNET
   - PLATFORM_ADDRESS_VERSION, ASSET_ADDRESS_VERSION

  2) SIGNATURE TAG LIMITS
   - MAX_SIGNATURE_TAG_OUTPUT_INDEX, MAX_SIGNATURE_TAG_BITMAP_BYTES

  3) KEY & SIGNATURE SIZES
   - SIGNATURE_LENGTH, PUBLIC_KEY_LENGTH, PRIVATE_KEY_LENGTH

  4) ASSET DERIVATION
   - ASSET_ADDRESS_PREFIX, ASSET_ADDRESS_KEY, WRAPPED_CCC_ASSET_TYPE

NOT WIRE-CRITICAL (local preference):
   RPC endpoint/timeouts, key store location, logging/path.

=============================================================================
'''

import os
import appdirs


# =============================================================================
# 1. MODE & APPLICATION
# =============================================================================
# ---- RUNTIME PROFILE ----
MODE   = os.environ.get("CODECHAIN_MODE", "dev")  # "dev" talks to testnet by default, "prod" to mainnet
IS_DEV = (MODE.lower() == "dev")  # cached boolean to simplify dev/prod toggles

# ---- APP METADATA ----
APP_NAME     = "codechain-sdk"  # display name used for user data directories
APP_AUTHOR   = "TsarStudio"  # vendor string passed into platform dir helpers
SDK_DATA_DIR = appdirs.user_data_dir(APP_NAME, APP_AUTHOR)  # OS-specific data folder resolved via appdirs


# =============================================================================
# 2. NETWORK IDENTITY
# =============================================================================
NETWORK_ID_MAINNET = "cc"  # two-char network id of the main chain
NETWORK_ID_TESTNET = "tc"  # two-char network id of the public testnet
DEFAULT_NETWORK_ID = NETWORK_ID_TESTNET if IS_DEV else NETWORK_ID_MAINNET  # active network chosen from MODE
NETWORK_ID_LENGTH  = 2  # network ids are always two ascii chars

# ---- ADDRESS FORMAT ----
PLATFORM_ADDRESS_HRP_SUFFIX = "c"  # hrp = network id + "c"
ASSET_ADDRESS_HRP_SUFFIX    = "a"  # hrp = network id + "a"
PLATFORM_ADDRESS_VERSION    = 1  # only version understood by the node
ASSET_ADDRESS_VERSION       = 1  # only version understood by the node
ASSET_ADDRESS_TYPE_LOCK_SCRIPT_HASH = 0  # payload is a lock script hash
ASSET_ADDRESS_TYPE_P2PKH            = 1  # payload is a public key hash locked by P2PKH
ASSET_ADDRESS_TYPE_P2PKH_BURN       = 2  # payload is a public key hash locked by P2PKHBurn


# =============================================================================
# 3. PROTOCOL LIMITS
# =============================================================================
U64_MAX = (1 << 64) - 1  # largest value a U64 may carry
U16_MAX = (1 << 16) - 1  # shard ids are u16 on the node

# ---- SIGNATURE TAG ----
MAX_SIGNATURE_TAG_OUTPUT_INDEX = 503  # highest output index a partial signature may cover
MAX_SIGNATURE_TAG_BITMAP_BYTES = 64  # bitmap must stay strictly below this many bytes

# ---- KEYS ----
SIGNATURE_LENGTH   = 65  # r(32) || s(32) || v(1)
PUBLIC_KEY_LENGTH  = 64  # uncompressed secp256k1 point without the 0x04 prefix
PRIVATE_KEY_LENGTH = 32  # secp256k1 secret scalar

# ---- ASSET DERIVATION ----
ASSET_ADDRESS_PREFIX   = bytes([0x41, 0x00])  # first two bytes of every asset scheme address
ASSET_ADDRESS_KEY      = bytes(16)  # blake256 key used when deriving an asset scheme address
WRAPPED_CCC_ASSET_TYPE = "00" * 20  # asset type of CCC wrapped into a shard


# =============================================================================
# 4. RPC TRANSPORT
# =============================================================================
RPC_URL           = os.environ.get("CODECHAIN_RPC_URL", "http://localhost:8080")  # JSON-RPC endpoint of the node
RPC_TIMEOUT       = float(os.environ.get("CODECHAIN_RPC_TIMEOUT", "10"))  # per-request timeout in seconds
RPC_POLL_INTERVAL = 1.0  # seconds between containsTransaction polls
RPC_POLL_TIMEOUT  = 60.0  # give up waiting for inclusion after this many seconds
RPC_USER_AGENT    = "codechain-sdk-python"  # sent with every request


# =============================================================================
# 5. KEY STORE
# =============================================================================
KEYSTORE_DIR  = os.environ.get("CODECHAIN_KEYSTORE_DIR", os.path.join(SDK_DATA_DIR, "keystore"))  # LocalKeyStore root
KEYSTORE_FILE = "keystore.json"  # file name inside KEYSTORE_DIR
KDF_N = 2**15  # scrypt cost parameter for encrypted secrets
KDF_R = 8  # scrypt block size
KDF_P = 1  # scrypt parallelism


# =============================================================================
# 6. LOGGING
# =============================================================================
LOG_LEVEL            = os.environ.get("CODECHAIN_LOG_LEVEL", "DEBUG" if IS_DEV else "INFO")  # root level for setup_logging
LOG_FORMAT           = os.environ.get("CODECHAIN_LOG_FORMAT", "plain")  # "plain" or "json"
LOG_TO_CONSOLE       = True  # mirror records to stderr
LOG_PATH             = os.environ.get("CODECHAIN_LOG_PATH", os.path.join(SDK_DATA_DIR, "logs", "codechain.log"))  # rotating log file
LOG_ROTATE_MAX_BYTES = 5_000_000  # rotate the file after this size
LOG_BACKUP_COUNT     = 3  # rotated files kept on disk
LOG_RATE_LIMIT_SECONDS      = 0.0  # console rate limit (0 disables)
LOG_FILE_RATE_LIMIT_SECONDS = 0.0  # file rate limit (0 disables)
