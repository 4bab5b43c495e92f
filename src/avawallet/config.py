"""
avawallet/config.py

Configuration constants and data classes for avawallet.
"""

from dataclasses import dataclass


# Linear codec
CODEC_VERSION = 0
MAX_SLICE_LEN = 2**31 - 1        # Largest slice length the codec accepts

# Byte widths of fixed-size values
ID_LEN = 32                      # Transaction, asset, chain and subnet ids
SHORT_ID_LEN = 20                # Addresses and node ids
SIGNATURE_LEN = 65               # secp256k1 r || s || recovery id
BLS_PUBLIC_KEY_LEN = 48
BLS_SIGNATURE_LEN = 96

# Request timeouts (seconds)
API_REQUEST_TIMEOUT = 30
API_REQUEST_LARGE_TIMEOUT = 2 * 60   # Issuing a tx and waiting for acceptance

# Commit retry defaults
COMMIT_ATTEMPTS = 3
COMMIT_BACKOFF_SECONDS = 2.0

# Network ids
MAINNET_ID = 1
CASCADE_ID = 2
DENALI_ID = 3
EVEREST_ID = 4
FUJI_ID = 5
UNIT_TEST_ID = 10
LOCAL_ID = 12345

# Human readable address prefixes
NETWORK_HRPS = {
    MAINNET_ID: "avax",
    CASCADE_ID: "cascade",
    DENALI_ID: "denali",
    EVEREST_ID: "everest",
    FUJI_ID: "fuji",
    UNIT_TEST_ID: "testing",
    LOCAL_ID: "local",
}
FALLBACK_HRP = "custom"

# Public API endpoints
MAINNET_API_ENDPOINT = "https://api.avax.network"
FUJI_API_ENDPOINT = "https://api.avax-test.network"
LOCAL_API_ENDPOINT = "http://127.0.0.1:9650"

# Offline exchange files are written user-readable only
WRITE_READ_USER_ONLY_PERMS = 0o600


@dataclass(frozen=True)
class RetryPolicy:
    """
    Sequential retry schedule for transaction submission.

    Attempts never overlap; `backoff` is slept between attempts, not after
    the last one.
    """
    attempts: int = COMMIT_ATTEMPTS
    backoff: float = COMMIT_BACKOFF_SECONDS
    attempt_timeout: float = API_REQUEST_LARGE_TIMEOUT

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {self.attempts}")
        if self.backoff < 0:
            raise ValueError(f"backoff must be non-negative, got {self.backoff}")
        if self.attempt_timeout <= 0:
            raise ValueError(f"attempt_timeout must be positive, got {self.attempt_timeout}")
