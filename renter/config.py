"""Configuration settings for the renter daemon."""

import os
from common.constants import DEFAULT_DATABASE_PATH, DEFAULT_MINER_FEE, DEFAULT_RENTER_PORT


def _non_negative(name: str, value):
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


DATABASE_PATH = os.environ.get("RENTER_DATABASE_PATH", DEFAULT_DATABASE_PATH)

RENTER_HOST = os.environ.get("RENTER_HOST", "0.0.0.0")

RENTER_PORT = int(os.environ.get("RENTER_PORT", str(DEFAULT_RENTER_PORT)))

WALLET_URL = os.environ.get("RENTER_WALLET_URL", "http://localhost:9981")

HOSTDB_URL = os.environ.get("RENTER_HOSTDB_URL", "http://localhost:9982")

CONSENSUS_URL = os.environ.get("RENTER_CONSENSUS_URL", "http://localhost:9983")

# JSON list of host descriptors. When set, hosts are served from an
# in-process registry instead of the host directory at HOSTDB_URL.
HOSTS_FILE = os.environ.get("RENTER_HOSTS_FILE", "")

# When set, contracts are built against this fixed height instead of
# querying CONSENSUS_URL.
STATIC_HEIGHT = os.environ.get("RENTER_STATIC_HEIGHT", "")

HTTP_TIMEOUT_SECONDS = float(os.environ.get("RENTER_HTTP_TIMEOUT_SECONDS", "30"))

# Applies to connect and to each blocking read/write on a host connection.
CONNECT_TIMEOUT_SECONDS = float(os.environ.get("RENTER_CONNECT_TIMEOUT_SECONDS", "30"))

MINER_FEE = _non_negative(
    "RENTER_MINER_FEE", int(os.environ.get("RENTER_MINER_FEE", str(DEFAULT_MINER_FEE)))
)

# 0 disables the bound.
MAX_NEGOTIATION_ATTEMPTS = _non_negative(
    "RENTER_MAX_NEGOTIATION_ATTEMPTS", int(os.environ.get("RENTER_MAX_NEGOTIATION_ATTEMPTS", "64"))
)

MAX_NEGOTIATION_SECONDS = _non_negative(
    "RENTER_MAX_NEGOTIATION_SECONDS", float(os.environ.get("RENTER_MAX_NEGOTIATION_SECONDS", "0"))
)
