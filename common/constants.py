"""Project-wide constants (contract economics, wire protocol, hashing)."""

# Heights added before a contract starts so the transaction can confirm.
CONTRACT_START_DELAY: int = 20

# Piece i of a rental runs for BASE + STEP * i heights.
PIECE_DURATION_BASE: int = 2000
PIECE_DURATION_STEP: int = 1000

DEFAULT_MINER_FEE: int = 10

ACCEPT_CONTRACT_RESPONSE: str = "accept"
MAX_RESPONSE_LENGTH: int = 128
FRAME_LENGTH_PREFIX_BYTES: int = 8

NEGOTIATE_CONTRACT_RPC: str = "NegotiateContract"

MERKLE_SEGMENT_SIZE: int = 64
HASH_SIZE: int = 32

# The empty address is the burn address.
BURN_ADDRESS: str = "00" * HASH_SIZE

STREAM_PIECE_SIZE_BYTES: int = 64 * 1024

DEFAULT_RENTER_PORT: int = 9980
DEFAULT_DATABASE_PATH: str = "/app/data/renter.db"
