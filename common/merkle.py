"""SHA-256 Merkle root over fixed-size file segments."""

import hashlib
from typing import BinaryIO

from common.constants import MERKLE_SEGMENT_SIZE


class MerkleError(ValueError):
    """Raised when a reader runs out of data before all segments are hashed."""
    pass


def hash_bytes(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def join_hash(left: bytes, right: bytes) -> bytes:
    """Hash of two concatenated child hashes."""
    return hash_bytes(left + right)


def calculate_segments(file_size: int) -> int:
    """
    Number of segments needed to cover file_size bytes.

    Args:
        file_size: Size in bytes

    Returns:
        ceil(file_size / MERKLE_SEGMENT_SIZE)
    """
    segments, remainder = divmod(file_size, MERKLE_SEGMENT_SIZE)
    if remainder:
        segments += 1
    return segments


def _split_point(num_segments: int) -> int:
    """Largest power of two strictly less than num_segments (num_segments >= 2)."""
    mid = 1
    while mid * 2 < num_segments:
        mid *= 2
    return mid


def reader_merkle_root(reader: BinaryIO, num_segments: int) -> bytes:
    """
    Compute the Merkle root of the next num_segments segments of reader.

    Leaves are the hash of each segment, zero-padded to MERKLE_SEGMENT_SIZE.
    The left subtree always covers the largest power of two segments that
    leaves at least one segment on the right.

    Args:
        reader: Binary stream positioned at the first segment
        num_segments: Number of segments to consume

    Returns:
        32-byte root hash

    Raises:
        MerkleError: If num_segments is zero or the reader is exhausted early
        OSError: If reading fails
    """
    if num_segments == 0:
        raise MerkleError("no data")

    if num_segments == 1:
        data = reader.read(MERKLE_SEGMENT_SIZE)
        if not data:
            raise MerkleError("no data")
        return hash_bytes(data.ljust(MERKLE_SEGMENT_SIZE, b'\x00'))

    mid = _split_point(num_segments)
    left = reader_merkle_root(reader, mid)
    right = reader_merkle_root(reader, num_segments - mid)
    return join_hash(left, right)
