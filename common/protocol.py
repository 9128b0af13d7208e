"""Wire framing for host RPCs: 8-byte little-endian length prefix + JSON body."""

from dataclasses import dataclass
from typing import Any, Dict
import json
import socket
import struct

from common.constants import ACCEPT_CONTRACT_RESPONSE, FRAME_LENGTH_PREFIX_BYTES
from common.types import Transaction

_LENGTH_FORMAT = '<Q'


class FrameError(ValueError):
    """Raised when a frame is truncated, oversized or not valid JSON."""
    pass


def encode_object(obj: Any) -> bytes:
    """
    Encode an object as a single length-prefixed frame.

    Args:
        obj: JSON-serializable value

    Returns:
        Frame bytes (prefix followed by UTF-8 JSON body)
    """
    body = json.dumps(obj, separators=(',', ':')).encode('utf-8')
    return struct.pack(_LENGTH_FORMAT, len(body)) + body


def write_object(sock: socket.socket, obj: Any) -> int:
    """
    Write one framed object to a connected socket.

    Returns:
        Number of bytes written, prefix included
    """
    frame = encode_object(obj)
    sock.sendall(frame)
    return len(frame)


def read_object(sock: socket.socket, max_len: int) -> Any:
    """
    Read one framed object, refusing bodies longer than max_len.

    Args:
        sock: Connected socket
        max_len: Upper bound on the body length in bytes

    Returns:
        Decoded JSON value

    Raises:
        FrameError: If the frame is oversized, truncated or malformed
        OSError: If the socket fails
    """
    prefix = recv_exact(sock, FRAME_LENGTH_PREFIX_BYTES)
    (length,) = struct.unpack(_LENGTH_FORMAT, prefix)
    if length > max_len:
        raise FrameError(f"frame of {length} bytes exceeds limit of {max_len}")

    body = recv_exact(sock, length)
    try:
        return json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FrameError(f"malformed frame body: {e}") from e


def recv_exact(sock: socket.socket, size: int) -> bytes:
    """Receive exactly size bytes or raise FrameError on early EOF."""
    buf = bytearray()
    while len(buf) < size:
        data = sock.recv(size - len(buf))
        if not data:
            raise FrameError(f"connection closed after {len(buf)} of {size} bytes")
        buf.extend(data)
    return bytes(buf)


@dataclass
class NegotiateContractRequest:
    """Request frame for the NegotiateContract RPC."""
    transaction: Transaction

    def to_dict(self) -> Dict[str, Any]:
        return self.transaction.to_dict()

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> 'NegotiateContractRequest':
        return cls(transaction=Transaction.from_dict(obj))


@dataclass
class NegotiateContractResponse:
    """Response frame for the NegotiateContract RPC: a bare string token."""
    response: str

    @property
    def accepted(self) -> bool:
        return self.response == ACCEPT_CONTRACT_RESPONSE

    @classmethod
    def from_wire(cls, obj: Any) -> 'NegotiateContractResponse':
        """
        Build from a decoded frame.

        Raises:
            FrameError: If the frame is not a string
        """
        if not isinstance(obj, str):
            raise FrameError(f"expected string response, got {type(obj).__name__}")
        return cls(response=obj)
