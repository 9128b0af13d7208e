"""
Client side of the NegotiateContract handshake with a storage host.

The handshake runs as an explicit state machine over one connection:

    SEND -> AWAIT_RESPONSE -> STREAM_PAYLOAD -> ACCEPTED
                          `-> REJECTED

Every failure is raised as a NegotiationError subclass tagged with the
state it happened in, so the proposer can flag the host and move on.
The transport is injected as a connection factory; production uses TCP,
tests use socket.socketpair().
"""

import socket
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, Optional

from common.constants import (
    MAX_RESPONSE_LENGTH,
    NEGOTIATE_CONTRACT_RPC,
    STREAM_PIECE_SIZE_BYTES,
)
from common.logging_config import get_logger
from common.protocol import (
    FrameError,
    NegotiateContractRequest,
    NegotiateContractResponse,
    read_object,
    write_object,
)
from common.types import ProviderDescriptor, Transaction
from renter.config import CONNECT_TIMEOUT_SECONDS
from renter.exceptions import (
    ContractRejectedError,
    HostConnectionError,
    NegotiationError,
    PayloadStreamError,
    ProtocolError,
)

logger = get_logger(__name__)

ConnectionFactory = Callable[[str, float], socket.socket]


class NegotiationState(str, Enum):
    SEND = "send"
    AWAIT_RESPONSE = "await_response"
    STREAM_PAYLOAD = "stream_payload"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class NegotiationOutcome:
    """Result of a handshake that reached ACCEPTED."""
    host_id: str
    state: NegotiationState
    bytes_sent: int


def parse_address(address: str):
    """
    Split "host:port" into (host, port).

    Raises:
        ValueError: If the port is missing or not an integer
    """
    host, sep, port = address.rpartition(':')
    if not sep or not host:
        raise ValueError(f"address must be host:port, got '{address}'")
    return host.strip('[]'), int(port)


def open_host_connection(address: str, timeout: float) -> socket.socket:
    """Open a TCP connection to a host's advertised address."""
    return socket.create_connection(parse_address(address), timeout=timeout)


class ContractNegotiator:
    """
    Drives one NegotiateContract handshake per call.
    """

    def __init__(
        self,
        connection_factory: Optional[ConnectionFactory] = None,
        timeout: float = CONNECT_TIMEOUT_SECONDS,
        piece_size: int = STREAM_PIECE_SIZE_BYTES,
    ):
        self.connection_factory = connection_factory or open_host_connection
        self.timeout = timeout
        self.piece_size = piece_size

    def negotiate(
        self,
        host: ProviderDescriptor,
        transaction: Transaction,
        file: BinaryIO,
        file_size: int,
    ) -> NegotiationOutcome:
        """
        Send the signed transaction, await the host's verdict and stream the file.

        Args:
            host: Host to negotiate with
            transaction: Signed, unbroadcast transaction holding the contract
            file: Binary stream positioned at the start of the file
            file_size: Exact number of bytes to stream on acceptance

        Returns:
            NegotiationOutcome in state ACCEPTED

        Raises:
            HostConnectionError: Connect, send or receive failed
            ProtocolError: Response was malformed or oversized
            ContractRejectedError: Host answered with a rejection reason
            PayloadStreamError: File could not be streamed in full
        """
        try:
            conn = self.connection_factory(host.ip_address, self.timeout)
        except (OSError, ValueError) as e:
            raise HostConnectionError(
                f"could not connect to {host.ip_address}: {e}",
                host_id=host.host_id,
                stage=NegotiationState.SEND,
            ) from e

        with conn:
            state = NegotiationState.SEND
            try:
                write_object(conn, NegotiateContractRequest(transaction).to_dict())

                state = NegotiationState.AWAIT_RESPONSE
                response = NegotiateContractResponse.from_wire(
                    read_object(conn, MAX_RESPONSE_LENGTH)
                )
                if not response.accepted:
                    raise ContractRejectedError(
                        response.response,
                        host_id=host.host_id,
                        stage=NegotiationState.REJECTED,
                    )

                # No length prefix: the host knows file_size from the contract.
                state = NegotiationState.STREAM_PAYLOAD
                sent = self._stream_payload(conn, file, file_size, host)

            except NegotiationError:
                raise
            except FrameError as e:
                raise ProtocolError(
                    f"{NEGOTIATE_CONTRACT_RPC} with {host.host_id}: {e}",
                    host_id=host.host_id,
                    stage=state,
                ) from e
            except OSError as e:
                error_cls = PayloadStreamError if state == NegotiationState.STREAM_PAYLOAD else HostConnectionError
                raise error_cls(
                    f"{NEGOTIATE_CONTRACT_RPC} with {host.host_id} failed during {state.value}: {e}",
                    host_id=host.host_id,
                    stage=state,
                ) from e

        logger.debug(f"Host {host.host_id} accepted contract, streamed {sent} bytes")
        return NegotiationOutcome(
            host_id=host.host_id,
            state=NegotiationState.ACCEPTED,
            bytes_sent=sent,
        )

    def _stream_payload(
        self,
        conn: socket.socket,
        file: BinaryIO,
        file_size: int,
        host: ProviderDescriptor,
    ) -> int:
        """Copy exactly file_size bytes from file to conn."""
        remaining = file_size
        while remaining > 0:
            data = file.read(min(self.piece_size, remaining))
            if not data:
                raise PayloadStreamError(
                    f"file ended with {remaining} of {file_size} bytes unsent",
                    host_id=host.host_id,
                    stage=NegotiationState.STREAM_PAYLOAD,
                )
            conn.sendall(data)
            remaining -= len(data)
        return file_size
