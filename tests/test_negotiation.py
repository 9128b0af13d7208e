"""Tests for the NegotiateContract handshake state machine."""

import io
import socket
import threading

import pytest

from common.constants import ACCEPT_CONTRACT_RESPONSE
from common.protocol import read_object, write_object
from common.types import Transaction
from renter.contract_terms import build_contract_terms
from renter.exceptions import (
    ContractRejectedError,
    HostConnectionError,
    PayloadStreamError,
    ProtocolError,
)
from renter.negotiation import ContractNegotiator, NegotiationState, parse_address


@pytest.fixture
def negotiator(host_network):
    return ContractNegotiator(connection_factory=host_network.connect, timeout=5, piece_size=4)


@pytest.fixture
def transaction(host_factory):
    terms = build_contract_terms(host_factory('A'), 'root', 10, 100, 2000)
    return Transaction(transaction_id='txn-1', file_contracts=[terms])


def test_accepted_handshake_streams_exact_payload(negotiator, host_network, host_factory, transaction):
    host = host_factory('A')
    host_network.add_host(host.ip_address)

    outcome = negotiator.negotiate(host, transaction, io.BytesIO(b'0123456789trailing'), 10)

    assert outcome.state == NegotiationState.ACCEPTED
    assert outcome.bytes_sent == 10
    assert host_network.payloads(host.ip_address) == [b'0123456789']


def test_host_receives_signed_transaction(negotiator, host_network, host_factory, transaction):
    host = host_factory('A')
    host_network.add_host(host.ip_address)

    negotiator.negotiate(host, transaction, io.BytesIO(b'0123456789'), 10)

    host_network.join()
    received, _ = host_network.received[host.ip_address][0]
    assert received == transaction.to_dict()


def test_rejection_carries_host_reason(negotiator, host_network, host_factory, transaction):
    host = host_factory('A')
    host_network.add_host(host.ip_address, response="out of space")

    with pytest.raises(ContractRejectedError, match="out of space") as exc_info:
        negotiator.negotiate(host, transaction, io.BytesIO(b'0123456789'), 10)

    assert exc_info.value.host_id == 'A'
    assert exc_info.value.stage == NegotiationState.REJECTED
    assert host_network.payloads(host.ip_address) == [b'']


def test_unreachable_host(negotiator, host_factory, transaction):
    host = host_factory('A')

    with pytest.raises(HostConnectionError) as exc_info:
        negotiator.negotiate(host, transaction, io.BytesIO(b'0123456789'), 10)

    assert exc_info.value.stage == NegotiationState.SEND


def test_host_hanging_up_is_protocol_error(negotiator, host_network, host_factory, transaction):
    host = host_factory('A')
    host_network.add_host(host.ip_address, response=host_network.HANG_UP)

    with pytest.raises(ProtocolError) as exc_info:
        negotiator.negotiate(host, transaction, io.BytesIO(b'0123456789'), 10)

    assert exc_info.value.stage == NegotiationState.AWAIT_RESPONSE


def test_oversized_response_is_protocol_error(negotiator, host_network, host_factory, transaction):
    host = host_factory('A')
    host_network.add_host(host.ip_address, response='r' * 500)

    with pytest.raises(ProtocolError, match="exceeds limit"):
        negotiator.negotiate(host, transaction, io.BytesIO(b'0123456789'), 10)


def test_short_file_is_payload_error(host_factory, transaction):
    client, server = socket.socketpair()

    def serve():
        with server:
            read_object(server, 1 << 20)
            write_object(server, ACCEPT_CONTRACT_RESPONSE)
            while server.recv(1024):
                pass

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()

    negotiator = ContractNegotiator(connection_factory=lambda address, timeout: client, timeout=5)
    with pytest.raises(PayloadStreamError) as exc_info:
        negotiator.negotiate(host_factory('A'), transaction, io.BytesIO(b'01234'), 10)

    thread.join(timeout=5)
    assert exc_info.value.stage == NegotiationState.STREAM_PAYLOAD


@pytest.mark.parametrize("address,expected", [
    ("127.0.0.1:9982", ("127.0.0.1", 9982)),
    ("host.example:1", ("host.example", 1)),
    ("[::1]:9982", ("::1", 9982)),
])
def test_parse_address(address, expected):
    assert parse_address(address) == expected


@pytest.mark.parametrize("address", ["nohost", ":9982", "host:port"])
def test_parse_address_rejects_malformed(address):
    with pytest.raises(ValueError):
        parse_address(address)
