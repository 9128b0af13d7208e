"""Shared pytest fixtures for all tests."""

import socket
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from common.constants import ACCEPT_CONTRACT_RESPONSE
from common.protocol import FrameError, read_object, recv_exact, write_object
from common.types import ContractTerms, ProviderDescriptor, Transaction
from renter.consensus_client import StaticChainState
from renter.exceptions import HostDirectoryError, LedgerError
from renter.host_registry import HostRegistry
from renter.negotiation import ContractNegotiator
from renter.services.contract_proposer import ContractProposer, NegotiationRetryPolicy


class FakeWallet:
    """Wallet double that records every call and can fail a named step."""

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.calls: List[tuple] = []
        self.contracts: Dict[str, ContractTerms] = {}
        self._next_id = 0

    def _record(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        if self.fail_on == name:
            raise LedgerError(f"{name} failed: insufficient balance")

    def register_transaction(self) -> str:
        self._record('register_transaction')
        self._next_id += 1
        return f"txn-{self._next_id}"

    def fund_transaction(self, transaction_id: str, amount: int) -> None:
        self._record('fund_transaction', transaction_id, amount)

    def add_miner_fee(self, transaction_id: str, amount: int) -> None:
        self._record('add_miner_fee', transaction_id, amount)

    def add_file_contract(self, transaction_id: str, contract: ContractTerms) -> None:
        self._record('add_file_contract', transaction_id, contract)
        self.contracts[transaction_id] = contract

    def sign_transaction(self, transaction_id: str, broadcast: bool = False) -> Transaction:
        self._record('sign_transaction', transaction_id, broadcast)
        return Transaction(
            transaction_id=transaction_id,
            inputs=[{'output_id': f"out-{transaction_id}"}],
            miner_fees=[10],
            file_contracts=[self.contracts[transaction_id]],
            signatures=[{'input': 0, 'signature': 'deadbeef'}],
        )

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingHostRegistry(HostRegistry):
    """HostRegistry that remembers every selection and flag report."""

    def __init__(self, hosts=None, fail_flag: bool = False, rng=None):
        super().__init__(hosts, rng=rng)
        self.selected: List[str] = []
        self.flag_reports: List[str] = []
        self.fail_flag = fail_flag

    def random_host(self) -> ProviderDescriptor:
        host = super().random_host()
        self.selected.append(host.host_id)
        return host

    def flag_host(self, host_id: str) -> None:
        self.flag_reports.append(host_id)
        if self.fail_flag:
            raise HostDirectoryError("directory refused flag")
        super().flag_host(host_id)


class FakeHostNetwork:
    """
    In-memory hosts reached over socket.socketpair().

    Each address maps to the response token the host sends back. HANG_UP
    closes the connection without answering; addresses with no entry
    refuse connections.
    """

    HANG_UP = object()

    def __init__(self):
        self.responses: Dict[str, object] = {}
        self.received: Dict[str, List[Tuple[dict, bytes]]] = {}
        self.errors: List[Exception] = []
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def add_host(self, address: str, response=ACCEPT_CONTRACT_RESPONSE) -> None:
        self.responses[address] = response

    def connect(self, address: str, timeout: float) -> socket.socket:
        if address not in self.responses:
            raise ConnectionRefusedError(f"connection refused by {address}")

        client, server = socket.socketpair()
        client.settimeout(timeout)
        server.settimeout(5)
        thread = threading.Thread(target=self._serve, args=(address, server), daemon=True)
        thread.start()
        self._threads.append(thread)
        return client

    def _serve(self, address: str, conn: socket.socket) -> None:
        with conn:
            try:
                transaction = read_object(conn, 1 << 20)
                response = self.responses[address]
                payload = b''
                if response is not self.HANG_UP:
                    write_object(conn, response)
                    if response == ACCEPT_CONTRACT_RESPONSE:
                        size = transaction['file_contracts'][0]['file_size']
                        payload = recv_exact(conn, size)
                with self._lock:
                    self.received.setdefault(address, []).append((transaction, payload))
            except (OSError, FrameError) as e:
                with self._lock:
                    self.errors.append(e)

    def join(self) -> None:
        for thread in self._threads:
            thread.join(timeout=5)

    def payloads(self, address: str) -> List[bytes]:
        self.join()
        return [payload for _, payload in self.received.get(address, [])]

    def connections_to(self, address: str) -> int:
        self.join()
        return len(self.received.get(address, []))


def make_host(host_id: str, address: str = None, price: int = 1, burn: int = 0,
              window: int = 5, tolerance: int = 1) -> ProviderDescriptor:
    return ProviderDescriptor(
        host_id=host_id,
        ip_address=address or f"{host_id}.hosts:9982",
        price=price,
        burn=burn,
        window=window,
        tolerance=tolerance,
        coin_address=f"coin-{host_id}",
    )


@pytest.fixture
def host_factory():
    """Build ProviderDescriptor instances with sensible defaults."""
    return make_host


@pytest.fixture
def fake_wallet():
    return FakeWallet()


@pytest.fixture
def failing_wallet():
    """Build a FakeWallet whose named step raises LedgerError."""
    return lambda step: FakeWallet(fail_on=step)


@pytest.fixture
def host_network():
    network = FakeHostNetwork()
    yield network
    network.join()


@pytest.fixture
def make_directory():
    """Build a RecordingHostRegistry from a list of hosts."""
    def _make(hosts, fail_flag: bool = False, rng=None):
        return RecordingHostRegistry(hosts, fail_flag=fail_flag, rng=rng)
    return _make


@pytest.fixture
def make_proposer(fake_wallet, host_network):
    """Build a ContractProposer wired to the fake wallet and fake host network."""
    def _make(directory, height: int = 100, retry_policy: NegotiationRetryPolicy = None, wallet=None):
        return ContractProposer(
            wallet=wallet or fake_wallet,
            directory=directory,
            chain=StaticChainState(height),
            negotiator=ContractNegotiator(connection_factory=host_network.connect, timeout=5),
            miner_fee=10,
            retry_policy=retry_policy or NegotiationRetryPolicy(),
        )
    return _make


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a 10-byte file to rent.

    Returns:
        Path to the file
    """
    file_path = tmp_path / 'sample.dat'
    file_path.write_bytes(b'0123456789')
    return file_path


@pytest.fixture
def large_file(tmp_path):
    """File spanning several stream pieces and Merkle segments."""
    file_path = tmp_path / 'large.dat'
    file_path.write_bytes(bytes(range(256)) * 1024)
    return file_path


@pytest.fixture
def test_db(monkeypatch):
    """
    Create a temporary database for each test.
    """
    from renter.database import init_database

    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "renter.db"
        monkeypatch.setattr("renter.database.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path


class FirstChoice:
    """Deterministic stand-in for random.Random: always picks the first candidate."""

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def first_choice():
    return FirstChoice()
