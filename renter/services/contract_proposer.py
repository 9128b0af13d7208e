"""Per-piece contract negotiation: pick a host, fund a contract, hand over the file."""

import os
import time
from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple

from common.logging_config import get_logger
from common.merkle import MerkleError, calculate_segments, reader_merkle_root
from common.types import ContractTerms, Piece, ProviderDescriptor, Transaction
from renter.config import MAX_NEGOTIATION_ATTEMPTS, MAX_NEGOTIATION_SECONDS, MINER_FEE
from renter.contract_terms import build_contract_terms, renter_portion
from renter.exceptions import (
    FileAccessError,
    InvalidRentalRequestError,
    NegotiationError,
    NegotiationRetriesExhaustedError,
)
from renter.negotiation import ContractNegotiator

logger = get_logger(__name__)


@dataclass(frozen=True)
class NegotiationRetryPolicy:
    """
    Bounds on the host-selection loop of one proposal.

    None disables a bound; with both disabled the loop only ends when the
    directory runs out of hosts.
    """
    max_attempts: Optional[int] = None
    max_elapsed_seconds: Optional[float] = None

    def __post_init__(self):
        for name in ('max_attempts', 'max_elapsed_seconds'):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @classmethod
    def from_config(cls) -> 'NegotiationRetryPolicy':
        return cls(
            max_attempts=MAX_NEGOTIATION_ATTEMPTS or None,
            max_elapsed_seconds=MAX_NEGOTIATION_SECONDS or None,
        )

    def allows(self, attempts: int, elapsed_seconds: float) -> bool:
        """Whether another attempt may start after `attempts` failures."""
        if self.max_attempts is not None and attempts >= self.max_attempts:
            return False
        if self.max_elapsed_seconds is not None and attempts > 0 and elapsed_seconds >= self.max_elapsed_seconds:
            return False
        return True


class ContractProposer:
    """
    Negotiates one storage contract per call.

    Collaborators:
        wallet: register_transaction / fund_transaction / add_miner_fee /
            add_file_contract / sign_transaction
        directory: random_host / flag_host
        chain: height
        negotiator: ContractNegotiator (or anything with negotiate())

    Host-specific failures (connection, protocol, rejection, payload) flag
    the host and retry with a fresh one. File, wallet, chain and directory
    failures abort the proposal.
    """

    def __init__(
        self,
        wallet,
        directory,
        chain,
        negotiator: Optional[ContractNegotiator] = None,
        miner_fee: int = MINER_FEE,
        retry_policy: Optional[NegotiationRetryPolicy] = None,
    ):
        self.wallet = wallet
        self.directory = directory
        self.chain = chain
        self.negotiator = negotiator or ContractNegotiator()
        self.miner_fee = miner_fee
        self.retry_policy = retry_policy or NegotiationRetryPolicy.from_config()

    def propose(self, filepath: str, duration: int) -> Piece:
        """
        Place the whole file with one host under a contract of the given length.

        Args:
            filepath: Path of an existing, readable file
            duration: Contract length in heights (positive)

        Returns:
            Piece bound to the accepting host and the agreed terms

        Raises:
            InvalidRentalRequestError: If duration is not positive
            FileAccessError: If the file cannot be opened, sized, hashed or rewound
            LedgerError: If any wallet step fails
            ChainStateError: If the chain height is unavailable
            HostDirectoryError: If selection (incl. NoHostsAvailableError) or flagging fails
            NegotiationRetriesExhaustedError: If the retry policy is spent
        """
        if duration <= 0:
            raise InvalidRentalRequestError(f"duration must be positive, got {duration}")

        try:
            file = open(filepath, 'rb')
        except OSError as e:
            raise FileAccessError(f"cannot open {filepath}: {e}") from e

        with file:
            file_size, merkle_root = self._fingerprint(file, filepath)
            return self._place(file, filepath, file_size, merkle_root, duration)

    def _fingerprint(self, file: BinaryIO, filepath: str) -> Tuple[int, str]:
        """Size and hex Merkle root of the file; leaves the cursor at 0."""
        try:
            file_size = os.fstat(file.fileno()).st_size
            root = reader_merkle_root(file, calculate_segments(file_size))
        except (OSError, MerkleError) as e:
            raise FileAccessError(f"cannot hash {filepath}: {e}") from e
        self._rewind(file, filepath)
        return file_size, root.hex()

    @staticmethod
    def _rewind(file: BinaryIO, filepath: str) -> None:
        try:
            file.seek(0)
        except OSError as e:
            raise FileAccessError(f"cannot rewind {filepath}: {e}") from e

    def _place(
        self,
        file: BinaryIO,
        filepath: str,
        file_size: int,
        merkle_root: str,
        duration: int,
    ) -> Piece:
        attempts = 0
        started = time.monotonic()
        last_error: Optional[Exception] = None

        while True:
            if not self.retry_policy.allows(attempts, time.monotonic() - started):
                raise NegotiationRetriesExhaustedError(
                    f"gave up placing {filepath} after {attempts} attempt(s); last error: {last_error}"
                )
            attempts += 1

            host = self.directory.random_host()

            try:
                terms = build_contract_terms(host, merkle_root, file_size, self.chain.height(), duration)
            except ValueError as e:
                last_error = e
                logger.warning(f"Host {host.host_id} advertised unusable terms: {e}")
                self.directory.flag_host(host.host_id)
                continue

            transaction = self._fund_and_sign(host, terms, duration)

            self._rewind(file, filepath)
            try:
                self.negotiator.negotiate(host, transaction, file, file_size)
            except NegotiationError as e:
                last_error = e
                logger.warning(
                    f"Problem from NegotiateContract with host {host.host_id} "
                    f"(attempt {attempts}, stage={e.stage}): {e}"
                )
                self.directory.flag_host(host.host_id)
                continue

            logger.info(
                f"Host {host.host_id} accepted contract for {filepath} "
                f"[size={file_size} start={terms.start} end={terms.end} fund={terms.contract_fund}]"
            )
            return Piece(host=host, contract=terms)

    def _fund_and_sign(self, host: ProviderDescriptor, terms: ContractTerms, duration: int) -> Transaction:
        """Build, fund and sign (without broadcasting) the renter's transaction."""
        amount = renter_portion(host, duration, terms.file_size) + self.miner_fee

        transaction_id = self.wallet.register_transaction()
        self.wallet.fund_transaction(transaction_id, amount)
        self.wallet.add_miner_fee(transaction_id, self.miner_fee)
        self.wallet.add_file_contract(transaction_id, terms)
        return self.wallet.sign_transaction(transaction_id, broadcast=False)
