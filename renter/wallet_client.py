"""HTTP client for the wallet daemon that funds and signs renter transactions."""

from typing import Any, Dict, Optional
import httpx

from common.logging_config import get_logger
from common.types import ContractTerms, Transaction
from renter.config import HTTP_TIMEOUT_SECONDS, WALLET_URL
from renter.exceptions import LedgerError

logger = get_logger(__name__)


class WalletClient:
    """
    Wallet API client.

    No call is retried: a funding or signing failure is never specific
    to a host, so it aborts the rental.
    """

    def __init__(
        self,
        base_url: str = WALLET_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[httpx.Client] = None,
    ):
        """
        Initialize wallet client.

        Args:
            base_url: Wallet daemon URL
            timeout: Request timeout in seconds
            session: Preconfigured httpx client (used by tests)
        """
        self.session = session or httpx.Client(base_url=base_url, timeout=timeout)
        logger.info(f"Initialized WalletClient [base_url={base_url}]")

    def close(self) -> None:
        self.session.close()

    def _post(self, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST to the wallet and return the decoded JSON body.

        Raises:
            LedgerError: On transport failure, non-2xx status or a non-JSON body
        """
        try:
            response = self.session.post(endpoint, json=payload or {})
        except httpx.HTTPError as e:
            raise LedgerError(f"wallet request {endpoint} failed: {e}") from e

        if response.status_code >= 400:
            raise LedgerError(
                f"wallet request {endpoint} returned {response.status_code}: {self._detail(response)}"
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise LedgerError(f"wallet request {endpoint} returned invalid JSON") from e

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            return response.json().get('detail', response.text)
        except (ValueError, AttributeError):
            return response.text

    def register_transaction(self) -> str:
        """
        Register a new empty transaction with the wallet.

        Returns:
            Wallet-assigned transaction id
        """
        data = self._post('/wallet/transactions')
        try:
            return str(data['id'])
        except KeyError as e:
            raise LedgerError("wallet did not return a transaction id") from e

    def fund_transaction(self, transaction_id: str, amount: int) -> None:
        """Add inputs worth at least amount to the transaction."""
        self._post(f'/wallet/transactions/{transaction_id}/fund', {'amount': amount})

    def add_miner_fee(self, transaction_id: str, amount: int) -> None:
        self._post(f'/wallet/transactions/{transaction_id}/fee', {'amount': amount})

    def add_file_contract(self, transaction_id: str, contract: ContractTerms) -> None:
        self._post(f'/wallet/transactions/{transaction_id}/contracts', contract.to_dict())

    def sign_transaction(self, transaction_id: str, broadcast: bool = False) -> Transaction:
        """
        Sign the transaction.

        Args:
            transaction_id: Id from register_transaction
            broadcast: Whether the wallet should also broadcast it

        Returns:
            Signed transaction
        """
        data = self._post(f'/wallet/transactions/{transaction_id}/sign', {'broadcast': broadcast})
        try:
            return Transaction.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerError(f"wallet returned malformed transaction: {e}") from e
