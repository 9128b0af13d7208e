"""Access to the current chain height."""

from typing import Optional
import httpx

from renter.config import CONSENSUS_URL, HTTP_TIMEOUT_SECONDS
from renter.exceptions import ChainStateError


class ConsensusClient:
    """Reads the chain height from the consensus daemon."""

    def __init__(
        self,
        base_url: str = CONSENSUS_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[httpx.Client] = None,
    ):
        self.session = session or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self.session.close()

    def height(self) -> int:
        """
        Current chain height.

        Raises:
            ChainStateError: If the daemon is unreachable or the reply is malformed
        """
        try:
            response = self.session.get('/consensus')
            response.raise_for_status()
            return int(response.json()['height'])
        except httpx.HTTPError as e:
            raise ChainStateError(f"could not read chain height: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise ChainStateError(f"malformed consensus status: {e}") from e


class StaticChainState:
    """Fixed-height chain state for offline setups."""

    def __init__(self, height: int = 0):
        self._height = height

    def height(self) -> int:
        return self._height
