"""HTTP client for the host directory service."""

from typing import Optional
from urllib.parse import quote

import httpx

from common.logging_config import get_logger
from common.types import ProviderDescriptor
from renter.config import HOSTDB_URL, HTTP_TIMEOUT_SECONDS
from renter.exceptions import HostDirectoryError, NoHostsAvailableError

logger = get_logger(__name__)


class HostDirectoryClient:
    """Selects random hosts from and reports unreliable hosts to the host directory."""

    def __init__(
        self,
        base_url: str = HOSTDB_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: Optional[httpx.Client] = None,
    ):
        self.session = session or httpx.Client(base_url=base_url, timeout=timeout)
        logger.info(f"Initialized HostDirectoryClient [base_url={base_url}]")

    def close(self) -> None:
        self.session.close()

    def random_host(self) -> ProviderDescriptor:
        """
        Ask the directory for one host chosen uniformly among unflagged hosts.

        Returns:
            Freshly fetched host descriptor

        Raises:
            NoHostsAvailableError: If the directory has no eligible host (404)
            HostDirectoryError: On any other failure
        """
        try:
            response = self.session.get('/hostdb/random')
        except httpx.HTTPError as e:
            raise HostDirectoryError(f"host directory unreachable: {e}") from e

        if response.status_code == 404:
            raise NoHostsAvailableError("no eligible hosts remain in the host directory")
        if response.status_code >= 400:
            raise HostDirectoryError(
                f"host directory returned {response.status_code}: {response.text}"
            )

        try:
            return ProviderDescriptor.from_dict(response.json())
        except (KeyError, TypeError, ValueError) as e:
            raise HostDirectoryError(f"host directory returned malformed host: {e}") from e

    def flag_host(self, host_id: str) -> None:
        """
        Report a host as unreliable so it is not selected again.

        Raises:
            HostDirectoryError: If the report is not accepted
        """
        try:
            response = self.session.post(f'/hostdb/hosts/{quote(host_id, safe="")}/flag')
        except httpx.HTTPError as e:
            raise HostDirectoryError(f"could not flag host {host_id}: {e}") from e

        if response.status_code >= 400:
            raise HostDirectoryError(
                f"host directory refused flag for {host_id}: {response.status_code} {response.text}"
            )
        logger.info(f"Flagged host {host_id} as unreliable")
