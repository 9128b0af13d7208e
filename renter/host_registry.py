"""In-process host directory: tracks known hosts and which are flagged."""

import json
import random
import threading
from typing import Dict, List, Optional, Set

from common.logging_config import get_logger
from common.types import ProviderDescriptor
from renter.exceptions import HostDirectoryError, NoHostsAvailableError

logger = get_logger(__name__)


class HostRegistry:
    """
    Thread-safe host directory with the same interface as HostDirectoryClient.

    Flagged hosts are excluded from random selection for the life of the
    registry.
    """

    def __init__(self, hosts: Optional[List[ProviderDescriptor]] = None, rng: Optional[random.Random] = None):
        self.lock = threading.Lock()
        self._hosts: Dict[str, ProviderDescriptor] = {}
        self._flagged: Set[str] = set()
        self._rng = rng or random.Random()
        for host in hosts or []:
            self.register_host(host)

    def register_host(self, host: ProviderDescriptor) -> None:
        """Add or replace a host announcement."""
        with self.lock:
            self._hosts[host.host_id] = host
        logger.debug(f"Registered host {host.host_id} at {host.ip_address}")

    def random_host(self) -> ProviderDescriptor:
        """
        Pick one unflagged host uniformly at random.

        Raises:
            NoHostsAvailableError: If every host is flagged or none are known
        """
        with self.lock:
            candidates = [
                host for host_id, host in sorted(self._hosts.items())
                if host_id not in self._flagged
            ]
            if not candidates:
                raise NoHostsAvailableError(
                    f"no eligible hosts ({len(self._hosts)} known, {len(self._flagged)} flagged)"
                )
            return self._rng.choice(candidates)

    def flag_host(self, host_id: str) -> None:
        """
        Mark a host unreliable.

        Raises:
            HostDirectoryError: If the host is unknown
        """
        with self.lock:
            if host_id not in self._hosts:
                raise HostDirectoryError(f"cannot flag unknown host {host_id}")
            self._flagged.add(host_id)
        logger.warning(f"Flagged host {host_id} as unreliable")


def load_host_registry(path: str, rng: Optional[random.Random] = None) -> HostRegistry:
    """
    Build a registry from a JSON file holding a list of host descriptors.

    Args:
        path: Path to the hosts file
        rng: Random source for selection (defaults to a fresh random.Random)

    Returns:
        HostRegistry seeded with every host in the file

    Raises:
        HostDirectoryError: If the file cannot be read or an entry is malformed
    """
    try:
        with open(path, 'r') as f:
            data = json.load(f)
        hosts = [ProviderDescriptor.from_dict(entry) for entry in data]
    except (OSError, json.JSONDecodeError) as e:
        raise HostDirectoryError(f"cannot read hosts file {path}: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise HostDirectoryError(f"malformed host entry in {path}: {e}") from e

    logger.info(f"Loaded {len(hosts)} host(s) from {path}")
    return HostRegistry(hosts, rng=rng)
