"""Contract economics derived from a host's advertised terms."""

from common.constants import BURN_ADDRESS, CONTRACT_START_DELAY
from common.types import ContractTerms, ProviderDescriptor


def contract_fund(price: int, burn: int, duration: int, file_size: int,
                  delay: int = CONTRACT_START_DELAY) -> int:
    """
    Total funding locked in the contract.

    The host is paid for the full duration plus the confirmation delay;
    burn only covers the contract duration.
    """
    return (price * (duration + delay) + burn * duration) * file_size


def renter_portion(host: ProviderDescriptor, duration: int, file_size: int) -> int:
    """Amount the renter's inputs must cover, excluding the miner fee."""
    return host.price * duration * file_size


def build_contract_terms(
    host: ProviderDescriptor,
    merkle_root: str,
    file_size: int,
    current_height: int,
    duration: int,
    delay: int = CONTRACT_START_DELAY,
) -> ContractTerms:
    """
    Fill out a contract according to the host's advertised terms.

    Args:
        host: Selected host
        merkle_root: Hex Merkle root of the file
        file_size: File size in bytes
        current_height: Current chain height
        duration: Contract length in heights (must be positive)
        delay: Heights reserved for the transaction to confirm

    Returns:
        ContractTerms with start = height + delay and end = start + duration

    Raises:
        ValueError: If duration is not positive or any amount is negative
    """
    if duration <= 0:
        raise ValueError(f"duration must be positive, got {duration}")
    if min(host.price, host.burn, host.window, file_size) < 0:
        raise ValueError("price, burn, window and file size must be non-negative")

    start = current_height + delay
    return ContractTerms(
        contract_fund=contract_fund(host.price, host.burn, duration, file_size, delay),
        file_merkle_root=merkle_root,
        file_size=file_size,
        start=start,
        end=start + duration,
        challenge_window=host.window,
        tolerance=host.tolerance,
        valid_proof_payout=host.price * file_size * host.window,
        valid_proof_address=host.coin_address,
        missed_proof_payout=host.burn * file_size * host.window,
        missed_proof_address=BURN_ADDRESS,
    )
