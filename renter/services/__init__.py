"""Service layer for business logic."""

from renter.services.contract_proposer import ContractProposer, NegotiationRetryPolicy
from renter.services.rental_service import RentalService, piece_duration

__all__ = [
    "ContractProposer",
    "NegotiationRetryPolicy",
    "RentalService",
    "piece_duration",
]
