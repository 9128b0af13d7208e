"""Repository layer for data access."""

from renter.repositories.placement_repository import PlacementRepository

__all__ = [
    "PlacementRepository",
]
