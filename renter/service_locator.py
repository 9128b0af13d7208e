"""Service locator for the renter's long-lived components."""

from typing import Optional

from renter.services.rental_service import RentalService

_rental_service: Optional[RentalService] = None


def set_rental_service(service: Optional[RentalService]):
    """Set global rental service instance"""
    global _rental_service
    _rental_service = service


def get_rental_service() -> RentalService:
    """
    Get global rental service instance.

    Raises:
        RuntimeError: If the service has not been configured
    """
    if _rental_service is None:
        raise RuntimeError("Rental service is not configured")
    return _rental_service
