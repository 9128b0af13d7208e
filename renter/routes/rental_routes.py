"""Rental API routes."""

from fastapi import APIRouter, Depends, status

from common.types import RentalRequest
from renter.schemas.rentals import FileEntryResponse, ListFilesResponse, RentFileRequest
from renter.service_locator import get_rental_service
from renter.services.rental_service import RentalService

router = APIRouter(prefix="/files", tags=["Files"])


# Renting blocks on wallet and host round trips, so these run in the threadpool.
@router.post("/rent", response_model=FileEntryResponse, status_code=status.HTTP_201_CREATED)
def rent_file(
    body: RentFileRequest,
    service: RentalService = Depends(get_rental_service)
):
    """
    Rent storage for a local file, split across total_pieces hosts.

    Raises:
        - 400: Invalid request or unreadable file
        - 409: Nickname already rented
        - 502: Wallet or consensus failure
        - 503: No usable hosts
    """
    record = service.rent_file(RentalRequest(
        filepath=body.filepath,
        nickname=body.nickname,
        total_pieces=body.total_pieces,
    ))
    return FileEntryResponse.from_record(record)


@router.get("", response_model=ListFilesResponse)
def list_files(service: RentalService = Depends(get_rental_service)):
    return ListFilesResponse(
        files=[FileEntryResponse.from_record(record) for record in service.list_files()]
    )


@router.get("/{nickname}", response_model=FileEntryResponse)
def get_file(nickname: str, service: RentalService = Depends(get_rental_service)):
    return FileEntryResponse.from_record(service.get_file(nickname))
