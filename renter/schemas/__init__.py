"""Pydantic schemas for API requests and responses."""

from renter.schemas.rentals import (
    RentFileRequest,
    FileEntryResponse,
    ListFilesResponse,
)

__all__ = [
    "RentFileRequest",
    "FileEntryResponse",
    "ListFilesResponse",
]
