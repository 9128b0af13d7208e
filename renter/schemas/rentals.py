"""Pydantic schemas for rental endpoints."""

from typing import List
from pydantic import BaseModel, Field

from common.types import PlacementRecord


class RentFileRequest(BaseModel):
    """Request model for renting storage for a local file."""
    filepath: str = Field(..., min_length=1)
    nickname: str = Field(..., min_length=1)
    total_pieces: int = Field(..., ge=1)


class HostResponse(BaseModel):
    host_id: str
    ip_address: str
    price: int
    burn: int
    window: int
    tolerance: int
    coin_address: str


class ContractResponse(BaseModel):
    contract_fund: int
    file_merkle_root: str
    file_size: int
    start: int
    end: int
    challenge_window: int
    tolerance: int
    valid_proof_payout: int
    valid_proof_address: str
    missed_proof_payout: int
    missed_proof_address: str


class PieceResponse(BaseModel):
    host: HostResponse
    contract: ContractResponse


class FileEntryResponse(BaseModel):
    """Response model for one placement record."""
    nickname: str
    total_pieces: int
    pieces: List[PieceResponse]

    @classmethod
    def from_record(cls, record: PlacementRecord) -> 'FileEntryResponse':
        return cls(
            nickname=record.nickname,
            total_pieces=len(record.pieces),
            pieces=[
                PieceResponse(
                    host=HostResponse(**piece.host.to_dict()),
                    contract=ContractResponse(**piece.contract.to_dict()),
                )
                for piece in record.pieces
            ],
        )


class ListFilesResponse(BaseModel):
    """Response model for rental listing."""
    files: List[FileEntryResponse]
