"""Rental service: splits a rental into pieces and records where they were placed."""

import threading
from typing import Dict, List, Optional, Set

from common.constants import PIECE_DURATION_BASE, PIECE_DURATION_STEP
from common.logging_config import get_logger
from common.types import PlacementRecord, RentalRequest
from renter.exceptions import (
    DuplicateNicknameError,
    InvalidRentalRequestError,
    RentalNotFoundError,
)
from renter.repositories.placement_repository import PlacementRepository
from renter.services.contract_proposer import ContractProposer

logger = get_logger(__name__)


def piece_duration(index: int) -> int:
    """Contract length for piece `index`; later pieces stay valid longer."""
    return PIECE_DURATION_BASE + PIECE_DURATION_STEP * index


class RentalService:
    """
    Owns the rental table (nickname -> PlacementRecord).

    The table lock is held only to check and reserve a nickname and to
    insert the finished record. Negotiation runs outside it; a nickname
    being negotiated is reserved so a concurrent request for the same
    name fails as a duplicate.
    """

    def __init__(self, proposer: ContractProposer, repository: Optional[PlacementRepository] = None):
        """
        Initialize rental service.

        Args:
            proposer: Negotiates one piece per call
            repository: Persistent store; records are loaded from it on startup.
                None keeps the table in memory only
        """
        self.proposer = proposer
        self.repository = repository
        self.lock = threading.Lock()
        self.files: Dict[str, PlacementRecord] = {}
        self._pending: Set[str] = set()

        if repository is not None:
            for record in repository.list_records():
                self.files[record.nickname] = record
            logger.info(f"Loaded {len(self.files)} rental(s) from storage")

    def rent_file(self, request: RentalRequest) -> PlacementRecord:
        """
        Place request.total_pieces pieces of the file, one host per piece.

        Pieces are negotiated strictly in order with durations
        2000, 3000, 4000, ... On failure nothing is recorded; contracts
        already funded for earlier pieces are not rolled back.

        Raises:
            InvalidRentalRequestError: If total_pieces < 1 or the nickname is empty
            DuplicateNicknameError: If the nickname is stored or in progress
            RenterException: Any fatal error from the proposer or the repository
        """
        if not request.nickname:
            raise InvalidRentalRequestError("nickname must not be empty")
        if request.total_pieces < 1:
            raise InvalidRentalRequestError(
                f"total_pieces must be at least 1, got {request.total_pieces}"
            )

        self._reserve(request.nickname)
        logger.info(
            f"Renting '{request.nickname}' from {request.filepath} in {request.total_pieces} piece(s)"
        )

        pieces = []
        try:
            for index in range(request.total_pieces):
                pieces.append(self.proposer.propose(request.filepath, piece_duration(index)))

            record = PlacementRecord(nickname=request.nickname, pieces=tuple(pieces))
            with self.lock:
                if self.repository is not None:
                    self.repository.save_record(record)
                self.files[request.nickname] = record
        except Exception as e:
            if pieces:
                logger.warning(
                    f"Rental '{request.nickname}' failed after {len(pieces)} funded piece(s); "
                    f"those contracts are abandoned: {e}"
                )
            else:
                logger.error(f"Rental '{request.nickname}' failed: {e}")
            raise
        finally:
            self._release(request.nickname)

        logger.info(f"Rented '{request.nickname}' across {len(pieces)} host(s)")
        return record

    def get_file(self, nickname: str) -> PlacementRecord:
        """
        Raises:
            RentalNotFoundError: If no record exists for nickname
        """
        with self.lock:
            record = self.files.get(nickname)
        if record is None:
            raise RentalNotFoundError(f"no rental named '{nickname}'")
        return record

    def list_files(self) -> List[PlacementRecord]:
        with self.lock:
            return [self.files[name] for name in sorted(self.files)]

    def _reserve(self, nickname: str) -> None:
        with self.lock:
            if nickname in self.files or nickname in self._pending:
                raise DuplicateNicknameError(f"file of nickname '{nickname}' already exists")
            self._pending.add(nickname)

    def _release(self, nickname: str) -> None:
        with self.lock:
            self._pending.discard(nickname)
