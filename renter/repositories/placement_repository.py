"""Placement record repository for database operations."""

import json
import sqlite3
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from common.types import ContractTerms, Piece, PlacementRecord, ProviderDescriptor
from renter.database import get_db_connection
from renter.exceptions import DuplicateNicknameError, PlacementStorageError

logger = get_logger(__name__)


class PlacementRepository:
    @staticmethod
    def save_record(record: PlacementRecord, conn=None) -> PlacementRecord:
        """
        Insert a placement record and its pieces.

        With a caller-supplied conn the insert joins the caller's transaction
        and is not committed here.

        Raises:
            DuplicateNicknameError: If the nickname is already stored
            PlacementStorageError: If the database write fails
        """
        try:
            if conn is not None:
                PlacementRepository._insert(conn, record)
            else:
                with get_db_connection() as conn:
                    PlacementRepository._insert(conn, record)
                    conn.commit()
        except sqlite3.Error as e:
            raise PlacementStorageError(
                f"could not store placement record '{record.nickname}': {e}"
            ) from e

        logger.debug(f"Stored placement record '{record.nickname}' with {len(record.pieces)} piece(s)")
        return record

    @staticmethod
    def _insert(conn, record: PlacementRecord) -> None:
        cursor = conn.cursor()
        cursor.execute("SELECT 1 FROM rentals WHERE nickname = ?", (record.nickname,))
        if cursor.fetchone() is not None:
            raise DuplicateNicknameError(f"file of nickname '{record.nickname}' already exists")

        cursor.execute(
            "INSERT INTO rentals (nickname, total_pieces, created_at) VALUES (?, ?, ?)",
            (record.nickname, len(record.pieces), datetime.utcnow().isoformat())
        )
        cursor.executemany(
            """
            INSERT INTO pieces (nickname, piece_index, host_id, host, contract)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (
                    record.nickname,
                    index,
                    piece.host.host_id,
                    json.dumps(piece.host.to_dict()),
                    json.dumps(piece.contract.to_dict()),
                )
                for index, piece in enumerate(record.pieces)
            ]
        )

    @staticmethod
    def exists(nickname: str) -> bool:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM rentals WHERE nickname = ?", (nickname,))
            return cursor.fetchone() is not None

    @staticmethod
    def get_record(nickname: str) -> Optional[PlacementRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT nickname FROM rentals WHERE nickname = ?", (nickname,))
            if cursor.fetchone() is None:
                return None

            cursor.execute(
                "SELECT host, contract FROM pieces WHERE nickname = ? ORDER BY piece_index",
                (nickname,)
            )
            return PlacementRecord(
                nickname=nickname,
                pieces=tuple(PlacementRepository._row_to_piece(row) for row in cursor.fetchall()),
            )

    @staticmethod
    def list_records() -> List[PlacementRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT nickname FROM rentals ORDER BY nickname")
            nicknames = [row["nickname"] for row in cursor.fetchall()]

        return [PlacementRepository.get_record(nickname) for nickname in nicknames]

    @staticmethod
    def _row_to_piece(row) -> Piece:
        return Piece(
            host=ProviderDescriptor.from_dict(json.loads(row["host"])),
            contract=ContractTerms.from_dict(json.loads(row["contract"])),
        )
