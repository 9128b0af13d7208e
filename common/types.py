"""Shared data type definitions (ProviderDescriptor, ContractTerms, Piece, etc.)."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Tuple

from common.constants import BURN_ADDRESS


@dataclass(frozen=True)
class ProviderDescriptor:
    """
    Directory-supplied attributes of a storage host.

    Prices and burn are per byte per height; window and tolerance are
    consumed as opaque proof-of-storage terms.
    """
    host_id: str
    ip_address: str
    price: int
    burn: int
    window: int
    tolerance: int
    coin_address: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> 'ProviderDescriptor':
        return cls(
            host_id=str(obj['host_id']),
            ip_address=str(obj['ip_address']),
            price=int(obj['price']),
            burn=int(obj['burn']),
            window=int(obj['window']),
            tolerance=int(obj['tolerance']),
            coin_address=str(obj['coin_address']),
        )


@dataclass(frozen=True)
class ContractTerms:
    """
    Economic and temporal terms of a single-host storage contract.
    """
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
    missed_proof_address: str = BURN_ADDRESS

    @property
    def duration(self) -> int:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> 'ContractTerms':
        return cls(
            contract_fund=int(obj['contract_fund']),
            file_merkle_root=str(obj['file_merkle_root']),
            file_size=int(obj['file_size']),
            start=int(obj['start']),
            end=int(obj['end']),
            challenge_window=int(obj['challenge_window']),
            tolerance=int(obj['tolerance']),
            valid_proof_payout=int(obj['valid_proof_payout']),
            valid_proof_address=str(obj['valid_proof_address']),
            missed_proof_payout=int(obj['missed_proof_payout']),
            missed_proof_address=str(obj.get('missed_proof_address', BURN_ADDRESS)),
        )


@dataclass(frozen=True)
class Piece:
    """
    One host's share of a rental, bound to the contract it accepted.
    """
    host: ProviderDescriptor
    contract: ContractTerms


@dataclass(frozen=True)
class PlacementRecord:
    """
    Ordered pieces stored for one rental nickname.
    """
    nickname: str
    pieces: Tuple[Piece, ...] = ()


@dataclass(frozen=True)
class RentalRequest:
    filepath: str
    nickname: str
    total_pieces: int


@dataclass
class Transaction:
    """
    Signed (not broadcast) transaction returned by the wallet.

    Inputs and signatures are carried opaquely; only the wallet
    interprets them.
    """
    transaction_id: str
    inputs: List[Dict[str, Any]] = field(default_factory=list)
    miner_fees: List[int] = field(default_factory=list)
    file_contracts: List[ContractTerms] = field(default_factory=list)
    signatures: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'transaction_id': self.transaction_id,
            'inputs': self.inputs,
            'miner_fees': self.miner_fees,
            'file_contracts': [fc.to_dict() for fc in self.file_contracts],
            'signatures': self.signatures,
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> 'Transaction':
        return cls(
            transaction_id=str(obj['transaction_id']),
            inputs=list(obj.get('inputs', [])),
            miner_fees=[int(fee) for fee in obj.get('miner_fees', [])],
            file_contracts=[ContractTerms.from_dict(fc) for fc in obj.get('file_contracts', [])],
            signatures=list(obj.get('signatures', [])),
        )
