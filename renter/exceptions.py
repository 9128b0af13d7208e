"""Custom exception classes for the renter."""


class RenterException(Exception):
    """
    Base exception class for all renter errors.
    """
    pass


class DuplicateNicknameError(RenterException):
    """
    Raised when a rental is requested under a nickname that is already stored
    or currently being negotiated.
    """
    pass


class InvalidRentalRequestError(RenterException):
    """
    Raised when a rental request is malformed (e.g., fewer than one piece).
    """
    pass


class RentalNotFoundError(RenterException):
    """
    Raised when no placement record exists for a nickname.
    """
    pass


class FileAccessError(RenterException):
    """
    Raised when the local file cannot be opened, sized, hashed or rewound.
    """
    pass


class LedgerError(RenterException):
    """
    Raised when the wallet fails to register, fund, extend or sign a transaction.
    """
    pass


class ChainStateError(RenterException):
    """
    Raised when the current chain height cannot be obtained.
    """
    pass


class HostDirectoryError(RenterException):
    """
    Raised when the host directory fails to select or flag a host.
    """
    pass


class NoHostsAvailableError(HostDirectoryError):
    """
    Raised when every known host has been flagged or none are registered.
    """
    pass


class NegotiationError(RenterException):
    """
    Base class for failures talking to one host. Recoverable: the proposer
    flags the host and selects another.
    """

    def __init__(self, message: str, host_id: str = None, stage: str = None):
        super().__init__(message)
        self.host_id = host_id
        self.stage = stage


class HostConnectionError(NegotiationError):
    """
    Raised when the host cannot be reached or the connection drops.
    """
    pass


class ProtocolError(NegotiationError):
    """
    Raised when the host sends a malformed or oversized response.
    """
    pass


class ContractRejectedError(NegotiationError):
    """
    Raised when the host answers with anything but the accept marker.
    The message is the host's reason.
    """
    pass


class PayloadStreamError(NegotiationError):
    """
    Raised when the file payload cannot be streamed in full.
    """
    pass


class NegotiationRetriesExhaustedError(RenterException):
    """
    Raised when the negotiation retry policy runs out of attempts or time.
    """
    pass


class PlacementStorageError(RenterException):
    """
    Raised when a placement record cannot be written to or read from the database.
    """
    pass
