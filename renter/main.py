"""Entry point for the renter daemon."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from renter.config import (
    CONSENSUS_URL,
    HOSTDB_URL,
    HOSTS_FILE,
    MINER_FEE,
    RENTER_HOST,
    RENTER_PORT,
    STATIC_HEIGHT,
    WALLET_URL,
)
from renter.consensus_client import ConsensusClient, StaticChainState
from renter.database import init_database
from renter.exceptions import (
    ChainStateError,
    DuplicateNicknameError,
    FileAccessError,
    HostDirectoryError,
    InvalidRentalRequestError,
    LedgerError,
    NegotiationRetriesExhaustedError,
    NoHostsAvailableError,
    PlacementStorageError,
    RentalNotFoundError,
    RenterException,
)
from renter.host_registry import load_host_registry
from renter.hostdb_client import HostDirectoryClient
from renter.negotiation import ContractNegotiator
from renter.repositories.placement_repository import PlacementRepository
from renter.routes.rental_routes import router as rental_router
from renter.service_locator import set_rental_service
from renter.services.contract_proposer import ContractProposer, NegotiationRetryPolicy
from renter.services.rental_service import RentalService
from renter.wallet_client import WalletClient

logger = setup_logging('renter')

app = FastAPI(
    title="Renter",
    description="Places file pieces with storage hosts under funded contracts",
    version="1.0.0"
)

_clients = []


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id
    return response


def build_host_directory(hosts_file: str = None):
    """HostRegistry seeded from hosts_file when set, else the remote host directory."""
    hosts_file = HOSTS_FILE if hosts_file is None else hosts_file
    if hosts_file:
        logger.info(f"Using local host registry from {hosts_file}")
        return load_host_registry(hosts_file)

    client = HostDirectoryClient(HOSTDB_URL)
    _clients.append(client)
    return client


def build_chain_state(static_height: str = None):
    """StaticChainState when a fixed height is configured, else the consensus daemon."""
    static_height = STATIC_HEIGHT if static_height is None else static_height
    if static_height:
        logger.info(f"Using fixed chain height {static_height}")
        return StaticChainState(int(static_height))

    client = ConsensusClient(CONSENSUS_URL)
    _clients.append(client)
    return client


@app.on_event("startup")
async def startup_event():
    """
    Initialize storage and wire the rental service to its collaborators.
    """
    logger.info("Renter starting up...")
    init_database()
    logger.info("Database initialized")

    wallet = WalletClient(WALLET_URL)
    _clients.append(wallet)
    directory = build_host_directory()
    chain = build_chain_state()

    proposer = ContractProposer(
        wallet=wallet,
        directory=directory,
        chain=chain,
        negotiator=ContractNegotiator(),
        miner_fee=MINER_FEE,
        retry_policy=NegotiationRetryPolicy.from_config(),
    )
    set_rental_service(RentalService(proposer, repository=PlacementRepository()))
    logger.info("Rental service ready")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Renter shutting down...")
    for client in _clients:
        client.close()
    _clients.clear()
    set_rental_service(None)


def _error_response(request: Request, exc: Exception, status_code: int, code: str, log_error: bool = False):
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    if log_error:
        logger.error(message)
    else:
        logger.warning(message)
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})


@app.exception_handler(DuplicateNicknameError)
async def duplicate_nickname_handler(request: Request, exc: DuplicateNicknameError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "DUPLICATE_NICKNAME")


@app.exception_handler(InvalidRentalRequestError)
async def invalid_rental_request_handler(request: Request, exc: InvalidRentalRequestError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_RENTAL_REQUEST")


@app.exception_handler(RentalNotFoundError)
async def rental_not_found_handler(request: Request, exc: RentalNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "RENTAL_NOT_FOUND")


@app.exception_handler(FileAccessError)
async def file_access_handler(request: Request, exc: FileAccessError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "FILE_ACCESS_ERROR")


@app.exception_handler(LedgerError)
async def ledger_handler(request: Request, exc: LedgerError):
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "LEDGER_ERROR", log_error=True)


@app.exception_handler(ChainStateError)
async def chain_state_handler(request: Request, exc: ChainStateError):
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "CHAIN_STATE_ERROR", log_error=True)


@app.exception_handler(NoHostsAvailableError)
async def no_hosts_handler(request: Request, exc: NoHostsAvailableError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "NO_HOSTS_AVAILABLE", log_error=True)


@app.exception_handler(HostDirectoryError)
async def host_directory_handler(request: Request, exc: HostDirectoryError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "HOST_DIRECTORY_ERROR", log_error=True)


@app.exception_handler(NegotiationRetriesExhaustedError)
async def retries_exhausted_handler(request: Request, exc: NegotiationRetriesExhaustedError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "NEGOTIATION_RETRIES_EXHAUSTED", log_error=True)


@app.exception_handler(PlacementStorageError)
async def placement_storage_handler(request: Request, exc: PlacementStorageError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "PLACEMENT_STORAGE_ERROR", log_error=True)


@app.exception_handler(RenterException)
async def renter_exception_handler(request: Request, exc: RenterException):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", log_error=True)


@app.get("/")
async def root():
    """
    Health check endpoint.
    """
    return {"status": "running", "service": "renter"}


app.include_router(rental_router)


if __name__ == "__main__":
    uvicorn.run(app, host=RENTER_HOST, port=RENTER_PORT)
