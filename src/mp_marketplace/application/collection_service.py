# src/mp_marketplace/application/collection_service.py
"""Setup operations on the in-memory collections: register, mint, approve.

These stand in for the external NFT contract so the HTTP service can run a
full list → bid → settle cycle on its own.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from src.mp_collection.domain.models import (
    AlreadyMinted,
    CollectionError,
    RoyaltyInfo,
    TokenNotFound,
)
from src.mp_collection.infrastructure.in_memory import (
    InMemoryCollection,
    InMemoryContractDirectory,
)
from src.mp_common.errors import (
    CollectionExistsError,
    CollectionNotFoundError,
    TokenAlreadyMintedError,
    TokenNotFoundError,
    UnauthorizedError,
)
from src.mp_marketplace.application.schemas import (
    ApprovalRequest,
    CollectionResponse,
    CreateCollectionRequest,
    MintRequest,
    RoyaltySchema,
    TokenResponse,
)

logger = logging.getLogger(__name__)


@contextmanager
def _collection_errors(collection: str, token_id: int) -> Iterator[None]:
    try:
        yield
    except TokenNotFound as exc:
        raise TokenNotFoundError(collection, token_id) from exc
    except AlreadyMinted as exc:
        raise TokenAlreadyMintedError(collection, token_id) from exc
    except CollectionError as exc:
        raise UnauthorizedError(str(exc)) from exc


def _get(contracts: InMemoryContractDirectory, address: str) -> InMemoryCollection:
    coll = contracts.collection(address)
    if coll is None:
        raise CollectionNotFoundError(address)
    return coll


def _token_response(coll: InMemoryCollection, token_id: int) -> TokenResponse:
    return TokenResponse(
        collection=coll.address,
        token_id=token_id,
        owner=coll.owner_of(token_id),
        approvals=sorted(coll.approvals().get(token_id, set())),
    )


def create_collection(
    contracts: InMemoryContractDirectory, req: CreateCollectionRequest, sender: str
) -> CollectionResponse:
    """Register a collection with the sender as its minter."""
    if contracts.collection(req.address) is not None:
        raise CollectionExistsError(req.address)
    royalty = None
    if req.royalty is not None:
        royalty = RoyaltyInfo(req.royalty.payment_address, req.royalty.share_bps)
    contracts.add_collection(InMemoryCollection(address=req.address, minter=sender, royalty=royalty))
    logger.info("Collection registered: %s minter=%s", req.address, sender)
    return CollectionResponse(address=req.address, minter=sender, royalty=req.royalty)


def mint(
    contracts: InMemoryContractDirectory, address: str, req: MintRequest, sender: str
) -> TokenResponse:
    coll = _get(contracts, address)
    with _collection_errors(address, req.token_id):
        coll.mint(sender, req.token_id, req.owner)
    return _token_response(coll, req.token_id)


def approve(
    contracts: InMemoryContractDirectory, address: str, req: ApprovalRequest, sender: str
) -> TokenResponse:
    coll = _get(contracts, address)
    with _collection_errors(address, req.token_id):
        coll.approve(sender, req.spender, req.token_id)
    return _token_response(coll, req.token_id)


def revoke(
    contracts: InMemoryContractDirectory, address: str, req: ApprovalRequest, sender: str
) -> TokenResponse:
    coll = _get(contracts, address)
    with _collection_errors(address, req.token_id):
        coll.revoke(sender, req.spender, req.token_id)
    return _token_response(coll, req.token_id)


def get_collection(contracts: InMemoryContractDirectory, address: str) -> CollectionResponse:
    coll = _get(contracts, address)
    royalty = coll.royalty_info()
    return CollectionResponse(
        address=coll.address,
        minter=coll.minter,
        royalty=RoyaltySchema(payment_address=royalty.payment_address,
                              share_bps=royalty.share_bps) if royalty else None,
    )


def get_token(contracts: InMemoryContractDirectory, address: str, token_id: int) -> TokenResponse:
    coll = _get(contracts, address)
    with _collection_errors(address, token_id):
        return _token_response(coll, token_id)
