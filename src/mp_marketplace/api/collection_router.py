# src/mp_marketplace/api/collection_router.py
"""Development collections: register, mint and approve tokens over HTTP."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_collection.infrastructure.in_memory import InMemoryContractDirectory
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import get_sender
from src.mp_marketplace.application import collection_service as coll_svc
from src.mp_marketplace.application import service as svc
from src.mp_marketplace.application.schemas import (
    ApprovalRequest,
    CreateCollectionRequest,
    MintRequest,
)
from src.mp_matching.application.service import get_contracts, get_engine_lock, get_marketplace
from src.mp_matching.engine.engine import MatchingEngine

router = APIRouter(prefix="/collections", tags=["collections"])

Engine = Annotated[MatchingEngine, Depends(get_marketplace)]
Contracts = Annotated[InMemoryContractDirectory, Depends(get_contracts)]
Sender = Annotated[str, Depends(get_sender)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("", response_model=ApiResponse, status_code=201)
async def create_collection(
    req: CreateCollectionRequest, engine: Engine, contracts: Contracts, sender: Sender, db: Db
) -> ApiResponse:
    async with get_engine_lock():
        data = coll_svc.create_collection(contracts, req, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump())


@router.post("/{address}/mint", response_model=ApiResponse, status_code=201)
async def mint(
    address: str,
    req: MintRequest,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = coll_svc.mint(contracts, address, req, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump())


@router.post("/{address}/approve", response_model=ApiResponse)
async def approve(
    address: str,
    req: ApprovalRequest,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = coll_svc.approve(contracts, address, req, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump())


@router.post("/{address}/revoke", response_model=ApiResponse)
async def revoke(
    address: str,
    req: ApprovalRequest,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = coll_svc.revoke(contracts, address, req, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump())


@router.get("/{address}", response_model=ApiResponse)
async def get_collection(address: str, contracts: Contracts) -> ApiResponse:
    return success_response(coll_svc.get_collection(contracts, address).model_dump())


@router.get("/{address}/tokens/{token_id}", response_model=ApiResponse)
async def get_token(address: str, token_id: int, contracts: Contracts) -> ApiResponse:
    return success_response(coll_svc.get_token(contracts, address, token_id).model_dump())
