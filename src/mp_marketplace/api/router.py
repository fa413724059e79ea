# src/mp_marketplace/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_collection.infrastructure.in_memory import InMemoryContractDirectory
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import get_block_time, get_sender
from src.mp_marketplace.application import service as svc
from src.mp_marketplace.application.schemas import (
    AddHookRequest,
    DepositRequest,
    SetAskRequest,
    SetBidRequest,
)
from src.mp_matching.application.service import get_contracts, get_engine_lock, get_marketplace
from src.mp_matching.engine.engine import MatchingEngine

router = APIRouter(prefix="/marketplace", tags=["marketplace"])

Engine = Annotated[MatchingEngine, Depends(get_marketplace)]
Contracts = Annotated[InMemoryContractDirectory, Depends(get_contracts)]
Sender = Annotated[str, Depends(get_sender)]
BlockTime = Annotated[int, Depends(get_block_time)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/asks", response_model=ApiResponse, status_code=201)
async def set_ask(
    req: SetAskRequest,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    now: BlockTime,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = svc.set_ask(engine, req, sender, now)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump(), now)


@router.delete("/asks/{collection}/{token_id}", response_model=ApiResponse)
async def remove_ask(
    collection: str,
    token_id: int,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    now: BlockTime,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = svc.remove_ask(engine, collection, token_id, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump(), now)


@router.post("/bids", response_model=ApiResponse, status_code=201)
async def set_bid(
    req: SetBidRequest,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    now: BlockTime,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = svc.set_bid(engine, req, sender, now)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump(), now)


@router.delete("/bids/{collection}/{token_id}", response_model=ApiResponse)
async def remove_bid(
    collection: str,
    token_id: int,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    now: BlockTime,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = svc.remove_bid(engine, collection, token_id, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump(), now)


@router.post("/expired/sweep", response_model=ApiResponse)
async def sweep_expired(
    engine: Engine, contracts: Contracts, now: BlockTime, db: Db
) -> ApiResponse:
    async with get_engine_lock():
        data = svc.sweep_expired(engine, now)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump(), now)


@router.post("/admin/hooks", response_model=ApiResponse)
async def add_sale_hook(
    req: AddHookRequest,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    now: BlockTime,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = svc.add_sale_hook(engine, req.hook, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump(), now)


@router.post("/admin/deposits", response_model=ApiResponse)
async def deposit(
    req: DepositRequest,
    engine: Engine,
    contracts: Contracts,
    sender: Sender,
    now: BlockTime,
    db: Db,
) -> ApiResponse:
    async with get_engine_lock():
        data = svc.deposit(engine, req, sender)
        await svc.persist(engine, contracts, db)
    return success_response(data.model_dump(), now)


@router.get("/asks/{collection}/{token_id}", response_model=ApiResponse)
async def get_ask(collection: str, token_id: int, engine: Engine, now: BlockTime) -> ApiResponse:
    ask = svc.get_ask(engine, collection, token_id, now)
    return success_response(ask.model_dump() if ask else None, now)


@router.get("/bids/{collection}/{token_id}", response_model=ApiResponse)
async def list_bids(collection: str, token_id: int, engine: Engine, now: BlockTime) -> ApiResponse:
    bids = svc.list_bids(engine, collection, token_id, now)
    return success_response([b.model_dump() for b in bids], now)


@router.get("/balances/{account}", response_model=ApiResponse)
async def get_balance(account: str, engine: Engine) -> ApiResponse:
    return success_response({"account": account, "balance": engine.bank.balance_of(account)})


@router.get("/config", response_model=ApiResponse)
async def get_config(engine: Engine) -> ApiResponse:
    return success_response(svc.get_config(engine).model_dump())


@router.get("/hooks", response_model=ApiResponse)
async def list_hooks(engine: Engine) -> ApiResponse:
    return success_response({"hooks": engine.hooks.hooks})
