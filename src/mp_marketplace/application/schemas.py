# src/mp_marketplace/application/schemas.py
from pydantic import BaseModel, Field, field_validator


class CoinSchema(BaseModel):
    amount: int = Field(ge=0)
    denom: str


class SetAskRequest(BaseModel):
    collection: str
    token_id: int = Field(ge=0)
    price: CoinSchema
    expires: int  # ns since epoch

    @field_validator("collection")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("collection must not contain whitespace")
        return v


class SetBidRequest(BaseModel):
    collection: str
    token_id: int = Field(ge=0)
    funds: CoinSchema  # attached funds = bid price
    expires: int


class AddHookRequest(BaseModel):
    hook: str


class AskResponse(BaseModel):
    collection: str
    token_id: int
    seller: str
    price: CoinSchema
    expires: int


class BidResponse(BaseModel):
    collection: str
    token_id: int
    bidder: str
    amount: CoinSchema
    expires: int


class SaleResponse(BaseModel):
    collection: str
    token_id: int
    seller: str
    buyer: str
    price: CoinSchema
    fee: int
    royalty: int
    seller_amount: int


class PlaceBidResponse(BaseModel):
    status: str
    bid: BidResponse
    sale: SaleResponse | None = None
    hook_failures: list[str] = []
    claim_error: str | None = None


class CancelBidResponse(BaseModel):
    collection: str
    token_id: int
    refunded: int


class SweepResponse(BaseModel):
    asks_removed: int
    bids_removed: int
    refunded: int


class ConfigResponse(BaseModel):
    address: str
    admin: str
    denom: str
    trading_fee_bps: int
    min_ask_expiry: int
    max_ask_expiry: int
    min_bid_expiry: int
    max_bid_expiry: int
    developer: str | None = None


class HooksResponse(BaseModel):
    hooks: list[str]


# --- development setup: genesis funds and collections ---

class DepositRequest(BaseModel):
    account: str
    amount: int = Field(gt=0)


class DepositResponse(BaseModel):
    account: str
    balance: int


class RoyaltySchema(BaseModel):
    payment_address: str
    share_bps: int = Field(ge=0, le=10_000)


class CreateCollectionRequest(BaseModel):
    address: str
    royalty: RoyaltySchema | None = None

    @field_validator("address")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("address must not contain whitespace")
        return v


class CollectionResponse(BaseModel):
    address: str
    minter: str
    royalty: RoyaltySchema | None = None


class MintRequest(BaseModel):
    token_id: int = Field(ge=0)
    owner: str


class ApprovalRequest(BaseModel):
    spender: str
    token_id: int = Field(ge=0)


class TokenResponse(BaseModel):
    collection: str
    token_id: int
    owner: str
    approvals: list[str] = []
