"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Authorization
  2xxx: Order book / lookup
  3xxx: Parameter policy (expiry, price, config)
  4xxx: Funds / escrow
  5xxx: Settlement
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Authorization ---

class UnauthorizedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, f"Unauthorized: {detail}", 403)


# --- 2xxx: Order book ---

class OrderNotFoundError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2001, f"Order not found: {detail}", 404)


class CollectionNotFoundError(AppError):
    def __init__(self, collection: str) -> None:
        super().__init__(2002, f"Collection not found: {collection}", 404)


class AlreadyListedError(AppError):
    def __init__(self, collection: str, token_id: int) -> None:
        super().__init__(
            2003, f"Token {token_id} of {collection} already has an active ask", 409
        )


class DuplicateBidError(AppError):
    def __init__(self, collection: str, token_id: int, bidder: str) -> None:
        super().__init__(
            2004,
            f"Bidder {bidder} already has an active bid on token {token_id} of {collection}",
            409,
        )


class CollectionExistsError(AppError):
    def __init__(self, collection: str) -> None:
        super().__init__(2005, f"Collection already registered: {collection}", 409)


class TokenNotFoundError(AppError):
    def __init__(self, collection: str, token_id: int) -> None:
        super().__init__(2006, f"Token {token_id} of {collection} not found", 404)


class TokenAlreadyMintedError(AppError):
    def __init__(self, collection: str, token_id: int) -> None:
        super().__init__(2007, f"Token {token_id} of {collection} already minted", 409)


# --- 3xxx: Parameter policy ---

class InvalidExpiryError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Invalid expiry: {detail}", 422)


class InvalidPriceError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Invalid price: {detail}", 422)


class InvalidConfigError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid config: {detail}", 500)


# --- 4xxx: Funds ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            4001,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


class UnknownEscrowError(AppError):
    """Escrow tag missing or already released. Unreachable in correct operation."""

    def __init__(self, reference: str) -> None:
        super().__init__(4002, f"Unknown escrow: {reference}", 500)


# --- 5xxx: Settlement ---

class SettlementFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Settlement failed: {detail}", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
