"""Collection collaborator models and the errors a collection may raise."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RoyaltyInfo:
    payment_address: str
    share_bps: int  # of the sale price


class CollectionError(Exception):
    """Raised by a collection contract; the marketplace maps it to its own errors."""


class TokenNotFound(CollectionError):
    def __init__(self, token_id: int) -> None:
        super().__init__(f"token {token_id} not found")


class NotOwner(CollectionError):
    def __init__(self, token_id: int, account: str) -> None:
        super().__init__(f"{account} does not own token {token_id}")


class AlreadyMinted(CollectionError):
    def __init__(self, token_id: int) -> None:
        super().__init__(f"token {token_id} already minted")


class NotApproved(CollectionError):
    def __init__(self, token_id: int, operator: str) -> None:
        super().__init__(f"{operator} is not approved for token {token_id}")
