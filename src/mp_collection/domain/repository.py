"""Collaborator Protocols the engine depends on.

Unit tests inject doubles that conform to these Protocols; the in-memory
infrastructure provides reference implementations.
"""

from typing import Protocol

from src.mp_collection.domain.models import RoyaltyInfo
from src.mp_hooks.domain.models import SaleFinalizedHook


class CollectionProtocol(Protocol):
    def owner_of(self, token_id: int) -> str: ...

    def transfer_from(
        self, operator: str, token_id: int, owner: str, recipient: str
    ) -> None: ...

    def is_approved(self, token_id: int, operator: str) -> bool: ...

    def royalty_info(self) -> RoyaltyInfo | None: ...


class ContractDirectoryProtocol(Protocol):
    """Resolves contract addresses to collaborator objects."""

    def collection(self, address: str) -> CollectionProtocol | None: ...

    def hook(self, address: str) -> SaleFinalizedHook | None: ...
