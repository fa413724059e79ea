"""In-memory collaborators: an sg721-style collection and a contract directory.

Used by the development HTTP surface and the test-suite. They implement the
collaborator Protocols only, not the full cw721 standard.
"""

import logging
from dataclasses import dataclass, field

from src.mp_collection.domain.models import (
    AlreadyMinted,
    NotApproved,
    NotOwner,
    RoyaltyInfo,
    TokenNotFound,
)
from src.mp_hooks.domain.models import SaleFinalizedHook

logger = logging.getLogger(__name__)


@dataclass
class InMemoryCollection:
    address: str
    minter: str
    royalty: RoyaltyInfo | None = None
    _owners: dict[int, str] = field(default_factory=dict)
    _approvals: dict[int, set[str]] = field(default_factory=dict)

    def mint(self, sender: str, token_id: int, owner: str) -> None:
        if sender != self.minter:
            raise NotOwner(token_id, sender)
        if token_id in self._owners:
            raise AlreadyMinted(token_id)
        self._owners[token_id] = owner

    def approve(self, sender: str, spender: str, token_id: int) -> None:
        if self.owner_of(token_id) != sender:
            raise NotOwner(token_id, sender)
        self._approvals.setdefault(token_id, set()).add(spender)

    def revoke(self, sender: str, spender: str, token_id: int) -> None:
        if self.owner_of(token_id) != sender:
            raise NotOwner(token_id, sender)
        self._approvals.get(token_id, set()).discard(spender)

    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise TokenNotFound(token_id)
        return owner

    def transfer_from(self, operator: str, token_id: int, owner: str, recipient: str) -> None:
        if self.owner_of(token_id) != owner:
            raise NotOwner(token_id, owner)
        if operator != owner and operator not in self._approvals.get(token_id, set()):
            raise NotApproved(token_id, operator)
        self._owners[token_id] = recipient
        # approvals are cleared on transfer, as in cw721
        self._approvals.pop(token_id, None)
        logger.debug("%s: token %d %s -> %s", self.address, token_id, owner, recipient)

    def is_approved(self, token_id: int, operator: str) -> bool:
        """True if `operator` may transfer the token on its owner's behalf."""
        owner = self.owner_of(token_id)
        return operator == owner or operator in self._approvals.get(token_id, set())

    def royalty_info(self) -> RoyaltyInfo | None:
        return self.royalty

    def tokens(self) -> dict[int, str]:
        return dict(self._owners)

    def approvals(self) -> dict[int, set[str]]:
        return {t: set(s) for t, s in self._approvals.items() if s}

    def restore(self, owners: dict[int, str], approvals: dict[int, set[str]]) -> None:
        self._owners = dict(owners)
        self._approvals = {t: set(s) for t, s in approvals.items()}


@dataclass
class InMemoryContractDirectory:
    collections: dict[str, InMemoryCollection] = field(default_factory=dict)
    hooks: dict[str, SaleFinalizedHook] = field(default_factory=dict)

    def add_collection(self, coll: InMemoryCollection) -> InMemoryCollection:
        self.collections[coll.address] = coll
        return coll

    def add_hook_contract(self, address: str, hook: SaleFinalizedHook) -> None:
        self.hooks[address] = hook

    def replace_collections(self, colls: list[InMemoryCollection]) -> None:
        self.collections = {c.address: c for c in colls}

    def collection(self, address: str) -> InMemoryCollection | None:
        return self.collections.get(address)

    def hook(self, address: str) -> SaleFinalizedHook | None:
        return self.hooks.get(address)
