"""Forwards action-completion signals to the claim module."""

import logging
from typing import Protocol

from src.mp_common.enums import ClaimAction

logger = logging.getLogger(__name__)


class ClaimCollaboratorProtocol(Protocol):
    def notify_action_completed(self, account: str, action: ClaimAction) -> None: ...


class ClaimBridge:
    def __init__(self, claim: ClaimCollaboratorProtocol | None, sender: str) -> None:
        self._claim = claim
        self._sender = sender  # marketplace address, for log correlation only

    def notify_bid(self, bidder: str, action: ClaimAction = ClaimAction.BID_NFT) -> str | None:
        """Signal the action once. Returns an error string if the collaborator failed.

        The bid is already committed when this runs, so a failure is reported
        instead of raised.
        """
        if self._claim is None:
            return None
        try:
            self._claim.notify_action_completed(bidder, action)
        except Exception as exc:  # noqa: BLE001 - claim signal is fire-and-forget
            logger.warning("Claim signal %s for %s from %s failed: %s",
                           action.value, bidder, self._sender, exc)
            return str(exc)
        logger.debug("Claim signal %s sent for %s", action.value, bidder)
        return None
