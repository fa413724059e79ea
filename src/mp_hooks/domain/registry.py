"""Sale-finalized hook registry.

Hooks are best-effort notifications: a failing or missing hook is logged and
reported back, never propagated, so one collaborator cannot block sales.
"""

import logging
from collections.abc import Callable, Iterable

from src.mp_common.errors import UnauthorizedError
from src.mp_hooks.domain.models import HookFailure, SaleEvent, SaleFinalizedHook

logger = logging.getLogger(__name__)

HookResolver = Callable[[str], SaleFinalizedHook | None]


class HookRegistry:
    def __init__(self, admin: str, resolve: HookResolver) -> None:
        self._admin = admin
        self._resolve = resolve
        self._hooks: list[str] = []

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def hooks(self) -> list[str]:
        return list(self._hooks)

    def add_hook(self, caller: str, address: str) -> bool:
        """Append a hook. Returns False when it was already registered."""
        if caller != self._admin:
            raise UnauthorizedError(f"{caller} is not the marketplace admin")
        if address in self._hooks:
            return False
        self._hooks.append(address)
        logger.info("Sale hook registered: %s (total=%d)", address, len(self._hooks))
        return True

    def dispatch(self, event: SaleEvent) -> list[HookFailure]:
        failures: list[HookFailure] = []
        for address in self._hooks:
            hook = self._resolve(address)
            if hook is None:
                failures.append(HookFailure(address, "hook contract not found"))
                logger.warning("Sale hook %s not found, skipped", address)
                continue
            try:
                hook.on_sale_finalized(event)
            except Exception as exc:  # noqa: BLE001 - hooks must not block sales
                failures.append(HookFailure(address, str(exc)))
                logger.warning(
                    "Sale hook %s failed for %s/%d: %s",
                    address, event.collection, event.token_id, exc,
                )
        return failures

    def restore(self, addresses: Iterable[str]) -> None:
        self._hooks = list(addresses)
