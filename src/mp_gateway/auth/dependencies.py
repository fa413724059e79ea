"""Caller identity and block time for marketplace requests.

The sender address comes from the X-Sender header (signature checking is done
upstream by the node). Block time is read here and nowhere else, so tests can
override it with a fixed instant.
"""

from typing import Annotated

from fastapi import Header

from src.mp_common.datetime_utils import utc_now_ns
from src.mp_common.errors import UnauthorizedError


async def get_sender(x_sender: Annotated[str | None, Header()] = None) -> str:
    if not x_sender or x_sender != x_sender.strip():
        raise UnauthorizedError("missing X-Sender header")
    return x_sender


async def get_block_time() -> int:
    return utc_now_ns()
