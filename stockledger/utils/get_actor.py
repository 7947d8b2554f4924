import logging

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)


async def get_actor_id(x_actor_id: int | None = Header(None)) -> int:
    """Actor id stamped on movements. Authentication happens upstream; only the id reaches the ledger."""
    if x_actor_id is None or x_actor_id <= 0:
        logger.warning("Ledger request without a valid actor id")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id header is required",
        )
    return x_actor_id
