"""Single-use OAuth state tokens for the StatTaq connect flow.

The connect endpoint issues a random state bound to the athlete; the callback
must present the same state for the same athlete. Tokens live in Redis and are
consumed on first use.
"""

from uuid import UUID, uuid4

from redis.exceptions import RedisError

from src.clients.redis import get_client as get_redis_client
from src.utils.errors import OAuthStateError
from src.utils.logging import get_logger

logger = get_logger(__name__)

OAUTH_STATE_TTL_SECONDS = 10 * 60


def _state_key(state: str) -> str:
    return f"stattaq:oauth:state:{state}"


async def issue_oauth_state(athlete_id: UUID) -> str:
    state = str(uuid4())
    try:
        redis_client = await get_redis_client()
        await redis_client.set(_state_key(state), str(athlete_id), ex=OAUTH_STATE_TTL_SECONDS)
    except RedisError as e:
        logger.error("Failed to store StatTaq OAuth state", error=str(e))
        raise OAuthStateError("Unable to start StatTaq connection, please try again") from e
    return state


async def consume_oauth_state(state: str | None, athlete_id: str) -> bool:
    """Validate a state token against the athlete and delete it.

    Raises:
        OAuthStateError: the state store is unreachable

    Returns:
        True if the state was issued for this athlete and not used before
    """
    if not state:
        logger.debug("StatTaq OAuth state is missing")
        return False

    try:
        redis_client = await get_redis_client()
        stored_athlete_id = await redis_client.getdel(_state_key(state))
    except RedisError as e:
        logger.error("Failed to read StatTaq OAuth state", error=str(e))
        raise OAuthStateError("Unable to verify OAuth state, please try again") from e

    if not stored_athlete_id:
        logger.debug("StatTaq OAuth state not found or already used", state_prefix=state[:8])
        return False

    if stored_athlete_id != athlete_id:
        logger.warning(
            "StatTaq OAuth state athlete mismatch",
            expected=stored_athlete_id,
            received=athlete_id,
        )
        return False

    return True
