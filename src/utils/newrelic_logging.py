"""Forward error-level structlog events to New Relic."""

from collections.abc import MutableMapping
from typing import Any

import newrelic.agent

NOTICED_LEVELS = frozenset({"error", "critical", "exception"})


def newrelic_error_processor(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Report error-level logs to New Relic and pass every event through unchanged.

    notice_error() picks up the active exception when there is one, so
    `logger.exception(...)` inside an except block reports the real traceback.
    """
    if method_name in NOTICED_LEVELS:
        newrelic.agent.notice_error(
            attributes={"log.message": str(event_dict.get("message", event_dict.get("event", "")))}
        )

    return event_dict
