"""Imports every activity and workflow module so their decorators register them."""

from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


def discover_all() -> None:
    from curation.services import event_handlers  # noqa: F401
    from curation.temporal.activities import (  # noqa: F401
        outbox_activities,
        queue_activities,
        review_activities,
    )
    from curation.temporal.workflows import (  # noqa: F401
        expire_stale_proposals,
        process_file_change,
        redeliver_domain_events,
    )

    LOGGER.debug("Temporal activities and workflows imported")
