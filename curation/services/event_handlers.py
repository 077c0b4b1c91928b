"""Default in-process subscribers for domain events.

Publication of approved content is an external concern; these handlers
record the hand-off in the log.
"""

from curation.core.event_dispatcher import event_dispatcher
from curation.domain.events import DataExtracted, ProposalApproved, ProposalCreated
from curation.utils.logging import get_logger

LOGGER = get_logger(__name__)


@event_dispatcher.register(ProposalCreated.event_type)
async def log_proposal_created(event: ProposalCreated) -> None:
    LOGGER.info(
        f"Proposal {event.proposal_id} from {event.agent_type} awaiting decision "
        f"(confidence {event.confidence_score})"
    )


@event_dispatcher.register(ProposalApproved.event_type)
async def log_proposal_approved(event: ProposalApproved) -> None:
    LOGGER.info(f"Proposal {event.proposal_id} approved for publication to {event.output_destination}")


@event_dispatcher.register(DataExtracted.event_type)
async def log_data_extracted(event: DataExtracted) -> None:
    LOGGER.debug(f"{event.agent_type} extracted {event.data_type}={event.data_value} from {event.source_file_path}")
