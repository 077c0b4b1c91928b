"""Confidence-gated autonomy policy.

Decides, from an agent's configuration, whether a new proposal waits for a
reviewer, is approved on creation, or skips the review queue entirely.
"""

from enum import Enum
from typing import Union

from curation.domain.agent_configuration import AgentConfiguration
from curation.domain.value_objects import AutonomyLevel, ConfidenceScore, RawConfidence


class ReviewDecision(str, Enum):
    REQUIRE_REVIEW = "RequireReview"
    AUTO_APPROVE = "AutoApprove"
    BYPASS_REVIEW = "BypassReview"


def meets_threshold(
    configuration: AgentConfiguration, confidence: Union[ConfidenceScore, RawConfidence]
) -> bool:
    return ConfidenceScore.coerce(confidence) >= configuration.confidence_threshold


def review_decision(
    configuration: AgentConfiguration, confidence: Union[ConfidenceScore, RawConfidence]
) -> ReviewDecision:
    """Map autonomy level and confidence onto a review decision.

    ReviewRequired agents always go to a reviewer. SemiAutonomous agents are
    approved on creation and FullyAutonomous agents bypass review, in both
    cases only when confidence reaches the configured threshold.
    """
    score = ConfidenceScore.coerce(confidence)
    level = configuration.autonomy_level

    if level is AutonomyLevel.REVIEW_REQUIRED or not meets_threshold(configuration, score):
        return ReviewDecision.REQUIRE_REVIEW
    if level is AutonomyLevel.SEMI_AUTONOMOUS:
        return ReviewDecision.AUTO_APPROVE
    return ReviewDecision.BYPASS_REVIEW


def requires_review(
    configuration: AgentConfiguration, confidence: Union[ConfidenceScore, RawConfidence]
) -> bool:
    return review_decision(configuration, confidence) is ReviewDecision.REQUIRE_REVIEW
