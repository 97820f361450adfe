"""
Adjudication of submitted assessments.

A policy only decides; persisting the outcome is Assessment.apply_decision's job, so a
manual review process can replace RandomApprovalPolicy without touching storage code.
"""
from __future__ import annotations

import random
from typing import Optional, Protocol

import structlog

from config import settings
from models.assessment import Assessment, Decision, Status

logger = structlog.get_logger()


class AdjudicationPolicy(Protocol):
    def decide(self, assessment: Assessment) -> Optional[Decision]:
        """Return a decision, or None to leave the assessment pending."""
        ...


class RandomApprovalPolicy:
    """Approves every assessment with a random rating. Placeholder until manual approvals."""

    def __init__(self, rating_min: int = 1, rating_max: int = 5, rng: Optional[random.Random] = None):
        if rating_min > rating_max:
            raise ValueError("rating_min must not exceed rating_max")
        self.rating_min = rating_min
        self.rating_max = rating_max
        self._rng = rng or random.Random()

    def decide(self, assessment: Assessment) -> Optional[Decision]:
        return Decision(status=Status.APPROVED, rating_id=self._rng.randint(self.rating_min, self.rating_max))


def default_policy() -> AdjudicationPolicy:
    return RandomApprovalPolicy(settings.rating_min, settings.rating_max)


async def adjudicate(assessment: Assessment, policy: Optional[AdjudicationPolicy] = None) -> bool:
    """Decide a pending assessment and persist the outcome. False if nothing was applied."""
    if not assessment.can_be_decided():
        return False
    policy = policy or default_policy()
    decision = policy.decide(assessment)
    if decision is None:
        logger.info("assessment_left_pending", assessment=str(assessment.reference))
        return False
    return await assessment.apply_decision(decision)
