"""
Keyword-based ticket classifier for the Ticket Intake service.

Scores the subject and description of a ticket against fixed keyword
dictionaries to pick a category and a priority, with a heuristic
confidence score and a human-readable explanation.

Matching is phrase containment on the lower-cased text, so "fail" also
matches "failed" and "add" matches "address". The dictionaries are built
once at import time and never change.
"""

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from .models import Category, ClassificationResult, Priority, Ticket


logger = logging.getLogger(__name__)


# Declaration order is the tie-break order when two categories score equally
CATEGORY_KEYWORDS: Mapping[Category, tuple[str, ...]] = MappingProxyType({
    Category.ACCOUNT_ACCESS: (
        "login", "password", "signin", "sign-in", "sign in", "2fa",
        "two-factor", "authentication", "authorize", "access", "locked out",
        "reset password", "forgot password", "can't login", "cannot login",
        "account locked",
    ),
    Category.TECHNICAL_ISSUE: (
        "bug", "error", "crash", "not working", "broken", "issue", "problem",
        "fail", "failed", "failure", "exception", "500", "404", "timeout",
        "slow", "performance", "down", "outage", "unavailable",
    ),
    Category.BILLING_QUESTION: (
        "payment", "invoice", "refund", "charge", "billing", "subscription",
        "credit card", "paypal", "price", "cost", "fee", "discount", "coupon",
        "trial", "upgrade", "downgrade", "cancel subscription",
    ),
    Category.FEATURE_REQUEST: (
        "enhancement", "feature", "suggestion", "would be nice", "request",
        "improve", "add", "new feature", "functionality", "wish", "idea",
        "recommend", "could you", "it would be great",
    ),
    Category.BUG_REPORT: (
        "defect", "reproduce", "steps to reproduce", "regression", "broken",
        "not as expected", "unexpected behavior", "malfunction", "glitch",
        "inconsistent", "incorrect", "wrong result",
    ),
})

PRIORITY_KEYWORDS: Mapping[Priority, tuple[str, ...]] = MappingProxyType({
    Priority.URGENT: (
        "urgent", "critical", "emergency", "production down", "security",
        "data loss", "can't access", "completely broken", "affecting all users",
        "business critical", "asap", "immediate", "right now", "at risk",
    ),
    Priority.HIGH: (
        "important", "blocking", "high priority", "serious", "major",
        "significant impact", "need soon", "priority", "affecting many",
    ),
    Priority.MEDIUM: (
        "moderate", "normal", "standard", "regular", "typical",
    ),
    Priority.LOW: (
        "minor", "low priority", "nice to have", "when possible",
        "no rush", "whenever", "cosmetic", "trivial",
    ),
})

# URGENT outranks HIGH, which outranks LOW; MEDIUM is the fallback
PRIORITY_PRECEDENCE = (Priority.URGENT, Priority.HIGH, Priority.LOW)

CATEGORY_WEIGHT = 0.25
PRIORITY_WEIGHT = 0.3
NO_PRIORITY_CONFIDENCE = 0.5

LOW_CONFIDENCE_THRESHOLD = 0.5
MEDIUM_CONFIDENCE_THRESHOLD = 0.7

MANUAL_OVERRIDE_REASONING = "Manual classification override by user"

REASONING_KEYWORD_LIMIT = 5


def find_matches(text: str, keywords: tuple[str, ...]) -> list[str]:
    """Return the keywords contained in ``text``, in dictionary order."""
    return [keyword for keyword in keywords if keyword.lower() in text]


def build_reasoning(
    category: Category,
    priority: Priority,
    category_matches: list[str],
    matched_keywords: list[str],
    confidence: float,
) -> str:
    """Explain a classification in one or two sentences."""
    if category is Category.OTHER or not category_matches:
        reasoning = "No category keywords matched, defaulting to 'Other'."
    else:
        shown = ", ".join(matched_keywords[:REASONING_KEYWORD_LIMIT])
        reasoning = f"Classified as '{category.display_name}' based on keywords: {shown}."

    reasoning += f" Priority set to '{priority.display_name}'"

    if confidence < LOW_CONFIDENCE_THRESHOLD:
        reasoning += " (Low confidence - manual review recommended)"
    elif confidence < MEDIUM_CONFIDENCE_THRESHOLD:
        reasoning += " (Medium confidence)"
    else:
        reasoning += " (High confidence)"

    return reasoning


class KeywordClassifier:
    """
    Deterministic classifier over the fixed keyword dictionaries.

    ``classify`` is a pure function of the subject and description (apart
    from the ``classified_at`` stamp). ``reclassify_ticket`` always replaces
    the ticket's classification, even a manual override; only
    ``manual_override`` marks a result as manual.
    """

    def classify(
        self,
        subject: Optional[str],
        description: Optional[str],
    ) -> ClassificationResult:
        """
        Classify free text into a category and priority.

        Args:
            subject: Ticket subject line.
            description: Ticket body.

        Returns:
            A fresh ClassificationResult.
        """
        text = f"{subject or ''} {description or ''}".lower()

        category_matches = {
            category: find_matches(text, keywords)
            for category, keywords in CATEGORY_KEYWORDS.items()
        }
        priority_matches = {
            priority: find_matches(text, keywords)
            for priority, keywords in PRIORITY_KEYWORDS.items()
        }

        category = Category.OTHER
        best_score = 0
        for candidate, matches in category_matches.items():
            if len(matches) > best_score:
                category = candidate
                best_score = len(matches)

        priority = Priority.MEDIUM
        for candidate in PRIORITY_PRECEDENCE:
            if priority_matches[candidate]:
                priority = candidate
                break

        if category is Category.OTHER:
            category_confidence = 0.0
        else:
            category_confidence = min(1.0, best_score * CATEGORY_WEIGHT)

        if not any(priority_matches.values()):
            priority_confidence = NO_PRIORITY_CONFIDENCE
        else:
            priority_confidence = min(
                1.0, len(priority_matches[priority]) * PRIORITY_WEIGHT
            )

        confidence = (category_confidence + priority_confidence) / 2

        selected_category_matches = category_matches.get(category, [])
        matched_keywords = selected_category_matches + priority_matches[priority]

        reasoning = build_reasoning(
            category,
            priority,
            selected_category_matches,
            matched_keywords,
            confidence,
        )

        logger.debug(
            f"Classified text as {category.value} / {priority.value} "
            f"(confidence: {confidence:.2f}, keywords: {matched_keywords})"
        )

        return ClassificationResult(
            category=category,
            priority=priority,
            confidence_score=confidence,
            matched_keywords=matched_keywords,
            reasoning=reasoning,
            classified_at=datetime.now(),
            is_manual_override=False,
        )

    def classify_ticket(self, ticket: Ticket) -> ClassificationResult:
        return self.classify(ticket.subject, ticket.description)

    def reclassify_ticket(self, ticket: Ticket) -> ClassificationResult:
        """
        Re-run classification and overwrite the ticket's classification.

        A previous manual override is replaced as well.
        """
        result = self.classify_ticket(ticket)
        ticket.classification = result
        ticket.category = result.category
        ticket.priority = result.priority

        logger.info(
            f"Reclassified ticket {ticket.id} - Category: {result.category.value}, "
            f"Priority: {result.priority.value}, Confidence: {result.confidence_score:.2f}"
        )
        return result

    def manual_override(
        self,
        ticket: Ticket,
        override: ClassificationResult,
    ) -> ClassificationResult:
        """
        Apply a human-supplied classification without re-scoring the text.

        Returns:
            The stored result, flagged as a manual override and stamped now.
        """
        result = override.model_copy(update={
            "is_manual_override": True,
            "classified_at": datetime.now(),
            "reasoning": override.reasoning or MANUAL_OVERRIDE_REASONING,
        })

        ticket.classification = result
        ticket.category = result.category
        ticket.priority = result.priority

        logger.info(
            f"Manual override for ticket {ticket.id} - Category: {result.category.value}, "
            f"Priority: {result.priority.value}"
        )
        return result
