"""
Ticket service: the creation, lookup and update boundary used by imports.

Storage is abstracted behind ``TicketRepository``; an in-memory
implementation is provided for the CLI and for tests.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Protocol
from uuid import UUID

from .classifier import KeywordClassifier
from .errors import RecordValidationError, TicketNotFoundError
from .models import (
    Category,
    ClassificationResult,
    Customer,
    NormalizedRecord,
    Priority,
    Status,
    Ticket,
    TicketMetadata,
    TicketPage,
    TicketUpdate,
)
from .validation import TicketValidator


logger = logging.getLogger(__name__)


TicketPredicate = Callable[[Ticket], bool]


class TicketRepository(Protocol):
    """Storage operations the ticket service depends on."""

    def save(self, ticket: Ticket) -> Ticket: ...

    def find_by_id(self, ticket_id: UUID) -> Optional[Ticket]: ...

    def exists_by_id(self, ticket_id: UUID) -> bool: ...

    def delete_by_id(self, ticket_id: UUID) -> None: ...

    def find_all(self, predicate: Optional[TicketPredicate] = None) -> list[Ticket]: ...

    def count_by_status(self, status: Status) -> int: ...


class InMemoryTicketRepository:
    """Dictionary-backed repository preserving insertion order."""

    def __init__(self):
        self._tickets: dict[UUID, Ticket] = {}

    def save(self, ticket: Ticket) -> Ticket:
        ticket.updated_at = datetime.now()
        self._tickets[ticket.id] = ticket
        return ticket

    def find_by_id(self, ticket_id: UUID) -> Optional[Ticket]:
        return self._tickets.get(ticket_id)

    def exists_by_id(self, ticket_id: UUID) -> bool:
        return ticket_id in self._tickets

    def delete_by_id(self, ticket_id: UUID) -> None:
        self._tickets.pop(ticket_id, None)

    def find_all(self, predicate: Optional[TicketPredicate] = None) -> list[Ticket]:
        tickets = list(self._tickets.values())
        if predicate is None:
            return tickets
        return [ticket for ticket in tickets if predicate(ticket)]

    def count_by_status(self, status: Status) -> int:
        return sum(1 for ticket in self._tickets.values() if ticket.status is status)

    def __len__(self) -> int:
        return len(self._tickets)


def _enum_filter(name: str, raw: str, enum_type, attribute: str) -> Optional[TicketPredicate]:
    member = enum_type.parse(raw)
    if member is None:
        logger.warning(f"Invalid {name} filter value: {raw}")
        return None
    return lambda ticket: getattr(ticket, attribute) is member


def build_filter(filters: dict[str, str]) -> TicketPredicate:
    """
    Combine listing filters into one predicate.

    Supported keys: status, category, priority, customerId, customerEmail,
    assignedTo and keyword (case-insensitive search in subject and
    description). Unknown enum values are ignored.
    """
    predicates: list[TicketPredicate] = []

    for name, enum_type in (
        ("status", Status),
        ("category", Category),
        ("priority", Priority),
    ):
        if filters.get(name):
            predicate = _enum_filter(name, filters[name], enum_type, name)
            if predicate is not None:
                predicates.append(predicate)

    if filters.get("customerId"):
        customer_id = filters["customerId"]
        predicates.append(lambda ticket: ticket.customer.customer_id == customer_id)

    if filters.get("customerEmail"):
        customer_email = filters["customerEmail"]
        predicates.append(lambda ticket: ticket.customer.customer_email == customer_email)

    if filters.get("assignedTo"):
        assignee = filters["assignedTo"]
        predicates.append(lambda ticket: ticket.assigned_to == assignee)

    if filters.get("keyword"):
        keyword = filters["keyword"].lower()
        predicates.append(
            lambda ticket: keyword in ticket.subject.lower()
            or keyword in ticket.description.lower()
        )

    return lambda ticket: all(predicate(ticket) for predicate in predicates)


class TicketService:
    """
    Create, read, update, delete and list tickets.

    Every created ticket is classified automatically; the classification
    decides the stored category and priority.
    """

    def __init__(
        self,
        repository: Optional[TicketRepository] = None,
        classifier: Optional[KeywordClassifier] = None,
        validator: Optional[TicketValidator] = None,
    ):
        self._repository = repository if repository is not None else InMemoryTicketRepository()
        self._classifier = classifier or KeywordClassifier()
        self._validator = validator or TicketValidator()

    @property
    def repository(self) -> TicketRepository:
        return self._repository

    def create_ticket(
        self,
        record: NormalizedRecord,
        import_batch: Optional[str] = None,
    ) -> Ticket:
        """
        Validate, classify and store a new ticket.

        Raises:
            RecordValidationError: If the record violates any field rule.
        """
        logger.debug(f"Creating new ticket with subject: {record.subject}")
        self._validator.validate_ticket_data(record)

        ticket = Ticket(
            customer=Customer(
                customer_id=record.customer_id.strip(),
                customer_email=record.customer_email.strip(),
                customer_name=record.customer_name.strip(),
            ),
            subject=record.subject,
            description=record.description,
            category=record.category or Category.OTHER,
            priority=record.priority or Priority.MEDIUM,
            status=record.status or Status.NEW,
            assigned_to=record.assigned_to,
            tags=set(record.tags),
            metadata=TicketMetadata(
                source=record.source,
                browser=record.browser,
                device_type=record.device_type,
                import_batch=import_batch,
            ),
        )

        classification = self._classifier.classify_ticket(ticket)
        ticket.classification = classification
        ticket.category = classification.category
        ticket.priority = classification.priority

        saved = self._repository.save(ticket)
        logger.info(
            f"Created ticket with ID: {saved.id} - Category: {saved.category.value}, "
            f"Priority: {saved.priority.value}"
        )
        return saved

    def get_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = self._repository.find_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def update_ticket(self, ticket_id: UUID, update: TicketUpdate) -> Ticket:
        """
        Apply a partial update.

        Resolving or closing a ticket stamps ``resolved_at`` once. Changing
        the subject or description re-runs classification.

        Raises:
            TicketNotFoundError: If no ticket has the given id.
            RecordValidationError: If the new subject or description is
                blank or out of bounds.
        """
        ticket = self.get_ticket(ticket_id)
        self._validator.validate_ticket_update(update.subject, update.description)
        changes = update.model_dump(exclude_unset=True, exclude_none=True)

        for name, value in changes.items():
            setattr(ticket, name, value)

        if update.status in (Status.RESOLVED, Status.CLOSED) and ticket.resolved_at is None:
            ticket.resolved_at = datetime.now()

        if "subject" in changes or "description" in changes:
            self._classifier.reclassify_ticket(ticket)

        saved = self._repository.save(ticket)
        logger.info(f"Updated ticket with ID: {saved.id}")
        return saved

    def delete_ticket(self, ticket_id: UUID) -> None:
        if not self._repository.exists_by_id(ticket_id):
            raise TicketNotFoundError(ticket_id)
        self._repository.delete_by_id(ticket_id)
        logger.info(f"Deleted ticket with ID: {ticket_id}")

    def list_tickets(
        self,
        filters: Optional[dict[str, str]] = None,
        page: int = 0,
        size: int = 20,
    ) -> TicketPage:
        """
        List tickets matching all given filters, one page at a time.

        Args:
            filters: See ``build_filter`` for supported keys.
            page: Zero-based page index.
            size: Page size, at least 1.

        Raises:
            RecordValidationError: If size is below 1.
        """
        if size < 1:
            raise RecordValidationError(
                f"Invalid page size: {size}",
                {"size": "Page size must be at least 1"},
            )

        logger.debug(f"Listing tickets with filters: {filters}")
        matching = self._repository.find_all(build_filter(filters or {}))
        start = max(page, 0) * size
        return TicketPage(
            items=matching[start:start + size],
            page=page,
            size=size,
            total_items=len(matching),
        )

    def auto_classify_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        self._classifier.reclassify_ticket(ticket)
        return self._repository.save(ticket)

    def override_classification(
        self,
        ticket_id: UUID,
        override: ClassificationResult,
    ) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        self._classifier.manual_override(ticket, override)
        return self._repository.save(ticket)

    def count_by_status(self, status: str) -> int:
        member = Status.parse(status)
        if member is None:
            raise RecordValidationError(
                f"Invalid status value: {status}",
                {"status": f"Invalid status value: {status}"},
            )
        return self._repository.count_by_status(member)
