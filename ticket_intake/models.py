"""
Data models for the Ticket Intake service.

Uses Pydantic for validation and serialization. Attributes are snake_case;
serialized output (``by_alias=True``) uses the camelCase names callers see.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class _NamedEnum(str, Enum):
    """String enum with lenient parsing of user-supplied names."""

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def normalize_name(cls, value: Any) -> str:
        return str(value).strip().upper().replace(" ", "_").replace("-", "_")

    @classmethod
    def parse(cls, value: Any):
        """
        Resolve a member from free-form text.

        Matching is case-insensitive and treats spaces and hyphens like
        underscores, so "in progress" resolves to IN_PROGRESS.

        Returns:
            The member, or None when the value is blank or unknown.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        name = cls.normalize_name(value)
        if not name:
            return None
        return cls.__members__.get(name)


class Category(_NamedEnum):
    """Ticket categories, in tie-break order for classification."""

    ACCOUNT_ACCESS = "ACCOUNT_ACCESS"
    TECHNICAL_ISSUE = "TECHNICAL_ISSUE"
    BILLING_QUESTION = "BILLING_QUESTION"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    BUG_REPORT = "BUG_REPORT"
    OTHER = "OTHER"


class Priority(_NamedEnum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Status(_NamedEnum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_CUSTOMER = "WAITING_CUSTOMER"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"

    @property
    def display_name(self) -> str:
        if self is Status.WAITING_CUSTOMER:
            return "Waiting for Customer"
        return super().display_name


class CamelModel(BaseModel):
    """Base model serializing to camelCase while accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NormalizedRecord(CamelModel):
    """
    Format-independent ticket creation request.

    Produced by the file parsers and consumed by the validator and the
    ticket service. Required fields are typed optional so that validation,
    not construction, decides what is acceptable.
    """

    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    assigned_to: Optional[str] = None
    source: Optional[str] = None
    browser: Optional[str] = None
    device_type: Optional[str] = None
    tags: set[str] = Field(default_factory=set)

    def to_import_record(self) -> dict[str, Optional[str]]:
        """Flatten into the raw snake_case mapping used for import validation."""
        return {
            "customer_id": self.customer_id,
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
            "subject": self.subject,
            "description": self.description,
            "category": self.category.value if self.category else None,
            "priority": self.priority.value if self.priority else None,
            "status": self.status.value if self.status else None,
            "assigned_to": self.assigned_to,
        }


class ClassificationResult(CamelModel):
    """Outcome of a keyword classification or a manual override."""

    category: Category = Category.OTHER
    priority: Priority = Priority.MEDIUM
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    matched_keywords: list[str] = Field(default_factory=list)
    reasoning: str = ""
    classified_at: datetime = Field(default_factory=datetime.now)
    is_manual_override: bool = False

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Customer(CamelModel):
    customer_id: str
    customer_email: str
    customer_name: str


class TicketMetadata(CamelModel):
    source: Optional[str] = None
    browser: Optional[str] = None
    device_type: Optional[str] = None
    ip_address: Optional[str] = None
    import_batch: Optional[str] = None


class Ticket(CamelModel):
    """A stored support ticket together with its current classification."""

    id: UUID = Field(default_factory=uuid4)
    customer: Customer
    subject: str
    description: str
    category: Category = Category.OTHER
    priority: Priority = Priority.MEDIUM
    status: Status = Status.NEW
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    resolved_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    tags: set[str] = Field(default_factory=set)
    metadata: TicketMetadata = Field(default_factory=TicketMetadata)
    classification: Optional[ClassificationResult] = None

    @property
    def customer_id(self) -> str:
        return self.customer.customer_id


class TicketUpdate(CamelModel):
    """Partial update; only fields that are set are applied."""

    subject: Optional[str] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    assigned_to: Optional[str] = None
    tags: Optional[set[str]] = None


class TicketPage(CamelModel):
    """One page of a filtered ticket listing."""

    items: list[Ticket] = Field(default_factory=list)
    page: int = 0
    size: int = 20
    total_items: int = 0

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total_items + self.size - 1) // self.size


class UploadedFile(BaseModel):
    """Raw bytes of an import file plus the name it was uploaded under."""

    filename: Optional[str] = None
    content: bytes = b""

    @property
    def size(self) -> int:
        return len(self.content)

    def is_empty(self) -> bool:
        return not self.content


class ImportRequest(BaseModel):
    """Parameters of a single bulk import call."""

    file: Optional[UploadedFile] = None
    format: Optional[str] = None
    validate_only: bool = False
    import_batch: Optional[str] = None


class ImportStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    FAILED = "FAILED"


class ImportedTicket(CamelModel):
    """A record that was created (or, in validate-only mode, accepted)."""

    ticket_id: Optional[UUID] = None
    subject: Optional[str] = None
    customer_id: Optional[str] = None
    row_number: int


class FailedRecord(CamelModel):
    """A record that could not be parsed, validated or created."""

    row_number: int
    reason: str
    raw_data_snippet: str = ""


class BatchReport(CamelModel):
    """Itemized outcome of one bulk import call."""

    import_batch: str
    imported_at: datetime = Field(default_factory=datetime.now)
    total_records: int = 0
    success_count: int = 0
    failure_count: int = 0
    processing_time_ms: int = 0
    format: str = ""
    successful_tickets: list[ImportedTicket] = Field(default_factory=list)
    failed_records: list[FailedRecord] = Field(default_factory=list)

    @computed_field
    @property
    def status(self) -> ImportStatus:
        if self.total_records > 0 and self.failure_count == self.total_records:
            return ImportStatus.FAILED
        if self.failure_count > 0:
            return ImportStatus.PARTIAL_SUCCESS
        return ImportStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys and JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True)
