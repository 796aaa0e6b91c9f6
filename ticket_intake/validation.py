"""
Field validation for ticket creation requests and raw import records.

Validation is not fail-fast: every violation found in a record is collected
into a field -> message mapping before ``RecordValidationError`` is raised.
"""

import logging
import re
from typing import Any, Mapping, Optional, Sequence

from .errors import RecordValidationError
from .models import Category, NormalizedRecord, Priority, Status


logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

SUBJECT_MAX_LENGTH = 200
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 2000

IMPORT_REQUIRED_FIELDS = (
    "customer_id",
    "customer_email",
    "customer_name",
    "subject",
    "description",
)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class TicketValidator:
    """Stateless rule set applied to a single ticket record."""

    def validate_ticket_data(self, record: NormalizedRecord) -> None:
        """
        Validate a normalized ticket creation request.

        Raises:
            RecordValidationError: With a camelCase field -> message mapping
                when any rule is violated.
        """
        errors: dict[str, str] = {}

        if _is_blank(record.customer_id):
            errors["customerId"] = "Customer ID is required"

        if _is_blank(record.customer_email):
            errors["customerEmail"] = "Customer email is required"
        elif not self.is_valid_email(record.customer_email):
            errors["customerEmail"] = "Invalid email format"

        if _is_blank(record.customer_name):
            errors["customerName"] = "Customer name is required"

        if _is_blank(record.subject):
            errors["subject"] = "Subject is required"
        elif len(record.subject) > SUBJECT_MAX_LENGTH:
            errors["subject"] = f"Subject must not exceed {SUBJECT_MAX_LENGTH} characters"

        self._check_description(record.description, errors, "description")

        for name, enum_type in (
            ("category", Category),
            ("priority", Priority),
            ("status", Status),
        ):
            value = getattr(record, name)
            if value is not None and not self.is_valid_enum_value(value, enum_type):
                errors[name] = f"Invalid {name} value"

        if errors:
            raise RecordValidationError("Validation failed", errors)

    def validate_ticket_update(self, subject: Optional[str], description: Optional[str]) -> None:
        """
        Validate the text fields of a partial update; None means unchanged.

        Raises:
            RecordValidationError: If a supplied subject or description
                breaks the same length rules as creation.
        """
        errors: dict[str, str] = {}

        if subject is not None:
            if _is_blank(subject):
                errors["subject"] = "Subject is required"
            elif len(subject) > SUBJECT_MAX_LENGTH:
                errors["subject"] = f"Subject must not exceed {SUBJECT_MAX_LENGTH} characters"

        if description is not None:
            self._check_description(description, errors, "description")

        if errors:
            raise RecordValidationError("Validation failed", errors)

    def validate_import_record(self, record: Mapping[str, Any]) -> None:
        """
        Validate a raw snake_case key/value record before normalization.

        Raises:
            RecordValidationError: With a snake_case field -> message mapping.
        """
        errors: dict[str, str] = {}

        for name in IMPORT_REQUIRED_FIELDS:
            if _is_blank(record.get(name)):
                errors[name] = f"{name} is required"

        email = record.get("customer_email")
        if not _is_blank(email) and not self.is_valid_email(str(email)):
            errors["customer_email"] = "Invalid email format"

        subject = record.get("subject")
        if subject is not None and len(str(subject)) > SUBJECT_MAX_LENGTH:
            errors["subject"] = f"Subject must not exceed {SUBJECT_MAX_LENGTH} characters"

        description = record.get("description")
        if not _is_blank(description):
            self._check_description(str(description), errors, "description")

        for name, enum_type in (
            ("category", Category),
            ("priority", Priority),
            ("status", Status),
        ):
            value = record.get(name)
            if not _is_blank(value) and not self.is_valid_enum_value(value, enum_type):
                errors[name] = f"Invalid {name} value: {value}"

        if errors:
            raise RecordValidationError("Record validation failed", errors)

    def validate_import_batch(self, records: Sequence[Mapping[str, Any]]) -> dict[str, str]:
        """
        Validate several raw records, keyed by 1-based row.

        Returns:
            Mapping of "Row N" to the error message for each invalid record.
        """
        batch_errors: dict[str, str] = {}
        for row_number, record in enumerate(records, 1):
            try:
                self.validate_import_record(record)
            except RecordValidationError as e:
                batch_errors[f"Row {row_number}"] = str(e)
        return batch_errors

    @staticmethod
    def is_valid_email(email: Optional[str]) -> bool:
        if _is_blank(email):
            return False
        return EMAIL_PATTERN.match(email.strip()) is not None

    @staticmethod
    def is_valid_enum_value(value: Any, enum_type) -> bool:
        if value is None:
            return False
        return enum_type.parse(value) is not None

    @staticmethod
    def _check_description(
        description: Optional[str],
        errors: dict[str, str],
        field_name: str,
    ) -> None:
        if _is_blank(description):
            errors[field_name] = "Description is required"
        elif len(description) < DESCRIPTION_MIN_LENGTH:
            errors[field_name] = (
                f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"
            )
        elif len(description) > DESCRIPTION_MAX_LENGTH:
            errors[field_name] = (
                f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters"
            )
