"""
Unit tests for TicketValidator.
"""

import pytest

from ticket_intake.errors import RecordValidationError
from ticket_intake.models import Category, NormalizedRecord, Priority
from ticket_intake.validation import TicketValidator


@pytest.fixture
def validator() -> TicketValidator:
    return TicketValidator()


@pytest.fixture
def valid_record() -> NormalizedRecord:
    return NormalizedRecord(
        customer_id="CUST001",
        customer_email="user@example.com",
        customer_name="John Doe",
        subject="Cannot log in",
        description="I have been locked out of my account since yesterday.",
    )


@pytest.fixture
def valid_raw() -> dict:
    return {
        "customer_id": "CUST001",
        "customer_email": "user@example.com",
        "customer_name": "John Doe",
        "subject": "Cannot log in",
        "description": "I have been locked out of my account since yesterday.",
    }


class TestEmailValidation:
    """Tests for the email pattern."""

    @pytest.mark.parametrize("email", [
        "user@example.com",
        "first.last+tag@sub.example.co.uk",
        "USER_1@EXAMPLE.ORG",
    ])
    def test_valid(self, validator, email):
        assert validator.is_valid_email(email)

    @pytest.mark.parametrize("email", [
        None,
        "",
        "plainaddress",
        "user@",
        "@example.com",
        "user@example",
        "user@example.c",
        "user name@example.com",
    ])
    def test_invalid(self, validator, email):
        assert not validator.is_valid_email(email)


class TestValidateTicketData:
    """Tests for validate_ticket_data."""

    def test_valid_record_passes(self, validator, valid_record):
        validator.validate_ticket_data(valid_record)

    def test_collects_all_violations(self, validator):
        """Every violation is reported, not just the first."""
        record = NormalizedRecord(
            customer_email="not-an-email",
            subject="x" * 201,
            description="short",
        )

        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_ticket_data(record)

        errors = exc_info.value.errors
        assert errors == {
            "customerId": "Customer ID is required",
            "customerEmail": "Invalid email format",
            "customerName": "Customer name is required",
            "subject": "Subject must not exceed 200 characters",
            "description": "Description must be at least 10 characters",
        }
        assert exc_info.value.message == "Validation failed"

    def test_subject_at_limit_passes(self, validator, valid_record):
        validator.validate_ticket_data(valid_record.model_copy(update={"subject": "x" * 200}))

    def test_description_bounds(self, validator, valid_record):
        validator.validate_ticket_data(valid_record.model_copy(update={"description": "x" * 10}))
        validator.validate_ticket_data(valid_record.model_copy(update={"description": "x" * 2000}))

        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_ticket_data(
                valid_record.model_copy(update={"description": "x" * 2001})
            )
        assert exc_info.value.errors["description"] == (
            "Description must not exceed 2000 characters"
        )

    def test_blank_email_is_required(self, validator, valid_record):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_ticket_data(valid_record.model_copy(update={"customer_email": "  "}))
        assert exc_info.value.errors["customerEmail"] == "Customer email is required"

    def test_valid_enums_accepted(self, validator, valid_record):
        record = valid_record.model_copy(update={
            "category": Category.BUG_REPORT,
            "priority": Priority.LOW,
        })
        validator.validate_ticket_data(record)

    def test_str_includes_field_details(self, validator, valid_record):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_ticket_data(valid_record.model_copy(update={"customer_id": ""}))
        assert str(exc_info.value) == "Validation failed (customerId: Customer ID is required)"


class TestValidateTicketUpdate:
    """Tests for validate_ticket_update."""

    def test_unchanged_fields_pass(self, validator):
        validator.validate_ticket_update(None, None)

    def test_collects_both_fields(self, validator):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_ticket_update("x" * 201, "tiny")

        assert exc_info.value.errors == {
            "subject": "Subject must not exceed 200 characters",
            "description": "Description must be at least 10 characters",
        }


class TestValidateImportRecord:
    """Tests for validate_import_record and validate_import_batch."""

    def test_valid_record_passes(self, validator, valid_raw):
        validator.validate_import_record(valid_raw)

    def test_missing_fields(self, validator):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_import_record({"subject": "Hello"})

        errors = exc_info.value.errors
        assert errors["customer_id"] == "customer_id is required"
        assert errors["description"] == "description is required"
        assert "subject" not in errors
        assert exc_info.value.message == "Record validation failed"

    def test_invalid_enum_value(self, validator, valid_raw):
        valid_raw["priority"] = "SOMEDAY"
        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_import_record(valid_raw)
        assert exc_info.value.errors == {"priority": "Invalid priority value: SOMEDAY"}

    def test_lenient_enum_value(self, validator, valid_raw):
        """Enum names are matched case-insensitively."""
        valid_raw["status"] = "in progress"
        valid_raw["category"] = "billing_question"
        validator.validate_import_record(valid_raw)

    def test_invalid_email(self, validator, valid_raw):
        valid_raw["customer_email"] = "invalid"
        with pytest.raises(RecordValidationError) as exc_info:
            validator.validate_import_record(valid_raw)
        assert exc_info.value.errors == {"customer_email": "Invalid email format"}

    def test_batch_keys_by_row(self, validator, valid_raw):
        """Only invalid rows appear, keyed by 1-based position."""
        bad = dict(valid_raw, customer_email="invalid")

        errors = validator.validate_import_batch([valid_raw, bad, valid_raw])

        assert list(errors) == ["Row 2"]
        assert "Invalid email format" in errors["Row 2"]

    def test_batch_all_valid(self, validator, valid_raw):
        assert validator.validate_import_batch([valid_raw, valid_raw]) == {}


class TestEnumValueCheck:
    """Tests for is_valid_enum_value."""

    @pytest.mark.parametrize("value,expected", [
        ("URGENT", True),
        ("urgent", True),
        (Priority.HIGH, True),
        ("", False),
        (None, False),
        ("CRITICAL", False),
    ])
    def test_priority(self, validator, value, expected):
        assert validator.is_valid_enum_value(value, Priority) is expected
