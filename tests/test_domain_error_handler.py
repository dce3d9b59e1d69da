"""Tests for domain error handler to verify structured JSON error responses."""
import json
from datetime import datetime

import pytest
from fastapi.responses import JSONResponse

from deltamatrix.core.error_handlers import ERROR_STATUS_MAP, domain_error_handler
from deltamatrix.core.exceptions import (
    BusinessRuleError,
    DerivedScoreError,
    DomainError,
    DraftCommitError,
    ImportFormatError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


class MockRequest:
    """Mock FastAPI Request object for testing."""

    def __init__(self, request_id: str = "test-request-123"):
        self.state = type('State', (), {'request_id': request_id})()


class TestDomainErrorExceptions:
    """Test domain exception classes and their error codes."""

    def test_domain_error_base(self):
        """Test base DomainError class."""
        error = DomainError(code="TEST_001", message="Test error message", details={"key": "value"})

        assert error.code == "TEST_001"
        assert error.message == "Test error message"
        assert error.details == {"key": "value"}
        assert str(error) == "Test error message"

    def test_not_found_error(self):
        """Test NotFoundError generates correct error code."""
        error = NotFoundError("motion", "Motion CURL not found", {"id": "CURL"})

        assert error.code == "NF_MOTION_001"
        assert error.message == "Motion CURL not found"
        assert error.details == {"id": "CURL"}

    def test_not_found_error_default_message(self):
        """Test NotFoundError generates default message when none provided."""
        error = NotFoundError("row")

        assert error.code == "NF_ROW_001"
        assert error.message == "row not found"
        assert error.details == {}

    def test_validation_error(self):
        """Test ValidationError generates correct error code."""
        error = ValidationError("table", "unknown delta table stances")

        assert error.code == "VAL_TABLE_001"
        assert error.message == "Validation failed for table: unknown delta table stances"
        assert error.details == {"field": "table"}

    def test_business_rule_error_default(self):
        """Test BusinessRuleError with default code."""
        error = BusinessRuleError("Cannot edit this score")

        assert error.code == "BR_001"
        assert error.details == {}

    def test_persistence_error(self):
        """Test PersistenceError default code."""
        error = PersistenceError("Failed to update grips/NEUTRAL", details={"table": "grips"})

        assert error.code == "PERSIST_001"
        assert error.details == {"table": "grips"}

    def test_draft_commit_error(self):
        """Test DraftCommitError carries per-row errors and written count."""
        error = DraftCommitError(['grips "NEUTRAL": save failed - boom'], written=2)

        assert isinstance(error, PersistenceError)
        assert error.code == "PERSIST_DRAFT_001"
        assert error.message == "1 row(s) failed to save"
        assert error.written == 2
        assert error.details == {"errors": ['grips "NEUTRAL": save failed - boom'], "written": 2}

    def test_import_format_error(self):
        """Test ImportFormatError is a validation error on the import field."""
        error = ImportFormatError("Paste data first")

        assert isinstance(error, ValidationError)
        assert error.code == "VAL_IMPORT_001"
        assert error.message == "Validation failed for import: Paste data first"

    def test_derived_score_error(self):
        """Test DerivedScoreError names the muscle."""
        error = DerivedScoreError("BICEP")

        assert error.code == "BR_DERIVED_SCORE"
        assert error.details == {"muscle_id": "BICEP"}
        assert "BICEP" in error.message


class TestErrorStatusMap:
    """Test ERROR_STATUS_MAP mapping."""

    def test_status_map_complete(self):
        """Verify all domain errors have status codes mapped."""
        for error_type in (
            NotFoundError,
            ValidationError,
            ImportFormatError,
            BusinessRuleError,
            DerivedScoreError,
            PersistenceError,
            DraftCommitError,
        ):
            assert error_type in ERROR_STATUS_MAP

    def test_every_exception_class_is_mapped(self):
        """Verify no DomainError subclass falls through to 500."""
        pending = list(DomainError.__subclasses__())
        seen = []
        while pending:
            error_type = pending.pop()
            seen.append(error_type)
            pending.extend(error_type.__subclasses__())
        declared = {e for e in seen if e.__module__ == DomainError.__module__}
        assert declared == set(ERROR_STATUS_MAP)

    def test_not_found_status(self):
        """Test NotFoundError maps to 404."""
        assert ERROR_STATUS_MAP[NotFoundError] == 404

    def test_validation_status(self):
        """Test validation errors map to 400."""
        assert ERROR_STATUS_MAP[ValidationError] == 400
        assert ERROR_STATUS_MAP[ImportFormatError] == 400

    def test_business_rule_status(self):
        """Test business rule errors map to 422."""
        assert ERROR_STATUS_MAP[BusinessRuleError] == 422
        assert ERROR_STATUS_MAP[DerivedScoreError] == 422

    def test_persistence_status(self):
        """Test persistence errors map to 502."""
        assert ERROR_STATUS_MAP[PersistenceError] == 502
        assert ERROR_STATUS_MAP[DraftCommitError] == 502


class TestDomainErrorHandler:
    """Test domain_error_handler function."""

    @pytest.mark.asyncio
    async def test_not_found_error_response(self):
        """Test NotFoundError returns 404 with structured JSON."""
        error = NotFoundError("motion", "Motion NOPE not found", {"id": "NOPE"})
        request = MockRequest(request_id="req-123")

        response = await domain_error_handler(request, error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404

        data = json.loads(response.body.decode())

        assert data["data"] is None
        assert "meta" in data
        assert len(data["errors"]) == 1

        error_dict = data["errors"][0]
        assert error_dict["code"] == "NF_MOTION_001"
        assert error_dict["message"] == "Motion NOPE not found"
        assert error_dict["details"] == {"id": "NOPE"}

    @pytest.mark.asyncio
    async def test_import_format_error_response(self):
        """Test ImportFormatError returns 400 with structured JSON."""
        error = ImportFormatError('Missing "motion_id" column', details={"headers": ["id"]})
        request = MockRequest(request_id="req-456")

        response = await domain_error_handler(request, error)

        assert response.status_code == 400
        error_dict = json.loads(response.body.decode())["errors"][0]
        assert error_dict["code"] == "VAL_IMPORT_001"
        assert error_dict["details"] == {"headers": ["id"]}

    @pytest.mark.asyncio
    async def test_derived_score_error_response(self):
        """Test DerivedScoreError returns 422 with structured JSON."""
        response = await domain_error_handler(MockRequest(), DerivedScoreError("ARM"))

        assert response.status_code == 422
        error_dict = json.loads(response.body.decode())["errors"][0]
        assert error_dict["code"] == "BR_DERIVED_SCORE"

    @pytest.mark.asyncio
    async def test_draft_commit_error_response(self):
        """Test DraftCommitError returns 502 and lists the failed rows."""
        error = DraftCommitError(['grips "NEUTRAL": save failed - boom'], written=1)

        response = await domain_error_handler(MockRequest(request_id="req-789"), error)

        assert response.status_code == 502
        error_dict = json.loads(response.body.decode())["errors"][0]
        assert error_dict["code"] == "PERSIST_DRAFT_001"
        assert error_dict["details"]["errors"] == ['grips "NEUTRAL": save failed - boom']
        assert error_dict["details"]["written"] == 1

    @pytest.mark.asyncio
    async def test_response_includes_metadata(self):
        """Test error response includes request_id and timestamp."""
        error = NotFoundError("test_entity")
        request = MockRequest(request_id="test-request-id-12345")

        response = await domain_error_handler(request, error)

        data = json.loads(response.body.decode())

        assert data["meta"]["request_id"] == "test-request-id-12345"
        assert "timestamp" in data["meta"]

        # Verify timestamp is a valid ISO datetime string
        datetime.fromisoformat(data["meta"]["timestamp"].replace('Z', '+00:00'))

    @pytest.mark.asyncio
    async def test_unknown_domain_error_returns_500(self):
        """Test unknown DomainError subclass returns 500."""

        class CustomDomainError(DomainError):
            """Custom domain error not in status map."""

        error = CustomDomainError("CUSTOM_001", "Custom error message")

        response = await domain_error_handler(MockRequest(request_id="req-custom"), error)

        assert response.status_code == 500
        error_dict = json.loads(response.body.decode())["errors"][0]
        assert error_dict["code"] == "CUSTOM_001"
        assert error_dict["message"] == "Custom error message"

    @pytest.mark.asyncio
    async def test_error_with_none_request_id(self):
        """Test error response when request has no request_id."""
        error = ValidationError("field", "Invalid field")

        # Create a mock request without request_id in state
        request = type('Request', (), {
            'state': type('State', (), {})()
        })()

        response = await domain_error_handler(request, error)

        data = json.loads(response.body.decode())

        # Should handle missing request_id gracefully
        assert data["meta"]["request_id"] is None
