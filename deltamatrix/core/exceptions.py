class DomainError(Exception):
    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, entity: str, message: str | None = None, details: dict | None = None):
        code = f"NF_{entity.upper()}_001"
        msg = message or f"{entity} not found"
        super().__init__(code, msg, details)


class ValidationError(DomainError):
    def __init__(self, field: str, message: str, details: dict | None = None):
        code = f"VAL_{field.upper()}_001"
        msg = f"Validation failed for {field}: {message}"
        super().__init__(code, msg, details or {"field": field})


class BusinessRuleError(DomainError):
    def __init__(self, message: str, code: str = "BR_001", details: dict | None = None):
        super().__init__(code, message, details)


class PersistenceError(DomainError):
    """A write or sync against the table collaborator failed."""

    def __init__(self, message: str, code: str = "PERSIST_001", details: dict | None = None):
        super().__init__(code, message, details)


class DraftCommitError(PersistenceError):
    """One or more buffered rows could not be written; the draft is kept for retry."""

    def __init__(self, errors: list[str], written: int = 0):
        super().__init__(
            f"{len(errors)} row(s) failed to save",
            code="PERSIST_DRAFT_001",
            details={"errors": errors, "written": written},
        )
        self.errors = errors
        self.written = written


class ImportFormatError(ValidationError):
    """The pasted exchange text cannot be imported at all."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("import", message, details)


class DerivedScoreError(BusinessRuleError):
    """Attempt to edit the score of a muscle whose score is rolled up from its children."""

    def __init__(self, muscle_id: str):
        super().__init__(
            f"Score of {muscle_id} is derived from its children and cannot be edited",
            code="BR_DERIVED_SCORE",
            details={"muscle_id": muscle_id},
        )
