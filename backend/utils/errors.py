"""Error taxonomy for the invoice verification pipeline."""

from dataclasses import dataclass
from typing import Optional, Dict, Any
from enum import Enum


class ErrorType(Enum):
    """Enumeration of error types in the verification system."""

    # Submission errors
    MISSING_REQUIRED_INPUT = "MISSING_REQUIRED_INPUT"
    UPLOAD_TOO_LARGE = "UPLOAD_TOO_LARGE"

    # Bedrock API errors
    BEDROCK_RATE_LIMIT = "BEDROCK_RATE_LIMIT"
    BEDROCK_TIMEOUT = "BEDROCK_TIMEOUT"
    BEDROCK_AUTH_ERROR = "BEDROCK_AUTH_ERROR"
    BEDROCK_MODEL_ERROR = "BEDROCK_MODEL_ERROR"
    BEDROCK_INVALID_REQUEST = "BEDROCK_INVALID_REQUEST"
    BEDROCK_SERVICE_ERROR = "BEDROCK_SERVICE_ERROR"

    # Extraction errors
    INVOICE_EXTRACTION_FAILED = "INVOICE_EXTRACTION_FAILED"
    WORK_ORDER_EXTRACTION_FAILED = "WORK_ORDER_EXTRACTION_FAILED"
    PHOTO_ANALYSIS_FAILED = "PHOTO_ANALYSIS_FAILED"
    MALFORMED_EXTRACTION = "MALFORMED_EXTRACTION"

    # Persistence errors
    INVOICE_INSERT_FAILED = "INVOICE_INSERT_FAILED"
    ANALYSIS_INSERT_FAILED = "ANALYSIS_INSERT_FAILED"
    DOCUMENT_UPLOAD_FAILED = "DOCUMENT_UPLOAD_FAILED"
    DOCUMENT_METADATA_FAILED = "DOCUMENT_METADATA_FAILED"

    # Configuration errors
    CONFIG_INVALID = "CONFIG_INVALID"

    # System errors
    INITIALIZATION_FAILED = "INITIALIZATION_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass
class ErrorContext:
    """
    Context information for errors in the verification system.

    Attributes:
        error_type: Type of error from ErrorType enum
        message: Human-readable error message
        recoverable: Whether the run can continue past this error
        fallback_action: Optional description of fallback action taken
        details: Optional additional error details
        original_exception: Optional original exception that caused this error
    """

    error_type: ErrorType
    message: str
    recoverable: bool
    fallback_action: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    original_exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error context to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error context
        """
        return {
            "error_type": self.error_type.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "fallback_action": self.fallback_action,
            "details": self.details or {},
            "original_exception": str(self.original_exception) if self.original_exception else None
        }


class VerificationError(Exception):
    """
    Base exception for all verification pipeline errors.

    Subclasses carry a stable ``code`` that the submission interface
    returns to callers alongside the human-readable message.

    Attributes:
        context: ErrorContext with detailed error information
    """

    code = "verification_failed"

    def __init__(self, context: ErrorContext):
        """
        Initialize verification error.

        Args:
            context: ErrorContext with error details
        """
        self.context = context
        super().__init__(context.message)

    def __str__(self) -> str:
        """String representation of the error."""
        base = f"{self.context.error_type.value}: {self.context.message}"
        if self.context.fallback_action:
            base += f" (Fallback: {self.context.fallback_action})"
        return base

    @property
    def message(self) -> str:
        return self.context.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error
        """
        payload = self.context.to_dict()
        payload["code"] = self.code
        return payload


class ValidationError(VerificationError):
    """A required submission input is missing or unusable. Not retried."""

    code = "missing_required_input"

    @classmethod
    def missing_input(cls, field_name: str) -> "ValidationError":
        """
        Create error for a missing required submission field.

        Args:
            field_name: Name of the missing field

        Returns:
            ValidationError instance
        """
        context = ErrorContext(
            error_type=ErrorType.MISSING_REQUIRED_INPUT,
            message=f"Missing required input: {field_name}",
            recoverable=False,
            details={"field": field_name}
        )
        return cls(context)

    @classmethod
    def upload_rejected(cls, reason: str) -> "ValidationError":
        """
        Create error for an upload that breaks the size or count limits.

        Args:
            reason: Human-readable description of the broken limit

        Returns:
            ValidationError instance
        """
        context = ErrorContext(
            error_type=ErrorType.UPLOAD_TOO_LARGE,
            message=reason,
            recoverable=False
        )
        return cls(context)


class ExtractionFailure(VerificationError):
    """Upstream document-understanding failure. Surfaced, not retried by the core."""

    code = "extraction_failed"

    @classmethod
    def for_document(
        cls,
        error_type: ErrorType,
        document_name: str,
        error: Exception
    ) -> "ExtractionFailure":
        """
        Create error for a document that could not be extracted.

        Args:
            error_type: Which extraction failed
            document_name: Name of the document (or batch label)
            error: Original exception

        Returns:
            ExtractionFailure instance
        """
        context = ErrorContext(
            error_type=error_type,
            message=f"Failed to extract '{document_name}': {str(error)}",
            recoverable=False,
            fallback_action="Request manual review",
            details={"document_name": document_name},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def malformed(cls, document_kind: str, problem: str) -> "ExtractionFailure":
        """
        Create error for an extraction payload that fails schema validation.

        Args:
            document_kind: "invoice", "work_order" or "photos"
            problem: Description of the missing or malformed field

        Returns:
            ExtractionFailure instance
        """
        context = ErrorContext(
            error_type=ErrorType.MALFORMED_EXTRACTION,
            message=f"Malformed {document_kind} extraction: {problem}",
            recoverable=False,
            details={"document_kind": document_kind}
        )
        return cls(context)


class BedrockAPIError(ExtractionFailure):
    """Exception for AWS Bedrock API errors."""

    @classmethod
    def from_client_error(
        cls,
        error: Exception,
        operation: str,
        recoverable: bool = False,
        fallback_action: Optional[str] = None
    ) -> "BedrockAPIError":
        """
        Create BedrockAPIError from boto3 ClientError.

        Args:
            error: Original boto3 ClientError
            operation: Description of operation that failed
            recoverable: Whether error is recoverable
            fallback_action: Optional fallback action description

        Returns:
            BedrockAPIError instance
        """
        error_code = "Unknown"
        error_message = str(error)

        if hasattr(error, 'response'):
            error_info = error.response.get("Error", {})
            error_code = error_info.get("Code", "Unknown")
            error_message = error_info.get("Message", str(error))

        error_type_map = {
            "ThrottlingException": ErrorType.BEDROCK_RATE_LIMIT,
            "TooManyRequestsException": ErrorType.BEDROCK_RATE_LIMIT,
            "RequestTimeout": ErrorType.BEDROCK_TIMEOUT,
            "RequestTimeoutException": ErrorType.BEDROCK_TIMEOUT,
            "UnauthorizedException": ErrorType.BEDROCK_AUTH_ERROR,
            "AccessDeniedException": ErrorType.BEDROCK_AUTH_ERROR,
            "ValidationException": ErrorType.BEDROCK_INVALID_REQUEST,
            "ModelNotReadyException": ErrorType.BEDROCK_MODEL_ERROR,
            "ModelTimeoutException": ErrorType.BEDROCK_TIMEOUT,
            "ServiceUnavailableException": ErrorType.BEDROCK_SERVICE_ERROR,
            "InternalServerException": ErrorType.BEDROCK_SERVICE_ERROR,
        }

        error_type = error_type_map.get(error_code, ErrorType.BEDROCK_SERVICE_ERROR)

        context = ErrorContext(
            error_type=error_type,
            message=f"Bedrock API error during {operation}: {error_message}",
            recoverable=recoverable,
            fallback_action=fallback_action,
            details={
                "error_code": error_code,
                "operation": operation
            },
            original_exception=error
        )

        return cls(context)


class PersistenceFailure(VerificationError):
    """The mandatory invoice write failed; the computed result is not stored."""

    code = "persistence_failed"

    @classmethod
    def invoice_insert_failed(cls, invoice_number: str, error: Exception) -> "PersistenceFailure":
        """
        Create error for a failed invoice summary insert.

        Args:
            invoice_number: Invoice number being stored
            error: Original exception

        Returns:
            PersistenceFailure instance
        """
        context = ErrorContext(
            error_type=ErrorType.INVOICE_INSERT_FAILED,
            message=f"Failed to save invoice '{invoice_number}': {str(error)}",
            recoverable=False,
            details={"invoice_number": invoice_number},
            original_exception=error
        )
        return cls(context)


class PartialPersistenceWarning(VerificationError):
    """
    A best-effort write failed.

    Never raised to the submission caller. The persistence orchestrator
    logs it and records it on the persistence report.
    """

    code = "partial_persistence"

    @classmethod
    def from_failure(
        cls,
        error_type: ErrorType,
        target: str,
        error: Exception
    ) -> "PartialPersistenceWarning":
        """
        Create warning for a failed secondary write.

        Args:
            error_type: Which write failed
            target: Record or storage key that was being written
            error: Original exception

        Returns:
            PartialPersistenceWarning instance
        """
        context = ErrorContext(
            error_type=error_type,
            message=f"Best-effort write to '{target}' failed: {str(error)}",
            recoverable=True,
            fallback_action="Invoice and analysis remain the source of truth",
            details={"target": target},
            original_exception=error
        )
        return cls(context)


def handle_extraction_error(
    error: Exception,
    document_name: str,
    error_type: ErrorType,
    logger
) -> None:
    """
    Log an extraction error and raise it as an ExtractionFailure.

    Errors that are already ExtractionFailure instances (including
    BedrockAPIError and schema validation failures) are re-raised unchanged.

    Args:
        error: Original exception from the extraction attempt
        document_name: Name of the document being extracted
        error_type: Which extraction failed
        logger: Logger instance for error logging

    Raises:
        ExtractionFailure: Wrapped error with context
    """
    if isinstance(error, ExtractionFailure):
        logger.error(f"Extraction failed for {document_name}: {error}")
        raise error

    failure = ExtractionFailure.for_document(
        error_type=error_type,
        document_name=document_name,
        error=error
    )
    logger.error(f"Extraction failed for {document_name}: {failure}")
    raise failure from error
