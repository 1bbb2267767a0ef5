"""
Main entry point for invoice verification submissions.

Wires the extraction adapter, the verification and persistence
orchestrators, and the storage backend from configuration, and exposes
the process-wide verifier used by the HTTP layer.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from dotenv import load_dotenv

from .models.submission import SubmissionInput, SubmissionOutcome
from .orchestration.persistence import PersistenceOrchestrator
from .orchestration.verification import VerificationOrchestrator
from .plugins.extraction_service import ExtractionService
from .storage.file_storage import FileStorage
from .storage.s3_storage import S3DocumentStorage
from .utils.bedrock_client import BedrockClient
from .utils.config import Config, UploadLimitsConfig
from .utils.errors import ErrorContext, ErrorType, ValidationError, VerificationError
from .utils.logging import log_context, setup_logging

load_dotenv()

logger = logging.getLogger(__name__)


def build_storage(config: Config) -> FileStorage:
    """Create the storage backend named in configuration ("local" or "s3")."""
    backend = config.storage.backend.lower()
    if backend == "s3":
        return S3DocumentStorage(
            bucket=config.storage.bucket,
            records_dir=config.storage.records_dir,
            documents_dir=config.storage.documents_dir,
            region=config.aws_region,
        )
    if backend != "local":
        raise VerificationError(
            ErrorContext(
                error_type=ErrorType.CONFIG_INVALID,
                message=f"Unknown storage backend: {config.storage.backend}",
                recoverable=False
            )
        )
    return FileStorage(
        records_dir=config.storage.records_dir,
        documents_dir=config.storage.documents_dir,
    )


class InvoiceVerifier:
    """
    Runs one submission end to end: verify, then persist.

    Attributes:
        verification: VerificationOrchestrator
        persistence: PersistenceOrchestrator
        storage: Storage backend, also used for read endpoints
    """

    def __init__(self, extraction, storage, config: Optional[Config] = None):
        rules = config.rules if config else None
        self.storage = storage
        self.upload_limits = config.uploads if config else UploadLimitsConfig()
        self.verification = VerificationOrchestrator(extraction, rules)
        self.persistence = PersistenceOrchestrator(storage)

    @classmethod
    def from_config(cls, config: Config) -> "InvoiceVerifier":
        bedrock = BedrockClient(
            region=config.aws_region,
            model_id=config.bedrock.model_id,
            timeout=config.bedrock.timeout,
            max_retries=config.bedrock.max_retries,
            retry_base_delay=config.bedrock.retry_base_delay,
        )
        return cls(ExtractionService(bedrock), build_storage(config), config)

    async def submit(self, submission: SubmissionInput) -> SubmissionOutcome:
        """
        Verify and persist one submission.

        Args:
            submission: User id plus invoice, optional work order and photos

        Returns:
            SubmissionOutcome with the verification result and persistence report

        Raises:
            ValidationError: Missing user id or invoice
            ExtractionFailure: A supplied document could not be extracted
            PersistenceFailure: The invoice record could not be saved
        """
        if not submission.user_id:
            raise ValidationError.missing_input("userId")
        if submission.invoice is None:
            raise ValidationError.missing_input("invoice")

        submission_id = f"SUB-{uuid.uuid4().hex[:8].upper()}"
        with log_context(submission_id=submission_id, user_id=submission.user_id):
            logger.info(
                f"Processing submission {submission_id}: "
                f"work_order={'yes' if submission.work_order else 'no'}, "
                f"photos={len(submission.photos)}"
            )

            run = await self.verification.verify(
                submission.invoice,
                submission.work_order,
                submission.photos,
            )
            report = await self.persistence.persist(submission, run.invoice, run.result)

            logger.info(
                f"Submission {submission_id} complete: invoice_id={report.invoice_id}, "
                f"status={run.result.status.value}, confidence={run.result.confidence}"
            )
            return SubmissionOutcome(verification=run.result, persistence=report)


_config: Optional[Config] = None
_verifier: Optional[InvoiceVerifier] = None


def get_verifier(config_path: str = "config.yaml") -> InvoiceVerifier:
    """
    Return the process-wide verifier, initializing it on first use.

    Initialization is lazy to avoid creating AWS clients at import time.
    """
    global _config, _verifier

    if _verifier is not None:
        return _verifier

    try:
        logger.info("Initializing invoice verifier")
        _config = Config.load(config_path)
        setup_logging(
            level=_config.logging.level,
            log_format=_config.logging.format,
            log_file=_config.logging.file,
        )
        _verifier = InvoiceVerifier.from_config(_config)
        logger.info(
            f"Invoice verifier ready: region={_config.aws_region}, "
            f"model={_config.bedrock.model_id}, storage={_config.storage.backend}"
        )
        return _verifier

    except VerificationError:
        raise
    except Exception as e:
        logger.error(f"Verifier initialization failed: {str(e)}", exc_info=True)
        raise VerificationError(
            ErrorContext(
                error_type=ErrorType.INITIALIZATION_FAILED,
                message=f"Failed to initialize invoice verifier: {str(e)}",
                recoverable=False
            )
        ) from e

