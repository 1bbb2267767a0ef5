"""S3-backed document storage."""

import logging
import mimetypes
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from .file_storage import FileStorage

logger = logging.getLogger(__name__)


class S3DocumentStorage(FileStorage):
    """
    FileStorage variant that keeps document bytes in an S3 bucket.

    Records stay in the local JSON store; only ``upload_document`` and
    ``load_document`` go to S3.
    """

    def __init__(
        self,
        bucket: str,
        records_dir: str = "data/records",
        documents_dir: str = "data/documents",
        region: Optional[str] = None,
        client: Optional[Any] = None
    ):
        """
        Initialize S3DocumentStorage.

        Args:
            bucket: Target S3 bucket
            records_dir: Directory for JSON records
            documents_dir: Local directory (unused for documents, kept for layout)
            region: AWS region for the S3 client
            client: Optional pre-built S3 client
        """
        if not bucket:
            raise ValueError("S3 document storage requires a bucket name")

        super().__init__(records_dir=records_dir, documents_dir=documents_dir)
        self.bucket = bucket
        self.s3 = client or boto3.client("s3", region_name=region)
        logger.info(f"Initialized S3DocumentStorage: bucket={bucket}")

    def upload_document(self, content: bytes, key: str) -> Dict[str, str]:
        """
        Upload document bytes to ``s3://<bucket>/<key>``.

        Raises:
            ClientError: If the upload is rejected
        """
        content_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 upload failed for {key}: {error_code}")
            raise

        logger.info(f"Uploaded document to s3://{self.bucket}/{key} ({len(content)} bytes)")
        return {"path": key}

    def load_document(self, key: str) -> bytes:
        response = self.s3.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()
