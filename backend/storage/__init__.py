"""Storage layer for invoice records and uploaded documents."""

from .file_storage import FileStorage
from .s3_storage import S3DocumentStorage

__all__ = ['FileStorage', 'S3DocumentStorage']
