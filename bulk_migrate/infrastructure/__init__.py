"""
Infrastructure package: CSV record source, JSONL run log and the Cloudinary
SDK client.
"""

from bulk_migrate.infrastructure.cloudinary import (
    CloudinaryClient,
    UploadOperation,
    classify_response,
)
from bulk_migrate.infrastructure.csv_source import count_csv_records, iter_csv_records
from bulk_migrate.infrastructure.recorder import LOG_FILE_NAME, LogFlow, RunLog, log_file_path

__all__ = [
    "CloudinaryClient",
    "LOG_FILE_NAME",
    "LogFlow",
    "RunLog",
    "UploadOperation",
    "classify_response",
    "count_csv_records",
    "iter_csv_records",
    "log_file_path",
]
