"""
Data Handler Module
Availability rules, job expansion, link resolution and downloads.
"""
from .availability import (
    AvailabilityRule,
    AvailabilitySource,
    DirectoryAvailabilitySource,
    PackagedAvailabilitySource,
    StaticAvailabilitySource,
    resolve_table,
    source_for,
)
from .downloader import DownloadExecutor, DownloadSummary, Outcome, ProgressListener, execute_jobs
from .jobs import Job, date_range, expand_jobs
from .link_client import LinkClient, LinkResponse
from .paths import get_local_path, get_relative_path
from .reporter import AvailabilityBlock, build_availability_blocks, filter_table

__all__ = [
    "AvailabilityRule",
    "AvailabilitySource",
    "DirectoryAvailabilitySource",
    "PackagedAvailabilitySource",
    "StaticAvailabilitySource",
    "resolve_table",
    "source_for",
    "DownloadExecutor",
    "DownloadSummary",
    "Outcome",
    "ProgressListener",
    "execute_jobs",
    "Job",
    "date_range",
    "expand_jobs",
    "LinkClient",
    "LinkResponse",
    "get_local_path",
    "get_relative_path",
    "AvailabilityBlock",
    "build_availability_blocks",
    "filter_table",
]
