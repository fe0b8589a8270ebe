"""Link ingestion: normalization, tag extraction and the merge-or-insert engine.

The engine and scraper client live in ``linkstash.ingestion.engine`` and
``linkstash.ingestion.scraper``; they depend on ``linkstash.models``, which
itself uses the tag helpers here.
"""

from .models import IngestStats, ScrapedItem, Submission, SubmissionContext
from .normalize import is_valid_submission_url, normalize_url, parse_domain
from .tags import extract_tags, split_tags

__all__ = [
    "IngestStats",
    "ScrapedItem",
    "Submission",
    "SubmissionContext",
    "extract_tags",
    "is_valid_submission_url",
    "normalize_url",
    "parse_domain",
    "split_tags",
]
