"""The post-ingestion pipeline: multipart parts in, a persisted post out."""

from inkwell.ingest.demux import SubmissionDemultiplexer
from inkwell.ingest.draft import PostDraft, log_orphaned_assets
from inkwell.ingest.parts import FormPart, MultipartPart, iter_form_parts, parse_multipart

__all__ = [
    "FormPart",
    "MultipartPart",
    "PostDraft",
    "SubmissionDemultiplexer",
    "iter_form_parts",
    "log_orphaned_assets",
    "parse_multipart",
]
