"""Streaming batch classification pipeline."""

from costpool.pipeline.batcher import iter_batches
from costpool.pipeline.oracle import OracleClient, OracleOutcome, Parsed, Unparseable, parse_oracle_response
from costpool.pipeline.paths import parse_source_path
from costpool.pipeline.prompt import build_batch_prompt
from costpool.pipeline.reader import iter_source_rows
from costpool.pipeline.runner import ClassificationJobRunner
from costpool.pipeline.tracker import JobStateTracker
from costpool.pipeline.validator import validate_row
from costpool.pipeline.writer import BufferedResultWriter

__all__ = [
    "BufferedResultWriter",
    "ClassificationJobRunner",
    "JobStateTracker",
    "OracleClient",
    "OracleOutcome",
    "Parsed",
    "Unparseable",
    "build_batch_prompt",
    "iter_batches",
    "iter_source_rows",
    "parse_oracle_response",
    "parse_source_path",
    "validate_row",
]
