"""Streaming batch classification of an uploaded source file.

Pipeline per job:
1. Parse the upload path (fails fast, nothing is read or written)
2. Load the taxonomy and mark the job as reading
3. Stream rows and cut them into batches
4. Per batch: build the prompt, call the oracle once, validate every row
5. Flush all row results, then mark the job completed

Batches run strictly one after another, so at most one oracle call is in
flight and memory holds one batch plus the writer buffer.
"""

import logging
from typing import List, Optional

from costpool.config import get_config
from costpool.constants import correlation_key
from costpool.database import ClassificationStore
from costpool.models import JobSummary, RowResult, SourceLocation, SourceRow, Taxonomy
from costpool.pipeline.batcher import iter_batches
from costpool.pipeline.oracle import OracleClient, Unparseable
from costpool.pipeline.paths import parse_source_path
from costpool.pipeline.prompt import build_batch_prompt
from costpool.pipeline.reader import iter_source_rows
from costpool.pipeline.tracker import JobStateTracker
from costpool.pipeline.validator import validate_row
from costpool.pipeline.writer import BufferedResultWriter
from costpool.storage import BlobStore
from costpool.taxonomy import TaxonomyCache
from costpool.utils.mlflow import setup_mlflow_tracing

logger = logging.getLogger(__name__)


class ClassificationJobRunner:
    """Runs one classification job per uploaded file."""

    def __init__(
        self,
        store: ClassificationStore,
        blob_store: BlobStore,
        taxonomy_cache: Optional[TaxonomyCache] = None,
        oracle: Optional[OracleClient] = None,
        batch_size: Optional[int] = None,
        writer_buffer_size: Optional[int] = None,
        enable_tracing: bool = True,
    ):
        """
        Initialize the runner.

        Args:
            store: Document store for jobs, rows and the taxonomy record
            blob_store: Storage backend holding uploaded files
            taxonomy_cache: Shared taxonomy cache (created from store if None)
            oracle: Oracle client (uses the configured LM if None)
            batch_size: Rows per oracle call (default: BATCH_SIZE)
            writer_buffer_size: Rows per background write (default: WRITER_BUFFER_SIZE)
            enable_tracing: Whether to enable MLflow tracing (default: True)
        """
        config = get_config()
        if enable_tracing:
            setup_mlflow_tracing()

        self.store = store
        self.blob_store = blob_store
        self.taxonomy_cache = taxonomy_cache or TaxonomyCache(store, config.taxonomy_document_id)
        self.oracle = oracle or OracleClient()
        self.batch_size = batch_size or config.batch_size
        self.writer_buffer_size = writer_buffer_size or config.writer_buffer_size

        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")

    def process_file(self, bucket: str, path: str) -> JobSummary:
        """
        Classify every row of an uploaded file.

        Args:
            bucket: Bucket holding the upload
            path: uploads/{tenantId}/{pipelineId}/{jobId}/{filename}

        Returns:
            JobSummary for the completed job

        Raises:
            InvalidSourcePath: Before anything is read or written
            PipelineError: Any fatal error, after the job is marked failed
        """
        location = parse_source_path(bucket, path)
        logger.info(
            f"Starting job for Tenant: {location.tenant_id}, "
            f"Pipeline: {location.pipeline_id}, Job: {location.job_id}"
        )

        tracker = JobStateTracker(self.store, location.tenant_id, location.job_id)
        try:
            taxonomy = self.taxonomy_cache.get()
            tracker.start(location.filename)
            summary = self._run(location, taxonomy, tracker)
            tracker.complete(summary.total_rows)
        except Exception as e:
            logger.error(f"Job {location.job_id} failed: {type(e).__name__}: {e}")
            self._mark_failed(tracker, e)
            raise

        logger.info(
            f"Job {location.job_id} completed: {summary.total_rows} rows in {summary.batches} batches "
            f"({summary.fallback_rows} unclassified)"
        )
        return summary

    def _run(self, location: SourceLocation, taxonomy: Taxonomy, tracker: JobStateTracker) -> JobSummary:
        summary = JobSummary(
            tenant_id=location.tenant_id,
            job_id=location.job_id,
            total_rows=0,
            batches=0,
        )
        source_columns = self._source_columns(location)

        with self.blob_store.open_stream(location.bucket, location.path) as stream:
            with BufferedResultWriter(
                self.store,
                location.tenant_id,
                location.job_id,
                buffer_size=self.writer_buffer_size,
            ) as writer:
                rows = iter_source_rows(stream)
                for batch_number, batch in enumerate(iter_batches(rows, self.batch_size), start=1):
                    tracker.begin_batch(batch_number)
                    self._process_batch(batch_number, batch, taxonomy, source_columns, writer, summary)
                # Leaving the block flushes every buffered write before completion

        return summary

    def _process_batch(
        self,
        batch_number: int,
        batch: List[SourceRow],
        taxonomy: Taxonomy,
        source_columns: Optional[List[str]],
        writer: BufferedResultWriter,
        summary: JobSummary,
    ) -> None:
        logger.info(
            f"Processing batch {batch_number} of {len(batch)} rows starting with index {batch[0].index}..."
        )
        prompt = build_batch_prompt(batch, taxonomy, source_columns)
        outcome = self.oracle.classify(prompt)
        if isinstance(outcome, Unparseable):
            summary.failed_batches.append(batch_number)

        for row in batch:
            classification = validate_row(outcome, correlation_key(row.index), taxonomy)
            if classification.is_fallback:
                summary.fallback_rows += 1
            writer.write(RowResult(
                row_index=row.index,
                original_data=row.fields,
                classification=classification,
            ))

        summary.total_rows += len(batch)
        summary.batches = batch_number

    def _source_columns(self, location: SourceLocation) -> Optional[List[str]]:
        """Columns configured for AI analysis on the upload's pipeline, if any."""
        configuration = self.store.get_pipeline_config(location.tenant_id, location.pipeline_id)
        if not configuration:
            return None

        columns = configuration.get("sourceColumnsForAI")
        if not columns:
            return None
        if not isinstance(columns, list):
            logger.warning(
                f"Ignoring sourceColumnsForAI of pipeline {location.pipeline_id}: expected a list"
            )
            return None
        return [str(column).strip() for column in columns]

    def _mark_failed(self, tracker: JobStateTracker, error: Exception) -> None:
        message = str(error) or type(error).__name__
        try:
            tracker.fail(message)
        except Exception:
            logger.exception(f"Could not mark job {tracker.job_id} as failed")
