"""
Command line entry point.

Usage:
  costpool process BUCKET uploads/{tenantId}/{pipelineId}/{jobId}/{filename}
  costpool import-taxonomy cost_definitions_hierarchical.csv
  costpool set-pipeline TENANT PIPELINE --columns "Vendor" "Description"
  costpool init-db
"""

import argparse
import logging
import sys
from typing import List, Optional

from costpool.config import get_config
from costpool.database import ClassificationStore
from costpool.exceptions import PipelineError
from costpool.pipeline import ClassificationJobRunner
from costpool.storage import get_blob_store
from costpool.taxonomy import import_taxonomy

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _process(args: argparse.Namespace, store: ClassificationStore) -> int:
    runner = ClassificationJobRunner(
        store=store,
        blob_store=get_blob_store(),
        batch_size=args.batch_size,
        enable_tracing=not args.no_tracing,
    )
    summary = runner.process_file(args.bucket, args.file)
    print(
        f"Job {summary.job_id} completed: {summary.total_rows} rows, "
        f"{summary.batches} batches, {summary.fallback_rows} unclassified"
    )
    return 0


def _import_taxonomy(args: argparse.Namespace, store: ClassificationStore) -> int:
    taxonomy = import_taxonomy(args.path, store, document_id=get_config().taxonomy_document_id)
    print(f"Imported {len(taxonomy)} cost pools from {args.path}")
    return 0


def _set_pipeline(args: argparse.Namespace, store: ClassificationStore) -> int:
    store.save_pipeline_config(
        args.tenant,
        args.pipeline,
        {"sourceColumnsForAI": args.columns},
    )
    print(f"Pipeline '{args.pipeline}' saved for tenant '{args.tenant}'")
    return 0


def _init_db(args: argparse.Namespace, store: ClassificationStore) -> int:
    print(f"Database ready: {store.db_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="costpool", description="Cost pool classification pipeline.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    process = subparsers.add_parser("process", help="Classify an uploaded CSV file")
    process.add_argument("bucket", help="Bucket holding the upload")
    process.add_argument("file", help="uploads/{tenantId}/{pipelineId}/{jobId}/{filename}")
    process.add_argument("--batch-size", type=int, default=None, help="Rows per oracle call")
    process.add_argument("--no-tracing", action="store_true", help="Disable MLflow tracing")
    process.set_defaults(handler=_process)

    taxonomy = subparsers.add_parser("import-taxonomy", help="Load cost pool definitions (.csv or .yaml)")
    taxonomy.add_argument("path", help="Definitions file")
    taxonomy.set_defaults(handler=_import_taxonomy)

    pipeline = subparsers.add_parser("set-pipeline", help="Save a tenant pipeline configuration")
    pipeline.add_argument("tenant", help="Tenant identifier")
    pipeline.add_argument("pipeline", help="Pipeline identifier")
    pipeline.add_argument("--columns", nargs="+", required=True, help="Source columns sent to the AI")
    pipeline.set_defaults(handler=_set_pipeline)

    init_db = subparsers.add_parser("init-db", help="Create database tables")
    init_db.set_defaults(handler=_init_db)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    _configure_logging(config.log_level)

    store = ClassificationStore(db_path=config.database_path)
    try:
        return args.handler(args, store)
    except PipelineError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    finally:
        store.dispose()


if __name__ == "__main__":
    sys.exit(main())
