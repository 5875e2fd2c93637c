"""Pytest configuration and fixtures for the classification pipeline."""

import json
import os
import re
import tempfile
from pathlib import Path

# Keep the import-time config away from the working tree
os.environ.setdefault("DATABASE_PATH", str(Path(tempfile.gettempdir()) / "costpool-tests" / "costpool.db"))
os.environ.setdefault("MLFLOW_ENABLED", "false")

import pytest

from costpool.database import ClassificationStore
from costpool.models import Taxonomy
from costpool.storage import LocalBlobStore
from costpool.taxonomy import TaxonomyCache

ROW_KEY_PATTERN = re.compile(r'"(row_\d+)":')

BUCKET = "uploads-bucket"


@pytest.fixture
def taxonomy_data():
    """Stored taxonomy record with two pools."""
    return {
        "Facilities": {
            "definition": "Costs of buildings and physical space.",
            "sub_pools": [
                {"name": "Rent", "definition": "Lease payments for office space."},
                {"name": "Utilities", "definition": "Electricity, water and gas."},
            ],
        },
        "Technology": {
            "definition": "Software, hardware and IT services.",
            "sub_pools": [
                {"name": "Software", "definition": "Licenses and subscriptions."},
                {"name": "Hardware", "definition": "Computers and devices."},
            ],
        },
    }


@pytest.fixture
def taxonomy(taxonomy_data):
    return Taxonomy.from_dict(taxonomy_data)


@pytest.fixture
def store(tmp_path):
    """Temporary SQLite-backed document store."""
    store = ClassificationStore(db_path=tmp_path / "costpool.db")
    yield store
    store.dispose()


@pytest.fixture
def seeded_store(store, taxonomy_data):
    """Store holding the taxonomy record."""
    store.save_definitions("hierarchical", taxonomy_data)
    return store


@pytest.fixture
def taxonomy_cache(seeded_store):
    return TaxonomyCache(seeded_store)


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(base_dir=tmp_path / "blobs")


@pytest.fixture
def upload_csv(blob_store):
    """Write a CSV with the given number of rows and return its upload path."""

    def _upload(
        rows: int,
        path: str = "uploads/acme/pipe1/job42/data.csv",
        header: str = "Vendor,Description,Amount",
    ) -> str:
        lines = [header]
        for i in range(rows):
            lines.append(f"Vendor {i},Item {i},{i}.00")
        blob_store.write_bytes(BUCKET, path, ("\n".join(lines) + "\n").encode("utf-8"))
        return path

    return _upload


def row_keys(prompt: str):
    """Correlation keys present in a batch prompt."""
    return ROW_KEY_PATTERN.findall(prompt)


def answer_all(prompt: str, cost_pool: str = "Technology", cost_sub_pool: str = "Software") -> str:
    """A well-formed oracle answer classifying every row in the prompt."""
    return json.dumps({
        key: {
            "cost_pool": cost_pool,
            "cost_sub_pool": cost_sub_pool,
            "confidence": 0.9,
            "reasoning": "Looks like a software subscription.",
        }
        for key in row_keys(prompt)
    })


class ScriptedLM:
    """Stand-in for a dspy.LM: returns [text] from a responder per call."""

    def __init__(self, responder=None):
        self.responder = responder or (lambda prompt, call_number: answer_all(prompt))
        self.prompts = []

    def __call__(self, prompt=None, **kwargs):
        self.prompts.append(prompt)
        result = self.responder(prompt, len(self.prompts))
        if isinstance(result, Exception):
            raise result
        return [result]
