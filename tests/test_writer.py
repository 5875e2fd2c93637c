"""Tests for the buffered result writer."""

import pytest

from costpool.exceptions import WriterFlushError
from costpool.models import Classification, RowResult
from costpool.pipeline.writer import BufferedResultWriter


def _result(index, cost_pool="Technology", cost_sub_pool="Software", reasoning="first"):
    return RowResult(
        row_index=index,
        original_data={"Vendor": f"V{index}"},
        classification=Classification(cost_pool, cost_sub_pool, 0.5, reasoning),
    )


class TestBufferedResultWriter:
    def test_close_persists_everything(self, store):
        with BufferedResultWriter(store, "acme", "job1", buffer_size=3) as writer:
            for i in range(10):
                writer.write(_result(i))

        rows = store.list_row_results("acme", "job1")
        assert [row["row_index"] for row in rows] == list(range(10))
        assert writer.rows_written == 10

    def test_repeated_index_overwrites(self, store):
        with BufferedResultWriter(store, "acme", "job1", buffer_size=2) as writer:
            writer.write(_result(0, reasoning="first"))
            writer.write(_result(1))
            writer.write(_result(0, cost_pool="Facilities", cost_sub_pool="Rent", reasoning="second"))

        assert store.count_row_results("acme", "job1") == 2
        row = store.get_row_result("acme", "job1", 0)
        assert row["cost_pool"] == "Facilities"
        assert row["reasoning"] == "second"

    def test_rerun_leaves_one_document_per_row(self, store):
        for reasoning in ("first run", "second run"):
            with BufferedResultWriter(store, "acme", "job1") as writer:
                writer.write(_result(5, reasoning=reasoning))

        rows = store.list_row_results("acme", "job1")
        assert len(rows) == 1
        assert rows[0]["reasoning"] == "second run"
        assert rows[0]["manually_edited"] is False

    def test_flush_failure_raises_on_close(self, store, monkeypatch):
        def broken_upsert(*args, **kwargs):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(store, "upsert_row_results", broken_upsert)
        writer = BufferedResultWriter(store, "acme", "job1", buffer_size=1)
        writer.write(_result(0))

        with pytest.raises(WriterFlushError, match="database is locked"):
            writer.close()

    def test_write_after_close_is_rejected(self, store):
        writer = BufferedResultWriter(store, "acme", "job1")
        writer.close()

        with pytest.raises(RuntimeError):
            writer.write(_result(0))

    def test_error_in_body_still_flushes_buffered_rows(self, store):
        with pytest.raises(KeyError):
            with BufferedResultWriter(store, "acme", "job1", buffer_size=100) as writer:
                writer.write(_result(0))
                raise KeyError("boom")

        assert store.count_row_results("acme", "job1") == 1
