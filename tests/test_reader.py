"""Tests for the streaming CSV row reader."""

import io

import pytest

from costpool.exceptions import MalformedRow, SourceReadError
from costpool.pipeline.reader import iter_source_rows


def _stream(text: str, encoding: str = "utf-8") -> io.BytesIO:
    return io.BytesIO(text.encode(encoding))


class _ExplodingStream(io.RawIOBase):
    """Yields a header and one row, then fails like a dropped connection."""

    def __init__(self):
        self._chunks = [b"Vendor,Amount\nAcme,1\n"]

    def readable(self):
        return True

    def readinto(self, buffer):
        if not self._chunks:
            raise ConnectionResetError("connection reset by peer")
        chunk = self._chunks.pop(0)
        buffer[:len(chunk)] = chunk
        return len(chunk)


class TestIterSourceRows:
    def test_rows_are_indexed_in_file_order(self):
        rows = list(iter_source_rows(_stream("Vendor,Amount\nAcme,10\nGlobex,20\nInitech,30\n")))

        assert [row.index for row in rows] == [0, 1, 2]
        assert rows[1].fields == {"Vendor": "Globex", "Amount": "20"}

    def test_bom_is_stripped_and_headers_trimmed(self):
        rows = list(iter_source_rows(_stream("\ufeff Vendor , Amount \nAcme,10\n")))

        assert list(rows[0].fields) == ["Vendor", "Amount"]

    def test_quoted_fields_keep_commas_and_newlines(self):
        text = 'Vendor,Description\n"Acme, Inc.","line one\nline two"\n'
        rows = list(iter_source_rows(_stream(text)))

        assert rows[0].fields["Vendor"] == "Acme, Inc."
        assert rows[0].fields["Description"] == "line one\nline two"

    def test_short_rows_are_padded(self):
        rows = list(iter_source_rows(_stream("Vendor,Amount,Memo\nAcme,10\n")))

        assert rows[0].fields == {"Vendor": "Acme", "Amount": "10", "Memo": ""}

    def test_long_rows_raise_malformed_row(self):
        reader = iter_source_rows(_stream("Vendor,Amount\nAcme,10\nGlobex,20,extra\n"))

        assert next(reader).index == 0
        with pytest.raises(MalformedRow) as exc_info:
            next(reader)
        assert exc_info.value.line_number == 3

    def test_blank_lines_do_not_consume_indices(self):
        rows = list(iter_source_rows(_stream("Vendor\nAcme\n\nGlobex\n")))

        assert [(row.index, row.fields["Vendor"]) for row in rows] == [(0, "Acme"), (1, "Globex")]

    def test_empty_source_yields_nothing(self):
        assert list(iter_source_rows(_stream(""))) == []

    def test_header_only_yields_nothing(self):
        assert list(iter_source_rows(_stream("Vendor,Amount\n"))) == []

    def test_invalid_utf8_raises_source_read_error(self):
        stream = io.BytesIO(b"Vendor\n\xff\xfe\xfa\n")

        with pytest.raises(SourceReadError):
            list(iter_source_rows(stream))

    def test_transport_failure_raises_source_read_error(self):
        stream = io.BufferedReader(_ExplodingStream())
        reader = iter_source_rows(stream)

        with pytest.raises(SourceReadError):
            list(reader)

    def test_reader_is_lazy(self):
        payload = "Vendor\n" + "".join(f"vendor-{i}\n" for i in range(20000))
        stream = _stream(payload)
        reader = iter_source_rows(stream)

        first = next(reader)

        assert first.index == 0
        assert stream.tell() < len(payload)
