"""Streaming reader for comma-delimited source files.

Rows are decoded and parsed one line at a time so memory stays bounded by the
underlying stream's read-ahead buffer, never by the file size.

Field-count policy: a row with fewer fields than the header is padded with
empty strings; a row with more fields raises MalformedRow. Blank lines are
skipped and do not consume a row index.
"""

import csv
import io
import logging
from typing import BinaryIO, Iterator, List

from costpool.exceptions import MalformedRow, SourceReadError
from costpool.models import SourceRow

logger = logging.getLogger(__name__)


def _normalize_headers(raw_headers: List[str]) -> List[str]:
    return [header.strip() for header in raw_headers]


def iter_source_rows(stream: BinaryIO) -> Iterator[SourceRow]:
    """
    Lazily parse a binary CSV stream into SourceRows.

    The generator is finite and non-restartable. The caller owns (and
    closes) the stream.

    Args:
        stream: Readable binary stream, UTF-8 with optional byte-order mark

    Yields:
        SourceRow per data line, indexed from 0 in file order

    Raises:
        SourceReadError: On I/O failure or invalid UTF-8
        MalformedRow: If a row has more fields than the header
    """
    text = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
    try:
        reader = csv.reader(text)
        try:
            headers = _normalize_headers(next(reader))
        except StopIteration:
            logger.warning("Source file is empty; no header row found")
            return

        width = len(headers)
        index = 0
        for fields in reader:
            if not fields:
                continue
            if len(fields) > width:
                raise MalformedRow(
                    f"Row {index} (line {reader.line_num}) has {len(fields)} fields, "
                    f"header has {width}",
                    line_number=reader.line_num,
                )
            if len(fields) < width:
                fields = fields + [""] * (width - len(fields))

            yield SourceRow(index=index, fields=dict(zip(headers, fields)))
            index += 1
    except UnicodeDecodeError as e:
        raise SourceReadError(f"Source file is not valid UTF-8: {e}") from e
    except csv.Error as e:
        raise MalformedRow(f"Unparseable CSV content: {e}") from e
    except OSError as e:
        raise SourceReadError(f"Failed reading source file: {e}") from e
    finally:
        # Leave the underlying stream open for its owner
        if not stream.closed:
            text.detach()
