"""Tests for blob storage backends."""

import io

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError

from costpool.exceptions import SourceReadError
from costpool.pipeline.reader import iter_source_rows
from costpool.storage import LocalBlobStore, S3BlobStore


class TestLocalBlobStore:
    def test_write_then_stream(self, blob_store):
        blob_store.write_bytes("bucket", "uploads/acme/pipe1/job1/a.csv", b"A,B\n1,2\n")

        assert blob_store.exists("bucket", "uploads/acme/pipe1/job1/a.csv")
        with blob_store.open_stream("bucket", "uploads/acme/pipe1/job1/a.csv") as stream:
            assert stream.read() == b"A,B\n1,2\n"

    def test_missing_blob(self, blob_store):
        assert not blob_store.exists("bucket", "uploads/none.csv")
        with pytest.raises(SourceReadError):
            blob_store.open_stream("bucket", "uploads/none.csv")

    @pytest.mark.parametrize("bucket,path", [
        ("..", "etc/passwd"),
        ("bucket/../other", "a.csv"),
        ("bucket", "../../outside.csv"),
    ])
    def test_path_traversal_rejected(self, tmp_path, bucket, path):
        store = LocalBlobStore(base_dir=tmp_path / "blobs")

        with pytest.raises(ValueError):
            store.open_stream(bucket, path)
        assert not store.exists(bucket, path)


class FakeBody:
    """Mimics a botocore StreamingBody."""

    def __init__(self, data: bytes, fail_after: int = None):
        self._data = io.BytesIO(data)
        self._fail_after = fail_after
        self.closed = False

    def read(self, amt=None):
        if self._fail_after is not None and self._data.tell() >= self._fail_after:
            raise ReadTimeoutError(endpoint_url="https://s3.test")
        return self._data.read(amt)

    def close(self):
        self.closed = True


class FakeS3Client:
    def __init__(self, objects):
        self.objects = objects
        self.bodies = []

    def _missing(self, operation):
        return ClientError({"Error": {"Code": "NoSuchKey", "Message": "Not Found"}}, operation)

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise self._missing("GetObject")
        data, fail_after = self.objects[(Bucket, Key)]
        body = FakeBody(data, fail_after)
        self.bodies.append(body)
        return {"Body": body, "ContentLength": len(data)}

    def head_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}


class TestS3BlobStore:
    def test_streams_rows_and_closes_body(self):
        client = FakeS3Client({("bucket", "a.csv"): (b"Vendor,Amount\nAcme,10\nGlobex,20\n", None)})
        store = S3BlobStore(client=client, buffer_size=8)

        with store.open_stream("bucket", "a.csv") as stream:
            rows = list(iter_source_rows(stream))

        assert [row.fields["Vendor"] for row in rows] == ["Acme", "Globex"]
        assert client.bodies[0].closed

    def test_missing_object(self):
        store = S3BlobStore(client=FakeS3Client({}))

        assert not store.exists("bucket", "a.csv")
        with pytest.raises(SourceReadError):
            store.open_stream("bucket", "a.csv")

    def test_read_failure_mid_stream(self):
        data = b"Vendor,Amount\n" + b"".join(b"Acme,%d\n" % i for i in range(100))
        client = FakeS3Client({("bucket", "a.csv"): (data, 64)})
        store = S3BlobStore(client=client, buffer_size=16)

        with store.open_stream("bucket", "a.csv") as stream:
            with pytest.raises(SourceReadError):
                list(iter_source_rows(stream))
