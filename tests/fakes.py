# tests/fakes.py
from botocore.exceptions import ClientError


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3Client:
    """
    In-memory stand-in for the boto3 S3 client.

    Only the calls ObjectStorage makes are implemented. Every call is captured
    in ``calls`` so tests can assert that nothing reached the store.
    """

    def __init__(self, buckets=None):
        self.buckets = set(buckets or ())
        self.objects = {}
        self.calls = []
        self.fail_uploads_with = None
        self.fail_deletes_with = None
        self.create_bucket_error = None

    def head_bucket(self, Bucket):
        self.calls.append(("head_bucket", Bucket))
        if Bucket not in self.buckets:
            raise client_error("404", "HeadBucket")
        return {}

    def create_bucket(self, Bucket):
        self.calls.append(("create_bucket", Bucket))
        if self.create_bucket_error:
            raise client_error(self.create_bucket_error, "CreateBucket")
        self.buckets.add(Bucket)
        return {}

    def upload_fileobj(self, Fileobj, Bucket, Key, ExtraArgs=None, Config=None):
        self.calls.append(("upload_fileobj", Bucket, Key))
        if self.fail_uploads_with:
            raise client_error(self.fail_uploads_with, "PutObject")
        chunks = []
        while True:
            chunk = Fileobj.read(1024 * 1024)
            if not chunk:
                break
            chunks.append(chunk)
        self.objects[(Bucket, Key)] = {"body": b"".join(chunks), "extra": dict(ExtraArgs or {})}

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete_object", Bucket, Key))
        if self.fail_deletes_with:
            raise client_error(self.fail_deletes_with, "DeleteObject")
        if Bucket not in self.buckets:
            raise client_error("NoSuchBucket", "DeleteObject")
        self.objects.pop((Bucket, Key), None)
        return {}

    def network_calls(self):
        return [c for c in self.calls if c[0] in ("upload_fileobj", "create_bucket", "delete_object")]
