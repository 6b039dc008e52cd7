import asyncio
import time
import unittest
from datetime import datetime, timezone

from botocore.exceptions import ClientError

from s3_filemanager.backends import BucketBackend
from s3_filemanager.errors import NotFoundError, TransportError
from s3_filemanager.models import ObjectRecord
from s3_filemanager.services import S3BucketService


class FakeS3Client:
    def __init__(self, object_responses=None, delete_errors=None, presigned_url_outputs=None):
        self.object_responses = iter(object_responses or [])
        self.list_objects_kwargs = []
        self.delete_object_calls = []
        self.delete_object_errors = delete_errors or {}
        self.presigned_url_outputs = presigned_url_outputs or {}
        self.presigned_url_calls = []

    def list_objects_v2(self, **kwargs):
        self.list_objects_kwargs.append(kwargs)
        response = next(self.object_responses)
        if isinstance(response, Exception):
            raise response
        return response

    def delete_object(self, **kwargs):
        key = kwargs["Key"]
        self.delete_object_calls.append((kwargs["Bucket"], key))
        error = self.delete_object_errors.get(key)
        if isinstance(error, Exception):
            raise error

    def generate_presigned_url(self, client_method, Params=None, ExpiresIn=3600):
        params = Params or {}
        self.presigned_url_calls.append(
            {
                "method": client_method,
                "params": params,
                "expires_in": ExpiresIn,
            }
        )
        result = self.presigned_url_outputs.get((client_method, params.get("Key")), "signed-url")
        if isinstance(result, Exception):
            raise result
        return result


def client_error(code, operation="DeleteObject", status=400):
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


def build_service(fake_client, factory_calls=None):
    def factory(*args, **kwargs):
        if factory_calls is not None:
            factory_calls.append((args, kwargs))
        return fake_client

    return S3BucketService(
        endpoint_url="https://example.com",
        bucket_name="bucket-one",
        access_key="access",
        secret_key="secret",
        client_factory=factory,
    )


class S3BucketServiceTests(unittest.TestCase):
    def test_lists_all_pages_without_delimiter(self):
        modified = datetime(2024, 1, 1, tzinfo=timezone.utc)
        fake_client = FakeS3Client(
            [
                {
                    "Contents": [{"Key": "a/1.txt", "Size": 3, "LastModified": modified}],
                    "IsTruncated": True,
                    "NextContinuationToken": "token-1",
                },
                {"Contents": [{"Key": "b.txt", "Size": 4}], "IsTruncated": False},
            ]
        )
        service = build_service(fake_client)

        records = service.list_objects(prefix="a/")

        self.assertEqual(
            [
                ObjectRecord(key="a/1.txt", size=3, last_modified=modified),
                ObjectRecord(key="b.txt", size=4),
            ],
            records,
        )
        self.assertEqual("a/", fake_client.list_objects_kwargs[0]["Prefix"])
        self.assertNotIn("Delimiter", fake_client.list_objects_kwargs[0])
        self.assertNotIn("ContinuationToken", fake_client.list_objects_kwargs[0])
        self.assertEqual("token-1", fake_client.list_objects_kwargs[1]["ContinuationToken"])

    def test_root_listing_omits_prefix(self):
        fake_client = FakeS3Client([{"Contents": [], "IsTruncated": False}])
        service = build_service(fake_client)

        self.assertEqual([], service.list_objects())
        self.assertNotIn("Prefix", fake_client.list_objects_kwargs[0])

    def test_client_is_created_once_with_credentials(self):
        calls = []
        fake_client = FakeS3Client([{"Contents": []}, {"Contents": []}])
        service = build_service(fake_client, calls)

        service.list_objects()
        service.list_objects()

        self.assertEqual(1, len(calls))
        args, kwargs = calls[0]
        self.assertEqual(("s3",), args)
        self.assertEqual("https://example.com", kwargs["endpoint_url"])
        self.assertEqual("access", kwargs["aws_access_key_id"])
        self.assertNotIn("region_name", kwargs)

    def test_generate_presigned_put_url_uses_content_type(self):
        fake_client = FakeS3Client(presigned_url_outputs={("put_object", "docs/a.txt"): "put-url"})
        service = build_service(fake_client)

        url = service.generate_presigned_url(key="docs/a.txt", method="put", content_type="text/plain")

        self.assertEqual("put-url", url)
        self.assertEqual(
            {"Bucket": "bucket-one", "Key": "docs/a.txt", "ContentType": "text/plain"},
            fake_client.presigned_url_calls[0]["params"],
        )

    def test_generate_presigned_url_validates_input(self):
        service = build_service(FakeS3Client())

        with self.assertRaises(ValueError):
            service.generate_presigned_url(key="a.txt", method="post")
        with self.assertRaises(ValueError):
            service.generate_presigned_url(key="a.txt", expires_in=0)

    def test_delete_object(self):
        fake_client = FakeS3Client()
        service = build_service(fake_client)

        service.delete_object(key="a.txt")

        self.assertEqual([("bucket-one", "a.txt")], fake_client.delete_object_calls)


class BucketBackendTests(unittest.IsolatedAsyncioTestCase):
    async def test_issue_download_url_sets_disposition(self):
        fake_client = FakeS3Client()
        backend = BucketBackend(build_service(fake_client), expires_in=60)

        await backend.issue_download_url("docs/report.pdf", inline=False)
        await backend.issue_download_url("docs/report.pdf", inline=True)

        first, second = fake_client.presigned_url_calls
        self.assertEqual("get_object", first["method"])
        self.assertEqual(60, first["expires_in"])
        self.assertEqual('attachment; filename="report.pdf"', first["params"]["ResponseContentDisposition"])
        self.assertEqual("inline", second["params"]["ResponseContentDisposition"])

    async def test_issue_upload_url(self):
        fake_client = FakeS3Client()
        backend = BucketBackend(build_service(fake_client))

        url = await backend.issue_upload_url("a.png", "image/png")

        self.assertEqual("signed-url", url)
        self.assertEqual("put_object", fake_client.presigned_url_calls[0]["method"])

    async def test_list_errors_become_transport_errors(self):
        fake_client = FakeS3Client([client_error("AccessDenied", "ListObjectsV2", 403)])
        backend = BucketBackend(build_service(fake_client))

        with self.assertRaises(TransportError) as ctx:
            await backend.list_objects("")

        self.assertEqual(403, ctx.exception.status)

    async def test_delete_of_missing_key_is_not_an_error(self):
        fake_client = FakeS3Client(delete_errors={"gone.txt": client_error("NoSuchKey", status=404)})
        backend = BucketBackend(build_service(fake_client))

        await backend.delete_object("gone.txt")

        self.assertEqual([("bucket-one", "gone.txt")], fake_client.delete_object_calls)

    async def test_delete_errors_become_transport_errors(self):
        fake_client = FakeS3Client(delete_errors={"locked.txt": client_error("AccessDenied", status=403)})
        backend = BucketBackend(build_service(fake_client))

        with self.assertRaises(TransportError):
            await backend.delete_object("locked.txt")

    async def test_missing_key_on_sign_raises_not_found(self):
        fake_client = FakeS3Client(
            presigned_url_outputs={("get_object", "x"): client_error("NoSuchKey", "GetObject", 404)}
        )
        backend = BucketBackend(build_service(fake_client))

        with self.assertRaises(NotFoundError):
            await backend.issue_download_url("x", inline=True)

    async def test_concurrent_calls_share_one_client(self):
        fake_client = FakeS3Client()
        calls = []

        def slow_factory(*args, **kwargs):
            calls.append(args)
            time.sleep(0.05)
            return fake_client

        service = S3BucketService(
            endpoint_url="https://example.com",
            bucket_name="bucket-one",
            access_key="access",
            secret_key="secret",
            client_factory=slow_factory,
        )
        backend = BucketBackend(service)

        await asyncio.gather(*(backend.delete_object(f"{index}.txt") for index in range(8)))

        self.assertEqual(1, len(calls))
        self.assertEqual(8, len(fake_client.delete_object_calls))


if __name__ == "__main__":
    unittest.main()
