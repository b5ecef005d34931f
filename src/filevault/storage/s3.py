import sys
from typing import Optional

import aioboto3
from botocore.exceptions import ClientError, EndpointConnectionError
from loguru import logger

from filevault.storage.backend import FileRecord

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


class S3Storage:
    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        prefix: str = "files",
        endpoint_url: Optional[str] = None,
    ):
        self.bucket = bucket
        self.region = region
        self.prefix = prefix.strip("/")
        self.endpoint_url = endpoint_url
        self._session = aioboto3.Session()

    def _get_client_kwargs(self) -> dict:
        kwargs = {"region_name": self.region}
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        return kwargs

    def _get_key_prefix(self) -> str:
        return f"{self.prefix}/" if self.prefix else ""

    def _get_key(self, name: str) -> str:
        return f"{self._get_key_prefix()}{name}"

    async def write_file(self, name: str, content: bytes) -> None:
        key = self._get_key(name)
        async with self._session.client("s3", **self._get_client_kwargs()) as s3:
            await s3.put_object(Bucket=self.bucket, Key=key, Body=content)
            logger.debug(f"Uploaded {name} to s3://{self.bucket}/{key}")

    async def read_file(self, name: str) -> bytes:
        key = self._get_key(name)
        async with self._session.client("s3", **self._get_client_kwargs()) as s3:
            try:
                response = await s3.get_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if e.response["Error"]["Code"] in _NOT_FOUND_CODES:
                    raise FileNotFoundError(f"File not found: {name}") from e
                raise
            async with response["Body"] as stream:
                return await stream.read()

    async def list_files(self) -> list[FileRecord]:
        key_prefix = self._get_key_prefix()
        records = []
        async with self._session.client("s3", **self._get_client_kwargs()) as s3:
            paginator = s3.get_paginator("list_objects_v2")
            try:
                async for page in paginator.paginate(
                    Bucket=self.bucket, Prefix=key_prefix
                ):
                    for obj in page.get("Contents", []):
                        name = obj["Key"][len(key_prefix) :]
                        if not name or "/" in name:
                            continue
                        records.append(
                            FileRecord(
                                name=name,
                                created_at=obj["LastModified"],
                                updated_at=obj["LastModified"],
                                size=obj.get("Size", 0),
                            )
                        )
            except ClientError as e:
                if e.response["Error"]["Code"] == "NoSuchBucket":
                    return []
                raise
        return records

    async def validate_connection(self) -> None:
        async with self._session.client("s3", **self._get_client_kwargs()) as s3:
            try:
                await s3.head_bucket(Bucket=self.bucket)
                logger.info(f"Connected to S3 bucket {self.bucket}")
                return
            except EndpointConnectionError:
                self._exit_with_connection_error()
            except ClientError as e:
                code = e.response["Error"]["Code"]
                if code in ("403", "AccessDenied"):
                    self._exit_with_error(
                        "S3 Authentication Failed",
                        f"Access to bucket '{self.bucket}' was denied.",
                        [
                            "Check AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY",
                            "Check that the credentials may access this bucket",
                        ],
                    )
                if code not in _NOT_FOUND_CODES and code != "NoSuchBucket":
                    raise

            await self._create_bucket(s3)

    async def _create_bucket(self, s3) -> None:
        logger.info(f"Bucket {self.bucket} not found, creating it")
        try:
            if self.region == "us-east-1":
                await s3.create_bucket(Bucket=self.bucket)
            else:
                await s3.create_bucket(
                    Bucket=self.bucket,
                    CreateBucketConfiguration={"LocationConstraint": self.region},
                )
        except ClientError as e:
            self._exit_with_error(
                "S3 Bucket Creation Failed",
                f"Could not create bucket '{self.bucket}': {e}",
                [
                    f"Create it manually: aws s3 mb s3://{self.bucket}",
                    "Or grant s3:CreateBucket to these credentials",
                ],
            )

    def _exit_with_connection_error(self) -> None:
        if self.endpoint_url:
            hints = [
                f"Check that the service at {self.endpoint_url} is running",
                "For LocalStack: docker run -p 4566:4566 localstack/localstack",
            ]
        else:
            hints = [
                "Check your network connection and AWS region",
                "--s3-endpoint is only needed for LocalStack/MinIO",
            ]
        self._exit_with_error(
            "S3 Connection Failed", "Could not reach the S3 endpoint.", hints
        )

    def _exit_with_error(self, title: str, message: str, hints: list[str]) -> None:
        print("=" * 50)
        print(f"Error: {title}")
        print(message)
        print(f"Bucket: {self.bucket}")
        if self.endpoint_url:
            print(f"Endpoint: {self.endpoint_url}")
        print()
        for hint in hints:
            print(f"  - {hint}")
        print("=" * 50)
        sys.exit(1)
