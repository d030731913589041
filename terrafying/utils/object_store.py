import logging
from typing import (
    TYPE_CHECKING,
    Optional,
)

import boto3
from botocore.errorfactory import ClientError

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client
else:
    S3Client = object

from terrafying.utils import config
from terrafying.utils.exceptions import ObjectNotFoundError
from terrafying.utils.terrascript.references import Lookup

NOT_FOUND_CODES = ("NoSuchKey", "404")


class ObjectStore:
    """
    Reads objects from S3 while the configuration is being generated.

    Everything else in this package only describes objects for terraform to
    write; this is the one place that talks to the bucket directly.
    """

    def __init__(self, client: S3Client) -> None:
        self.client = client

    @classmethod
    def from_config(cls) -> "ObjectStore":
        aws = config.section("aws")
        session = boto3.Session(
            profile_name=aws.get("profile"), region_name=aws.get("region")
        )
        return cls(session.client("s3"))

    def lookup(self, bucket: str, key: str) -> Lookup:
        # the aws provider stores keys without the leading slash
        s3_key = key.lstrip("/")
        logging.debug(f"reading s3://{bucket}/{s3_key}")
        try:
            response = self.client.get_object(Bucket=bucket, Key=s3_key)
        except ClientError as details:
            if details.response["Error"]["Code"] in NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"s3://{bucket}/{s3_key}") from None
            raise
        body = response["Body"].read().decode("utf-8")
        return Lookup(bucket=bucket, key=s3_key, body=body)


_default_store: Optional[ObjectStore] = None


def default_object_store() -> ObjectStore:
    global _default_store  # noqa: PLW0603
    if _default_store is None:
        _default_store = ObjectStore.from_config()
    return _default_store
