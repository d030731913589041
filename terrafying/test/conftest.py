from collections.abc import Callable, Iterator
from typing import Any

import boto3
import pytest
from moto import mock_aws

from terrafying.components.letsencrypt import fetch_trust_anchor
from terrafying.test.fixtures import (
    BUCKET,
    TRUST_ANCHOR,
)
from terrafying.utils import config
from terrafying.utils.object_store import ObjectStore
from terrafying.utils.terrascript.context import Context


@pytest.fixture(autouse=True)
def reset_config() -> Iterator[None]:
    config.init({})
    yield
    config.init({})


@pytest.fixture(autouse=True)
def trust_anchor(mocker) -> Any:
    """Serve TRUST_ANCHOR for every trust anchor download."""
    fetch_trust_anchor.cache_clear()
    mock_get = mocker.patch("terrafying.components.letsencrypt.requests.get")
    mock_get.return_value.text = TRUST_ANCHOR
    yield mock_get
    fetch_trust_anchor.cache_clear()


@pytest.fixture
def s3_client(monkeypatch) -> Iterator[Any]:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")

    with mock_aws():
        s3_client = boto3.client("s3", region_name="us-east-1")
        s3_client.create_bucket(Bucket=BUCKET)
        yield s3_client


@pytest.fixture
def object_store(s3_client) -> ObjectStore:
    return ObjectStore(s3_client)


@pytest.fixture
def apply_objects(s3_client) -> Callable[[Context], list[str]]:
    """
    Write the S3 objects of a context whose content is known before apply,
    the way terraform would. Returns the keys written.
    """

    def _apply(ctx: Context) -> list[str]:
        written = []
        objects = ctx.output()["resource"].get("aws_s3_bucket_object", {})
        for obj in objects.values():
            if "${" in obj["content"]:
                continue
            key = obj["key"].lstrip("/")
            s3_client.put_object(Bucket=obj["bucket"], Key=key, Body=obj["content"])
            written.append(key)
        return written

    return _apply
