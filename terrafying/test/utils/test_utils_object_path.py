import pytest

from terrafying.utils.exceptions import ConfigurationError
from terrafying.utils.object_path import (
    ObjectLayout,
    ObjectPath,
)


@pytest.mark.parametrize(
    "segments, expected",
    [
        ((), "/"),
        (("", "ca", "ca.cert"), "/ca/ca.cert"),
        (("prefix", "ca"), "/prefix/ca"),
        (("/prefix/", "/ca/", "key"), "/prefix/ca/key"),
        (("a//b", None, "c"), "/a/b/c"),
    ],
)
def test_object_path(segments, expected):
    assert str(ObjectPath.of(*segments)) == expected


def test_object_path_join():
    assert str(ObjectPath.of("a").join("", "b/", None, "c")) == "/a/b/c"


@pytest.fixture
def layout() -> ObjectLayout:
    return ObjectLayout(bucket="a-bucket", prefix="", ca_name="some-ca")


@pytest.fixture
def prefixed_layout() -> ObjectLayout:
    return ObjectLayout(bucket="a-bucket", prefix="a_prefix", ca_name="some-ca")


def test_object_key_ca(layout, prefixed_layout):
    assert layout.object_key("some-ca", "cert") == "/some-ca/ca.cert"
    assert layout.object_key("some-ca", "key", "v1") == "/some-ca/ca.key"
    assert prefixed_layout.object_key("some-ca", "cert") == "/a_prefix/some-ca/ca.cert"


def test_object_key_keypair(layout, prefixed_layout):
    assert layout.object_key("foo", "key", "v1") == "/some-ca/foo/v1/key"
    assert layout.object_key("foo", "cert", "latest") == "/some-ca/foo/latest/cert"
    assert layout.object_key("foo", "cert") == "/some-ca/foo/cert"
    assert prefixed_layout.object_key("foo", "key", "v1") == (
        "/a_prefix/some-ca/foo/v1/key"
    )


def test_object_key_sanitizes_name(layout):
    assert layout.object_key("foo.example.com", "key", "v1") == (
        "/some-ca/foo-example-com/v1/key"
    )


def test_object_name(layout):
    assert layout.object_name("some-ca", "cert") == "some-ca-ca-cert"
    assert layout.object_name("foo", "key") == "some-ca-foo-key"


def test_object_name_sanitizes_ca_name():
    layout = ObjectLayout(bucket="a-bucket", prefix="", ca_name="int.example")

    assert layout.ca_ident == "int-example"
    assert layout.object_name("int.example", "key") == "int-example-ca-key"
    assert layout.object_key("int.example", "key") == "/int.example/ca.key"


def test_object_arn(layout, prefixed_layout):
    assert layout.object_arn("foo", "cert") == (
        "arn:aws:s3:::a-bucket/some-ca/foo/*/cert"
    )
    assert layout.object_arn("some-ca", "cert") == (
        "arn:aws:s3:::a-bucket/some-ca/ca.cert"
    )
    assert prefixed_layout.object_arn("foo", "key") == (
        "arn:aws:s3:::a-bucket/a_prefix/some-ca/foo/*/key"
    )


def test_object_url(layout):
    assert layout.object_url("some-ca", "cert") == "s3://a-bucket/some-ca/ca.cert"
    assert layout.object_url("foo", "key", "v1") == "s3://a-bucket/some-ca/foo/v1/key"


def test_metadata_and_account_keys(layout, prefixed_layout):
    assert layout.metadata_key() == "/some-ca/.metadata"
    assert layout.account_key_key() == "/some-ca/account.key"
    assert prefixed_layout.metadata_key() == "/a_prefix/some-ca/.metadata"


@pytest.mark.parametrize("role", ["crt", "", "ca.cert"])
def test_unknown_role(layout, role):
    with pytest.raises(ConfigurationError):
        layout.object_key("foo", role)
    with pytest.raises(ConfigurationError):
        layout.object_arn("some-ca", role)
    with pytest.raises(ConfigurationError):
        layout.object_name("foo", role)
