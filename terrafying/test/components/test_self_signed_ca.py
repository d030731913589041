import json

import pytest

from terrafying.components.letsencrypt import LetsEncrypt
from terrafying.components.self_signed_ca import (
    CA_ALLOWED_USES,
    SelfSignedCA,
)
from terrafying.test.fixtures import BUCKET
from terrafying.utils.exceptions import (
    CANotFoundError,
    ConfigurationError,
)
from terrafying.utils.terrascript.context import Context

CA_NAME = "internal"


def test_create_self_signed_root():
    ca = SelfSignedCA.create(
        CA_NAME, BUCKET, organization="Example Ltd", validity_in_hours=48, curve="P256"
    )

    output = ca.output()
    assert output["provider"] == {"tls": [{}]}
    assert output["resource"]["tls_private_key"][CA_NAME] == {
        "algorithm": "ECDSA",
        "ecdsa_curve": "P256",
    }
    assert output["resource"]["tls_self_signed_cert"][CA_NAME] == {
        "private_key_pem": f"${{tls_private_key.{CA_NAME}.private_key_pem}}",
        "subject": {"common_name": CA_NAME, "organization": "Example Ltd"},
        "is_ca_certificate": True,
        "validity_period_hours": 48,
        "allowed_uses": CA_ALLOWED_USES,
    }


def test_create_rsa_root():
    ca = SelfSignedCA.create(CA_NAME, BUCKET, algorithm="RSA")

    assert ca.output()["resource"]["tls_private_key"][CA_NAME] == {
        "algorithm": "RSA",
        "rsa_bits": 4096,
    }


def test_create_stores_ca_key_and_cert():
    ca = SelfSignedCA.create(CA_NAME, BUCKET, prefix="pki")

    objects = ca.output()["resource"]["aws_s3_bucket_object"]
    assert objects[f"{CA_NAME}-ca-cert"] == {
        "bucket": BUCKET,
        "key": f"/pki/{CA_NAME}/ca.cert",
        "content": f"${{tls_self_signed_cert.{CA_NAME}.cert_pem}}",
        "acl": "private",
    }
    assert objects[f"{CA_NAME}-ca-key"] == {
        "bucket": BUCKET,
        "key": f"/pki/{CA_NAME}/ca.key",
        "content": f"${{tls_private_key.{CA_NAME}.private_key_pem}}",
    }
    assert json.loads(objects[f"{CA_NAME}-metadata"]["content"]) == {
        "provider": "self-signed",
        "public_certificate": False,
        "use_external_dns": False,
    }


def test_create_keypair_locally_signed():
    ca = SelfSignedCA.create(CA_NAME, BUCKET)
    ca.create_keypair("web", validity_in_hours=24, allowed_uses=["serverAuth"])

    cert = ca.output()["resource"]["tls_locally_signed_cert"][f"{CA_NAME}-web"]
    assert cert == {
        "cert_request_pem": f"${{tls_cert_request.{CA_NAME}-web.cert_request_pem}}",
        "ca_private_key_pem": f"${{tls_private_key.{CA_NAME}.private_key_pem}}",
        "ca_cert_pem": f"${{tls_self_signed_cert.{CA_NAME}.cert_pem}}",
        "validity_period_hours": 24,
        "allowed_uses": ["serverAuth"],
    }


def test_create_keypair_in_other_context_signs_with_ca():
    ca = SelfSignedCA.create(CA_NAME, BUCKET)
    ctx = Context()

    ca.create_keypair_in(ctx, "web")

    assert "tls_locally_signed_cert" not in ca.output()["resource"]
    cert = ctx.output()["resource"]["tls_locally_signed_cert"][f"{CA_NAME}-web"]
    assert cert["ca_private_key_pem"] == ca.ca_key
    assert cert["ca_cert_pem"] == ca.ca_cert
    # keypair objects still land in the CA's bucket
    for obj in ctx.output()["resource"]["aws_s3_bucket_object"].values():
        assert obj["bucket"] == BUCKET
        assert obj["key"].startswith(f"/{CA_NAME}/web/")


def test_find_round_trip(object_store, apply_objects):
    created = SelfSignedCA.create(CA_NAME, BUCKET, public_certificate=True)
    assert apply_objects(created) == [f"{CA_NAME}/.metadata"]

    found = SelfSignedCA.find(CA_NAME, BUCKET, object_store=object_store)

    assert found == created
    assert found.ca_cert_acl == "public-read"
    data = found.output()["data"]["aws_s3_bucket_object"]
    assert data[f"{CA_NAME}-ca-cert"] == {
        "bucket": BUCKET,
        "key": f"/{CA_NAME}/ca.cert",
    }
    assert found.ca_cert == f"${{data.aws_s3_bucket_object.{CA_NAME}-ca-cert.body}}"
    assert found.ca_key == f"${{data.aws_s3_bucket_object.{CA_NAME}-ca-key.body}}"

    keypair = found.create_keypair("web")
    output = found.output()["resource"]
    assert "tls_self_signed_cert" not in output
    assert output["tls_locally_signed_cert"][f"{CA_NAME}-web"]["ca_cert_pem"] == (
        found.ca_cert
    )
    assert keypair.resources == [
        f"aws_s3_bucket_object.{CA_NAME}-web-key",
        f"aws_s3_bucket_object.{CA_NAME}-web-cert",
    ]


def test_find_missing_ca(object_store):
    with pytest.raises(CANotFoundError):
        SelfSignedCA.find(CA_NAME, BUCKET, object_store=object_store)


def test_find_letsencrypt_ca(object_store, apply_objects):
    apply_objects(LetsEncrypt.create(CA_NAME, BUCKET))

    with pytest.raises(ConfigurationError):
        SelfSignedCA.find(CA_NAME, BUCKET, object_store=object_store)


def test_find_malformed_metadata(object_store, s3_client):
    s3_client.put_object(Bucket=BUCKET, Key=f"{CA_NAME}/.metadata", Body="not json")

    with pytest.raises(ConfigurationError):
        SelfSignedCA.find(CA_NAME, BUCKET, object_store=object_store)
