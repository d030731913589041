import logging
from collections.abc import Mapping
from typing import Any

from terrafying.components.ca import CertificateAuthority
from terrafying.components.letsencrypt import LetsEncrypt
from terrafying.components.self_signed_ca import SelfSignedCA
from terrafying.utils.exceptions import ConfigurationError

CA_TYPES: dict[str, type[CertificateAuthority]] = {
    "self-signed": SelfSignedCA,
    "letsencrypt": LetsEncrypt,
}


def ca_class(ca_type: str) -> type[CertificateAuthority]:
    try:
        return CA_TYPES[ca_type]
    except KeyError:
        raise ConfigurationError(
            f"unknown CA type {ca_type!r}, expected one of {', '.join(CA_TYPES)}"
        ) from None


def build_ca(definition: Mapping[str, Any]) -> CertificateAuthority:
    """
    Create (or find) a CA from a [[ca]] config entry, and issue the keypairs
    listed in its [[ca.keypair]] entries.

    [[ca]]
    name = "internal"
    bucket = "some-bucket"
    type = "self-signed"
    find = false
    public_certificate = true

    [[ca.keypair]]
    name = "web"
    dns_names = ["web.example.com"]
    """
    options = dict(definition)
    try:
        name = options.pop("name")
        bucket = options.pop("bucket")
    except KeyError as e:
        raise ConfigurationError(f"CA definition is missing {e!s}") from None
    cls = ca_class(options.pop("type", "self-signed"))
    keypairs = options.pop("keypair", [])

    if options.pop("find", False):
        prefix = options.pop("prefix", "")
        if options:
            raise ConfigurationError(
                f"options {', '.join(options)} can't be used to find CA {name}"
            )
        ca = cls.find(name, bucket, prefix=prefix)
    else:
        ca = cls.create(name, bucket, **options)

    for keypair in keypairs:
        keypair_options = dict(keypair)
        keypair_name = keypair_options.pop("name", None)
        if not keypair_name:
            raise ConfigurationError(f"keypair of CA {name} is missing a name")
        ca.create_keypair(keypair_name, **keypair_options)
        logging.info(f"[{name}] keypair {keypair_name}")

    return ca
