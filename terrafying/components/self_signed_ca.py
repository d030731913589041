from typing import Optional

from terrafying.components.ca import (
    DEFAULT_ORGANIZATION,
    DEFAULT_VALIDITY_IN_HOURS,
    S3_OBJECT,
    CAMetadata,
    CAOptions,
    CertificateAuthority,
    KeypairOptions,
    private_key_attrs,
)
from terrafying.utils.terrascript.context import Context
from terrafying.utils.terrascript.references import OutputReference

CA_ALLOWED_USES = [
    "certSigning",
    "keyEncipherment",
    "digitalSignature",
]


class SelfSignedCAOptions(CAOptions):
    common_name: Optional[str] = None
    organization: str = DEFAULT_ORGANIZATION
    validity_in_hours: int = DEFAULT_VALIDITY_IN_HOURS


class SelfSignedCA(CertificateAuthority):
    """A CA whose root certificate is signed by its own key, using the tls provider."""

    provider_name = "self-signed"
    options_class = SelfSignedCAOptions

    def __init__(self, parent: Optional[Context] = None) -> None:
        super().__init__(parent)
        self.ca_key: str = ""

    def _create(self, name: str, bucket: str, opts: SelfSignedCAOptions) -> None:
        self._bind(name, bucket, opts.prefix)
        self.public_certificate = opts.public_certificate

        self.provider("tls")

        self.resource(
            "tls_private_key", self.ident, private_key_attrs(opts.algorithm, opts.curve)
        )
        self.ca_key = self.output_of("tls_private_key", self.ident, "private_key_pem")

        self.resource(
            "tls_self_signed_cert",
            self.ident,
            {
                "private_key_pem": self.ca_key,
                "subject": {
                    "common_name": opts.common_name or name,
                    "organization": opts.organization,
                },
                "is_ca_certificate": True,
                "validity_period_hours": opts.validity_in_hours,
                "allowed_uses": CA_ALLOWED_USES,
            },
        )
        self.ca_cert = self.output_of("tls_self_signed_cert", self.ident, "cert_pem")

        self._store_ca_cert(self.ca_cert)
        self.resource(
            S3_OBJECT,
            self.object_name(name, "key"),
            {
                "bucket": bucket,
                "key": self.object_key(name, "key"),
                "content": self.ca_key,
            },
        )
        self._store_metadata()

    def _find(self, metadata: CAMetadata) -> None:
        self._check_provider(metadata)
        self.provider("tls")
        self.ca_cert = self._stored_object("cert")
        self.ca_key = self._stored_object("key")

    def _sign(
        self, ctx: Context, key_ident: str, opts: KeypairOptions
    ) -> OutputReference:
        ctx.resource(
            "tls_locally_signed_cert",
            key_ident,
            {
                "cert_request_pem": ctx.output_of(
                    "tls_cert_request", key_ident, "cert_request_pem"
                ),
                "ca_private_key_pem": self.ca_key,
                "ca_cert_pem": self.ca_cert,
                "validity_period_hours": opts.validity_in_hours,
                "allowed_uses": opts.allowed_uses,
            },
        )
        return ctx.output_of("tls_locally_signed_cert", key_ident, "cert_pem")
