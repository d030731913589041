import functools
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import (
    Any,
    ClassVar,
    Literal,
    Optional,
    TypeVar,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
)

from terrafying.utils.exceptions import (
    CANotFoundError,
    ConfigurationError,
    ObjectNotFoundError,
)
from terrafying.utils.object_path import (
    CA_IDENT,
    LATEST,
    ObjectLayout,
)
from terrafying.utils.object_store import (
    ObjectStore,
    default_object_store,
)
from terrafying.utils.terraform import tf_safe
from terrafying.utils.terrascript.context import Context
from terrafying.utils.terrascript.references import (
    RESOURCE,
    OutputReference,
    sha256_of,
)

DEFAULT_ORGANIZATION = "uSwitch Limited"
DEFAULT_VALIDITY_IN_HOURS = 24 * 365
DEFAULT_RSA_BITS = 4096

S3_OBJECT = "aws_s3_bucket_object"

Curve = Literal["P224", "P256", "P384", "P521"]
KeyAlgorithm = Literal["ECDSA", "RSA"]

Options = TypeVar("Options", bound=BaseModel)


class CAOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    prefix: str = ""
    algorithm: KeyAlgorithm = "ECDSA"
    curve: Curve = "P384"
    public_certificate: bool = False


class KeypairOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    common_name: Optional[str] = None
    organization: str = DEFAULT_ORGANIZATION
    validity_in_hours: int = DEFAULT_VALIDITY_IN_HOURS
    allowed_uses: list[str] = [
        "nonRepudiation",
        "digitalSignature",
        "keyEncipherment",
    ]
    dns_names: list[str] = []
    ip_addresses: list[str] = []
    algorithm: KeyAlgorithm = "ECDSA"
    curve: Curve = "P384"


class CAMetadata(BaseModel):
    """The json object stored next to a CA so that it can be found later on."""

    provider: str
    public_certificate: bool = False
    use_external_dns: bool = False


def parse_options(model: type[Options], options: Mapping[str, Any]) -> Options:
    try:
        return model(**options)
    except ValidationError as e:
        raise ConfigurationError(f"invalid {model.__name__}: {e}") from None


def private_key_attrs(algorithm: str, curve: str) -> dict[str, Any]:
    if algorithm == "RSA":
        return {"algorithm": "RSA", "rsa_bits": DEFAULT_RSA_BITS}
    return {"algorithm": "ECDSA", "ecdsa_curve": curve}


@dataclass(frozen=True)
class Keypair:
    name: str
    ca: "CertificateAuthority"
    source: dict[str, str]
    resources: list[str]
    iam_statement: dict[str, Any]


@functools.total_ordering
class CertificateAuthority(Context):
    """
    Shared behaviour of the certificate authorities.

    A CA is itself a Context holding the records that create (or look up) the
    CA. Keypairs issued by the CA are signed with the CA's key and stored in
    the CA's bucket, but their records can be registered in any context with
    create_keypair_in().

    Subclasses set ``provider_name`` (written to the metadata object) and
    implement _create(), _find() and _sign().
    """

    provider_name: ClassVar[str]
    options_class: ClassVar[type[CAOptions]] = CAOptions
    keypair_options_class: ClassVar[type[KeypairOptions]] = KeypairOptions

    def __init__(self, parent: Optional[Context] = None) -> None:
        super().__init__(parent)
        self.name = ""
        self.bucket = ""
        self.prefix = ""
        self.public_certificate = False
        self.use_external_dns = False
        self.ca_cert: str = ""
        self.layout = ObjectLayout(bucket="", prefix="", ca_name="")

    @classmethod
    def create(cls, name: str, bucket: str, **options: Any) -> "CertificateAuthority":
        opts = parse_options(cls.options_class, options)
        ca = cls()
        ca._create(name, bucket, opts)
        logging.info(f"created {cls.__name__} {name} in bucket {bucket}")
        return ca

    @classmethod
    def find(
        cls,
        name: str,
        bucket: str,
        prefix: str = "",
        object_store: Optional[ObjectStore] = None,
    ) -> "CertificateAuthority":
        store = object_store or default_object_store()
        ca = cls()
        ca._bind(name, bucket, prefix)
        metadata = ca._read_metadata(store)
        ca.public_certificate = metadata.public_certificate
        ca.use_external_dns = metadata.use_external_dns
        ca._find(metadata)
        logging.info(f"found {cls.__name__} {name} in bucket {bucket}")
        return ca

    def _create(self, name: str, bucket: str, opts: Any) -> None:
        raise NotImplementedError()

    def _find(self, metadata: CAMetadata) -> None:
        raise NotImplementedError()

    def _sign(self, ctx: Context, key_ident: str, opts: Any) -> OutputReference:
        """Register the records signing the CSR ``key_ident`` and return the cert."""
        raise NotImplementedError()

    def _cert_content(self, cert_pem: str) -> str:
        return cert_pem

    def _bind(self, name: str, bucket: str, prefix: str) -> None:
        self.name = name
        self.bucket = bucket
        self.prefix = prefix
        self.layout = ObjectLayout(bucket=bucket, prefix=prefix, ca_name=name)

    def _read_metadata(self, store: ObjectStore) -> CAMetadata:
        try:
            lookup = store.lookup(self.bucket, self.layout.metadata_key())
        except ObjectNotFoundError:
            raise CANotFoundError(
                f"CA {self.name} not found in bucket {self.bucket}"
            ) from None
        try:
            return CAMetadata(**lookup.json())
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"malformed metadata for CA {self.name}: {e}"
            ) from None

    def _check_provider(self, metadata: CAMetadata) -> None:
        if metadata.provider != self.provider_name:
            raise ConfigurationError(
                f"CA {self.name} was created by provider {metadata.provider}, "
                f"not {self.provider_name}"
            )

    @property
    def ident(self) -> str:
        return self.layout.ca_ident

    @property
    def ca_cert_acl(self) -> str:
        return "public-read" if self.public_certificate else "private"

    @property
    def source(self) -> str:
        return self.object_url(self.name, "cert")

    def object_name(self, name: str, role: str) -> str:
        return self.layout.object_name(name, role)

    def object_key(self, name: str, role: str, version: Optional[str] = None) -> str:
        return self.layout.object_key(name, role, version)

    def object_url(self, name: str, role: str, version: Optional[str] = None) -> str:
        return self.layout.object_url(name, role, version)

    def object_arn(self, name: str, role: str, version: str = "*") -> str:
        return self.layout.object_arn(name, role, version)

    def _store_ca_cert(self, content: str) -> None:
        self.resource(
            S3_OBJECT,
            self.object_name(self.name, "cert"),
            {
                "bucket": self.bucket,
                "key": self.object_key(self.name, "cert"),
                "content": content,
                "acl": self.ca_cert_acl,
            },
        )

    def _metadata_provider(self) -> str:
        return self.provider_name

    def _store_metadata(self) -> None:
        metadata = CAMetadata(
            provider=self._metadata_provider(),
            public_certificate=self.public_certificate,
            use_external_dns=self.use_external_dns,
        )
        self.resource(
            S3_OBJECT,
            f"{self.ident}-metadata",
            {
                "bucket": self.bucket,
                "key": self.layout.metadata_key(),
                "content": json.dumps(metadata.model_dump()),
            },
        )

    def _stored_object(self, role: str) -> OutputReference:
        """Data source reading back one of the CA's own objects"""
        handle = self.data(
            S3_OBJECT,
            self.object_name(self.name, role),
            {"bucket": self.bucket, "key": self.object_key(self.name, role)},
        )
        return handle["body"]

    def create_keypair(self, name: str, **options: Any) -> Keypair:
        return self.create_keypair_in(self, name, **options)

    def create_keypair_in(self, ctx: Context, name: str, **options: Any) -> Keypair:
        self._check_keypair_name(name)
        opts = parse_options(self.keypair_options_class, options)
        key_ident = f"{self.ident}-{tf_safe(name)}"

        ctx.resource(
            "tls_private_key", key_ident, private_key_attrs(opts.algorithm, opts.curve)
        )
        private_key_pem = ctx.output_of("tls_private_key", key_ident, "private_key_pem")

        ctx.resource(
            "tls_cert_request",
            key_ident,
            {
                "private_key_pem": private_key_pem,
                "subject": {
                    "common_name": opts.common_name or name,
                    "organization": opts.organization,
                },
                "dns_names": opts.dns_names,
                "ip_addresses": opts.ip_addresses,
            },
        )

        cert_pem = self._sign(ctx, key_ident, opts)

        key_version = sha256_of(private_key_pem)
        self._store_versioned(ctx, name, "key", key_version, private_key_pem)

        cert_version = sha256_of(cert_pem)
        self._store_versioned(
            ctx, name, "cert", cert_version, self._cert_content(cert_pem)
        )

        logging.debug(f"issued keypair {name} from CA {self.name}")
        return self.reference_keypair(
            ctx, name, key_version=key_version, cert_version=cert_version
        )

    def _check_keypair_name(self, name: str) -> None:
        # these names map onto the CA's own certificate and key objects
        if name == self.name or tf_safe(name) == CA_IDENT:
            raise ConfigurationError(
                f"keypair name {name!r} is reserved for the objects of CA {self.name}"
            )

    def _store_versioned(
        self, ctx: Context, name: str, role: str, version: str, content: str
    ) -> None:
        # the latest object only holds the version, flipping it rotates the
        # keypair without touching the stored versions
        object_name = self.object_name(name, role)
        ctx.resource(
            S3_OBJECT,
            object_name,
            {
                "bucket": self.bucket,
                "key": self.object_key(name, role, version),
                "content": content,
            },
        )
        ctx.resource(
            S3_OBJECT,
            f"{object_name}-latest",
            {
                "bucket": self.bucket,
                "key": self.object_key(name, role, LATEST),
                "content": version,
            },
        )

    def reference_keypair(
        self, ctx: Context, name: str, key_version: str, cert_version: str
    ) -> Keypair:
        resources = [
            f"{S3_OBJECT}.{self.object_name(name, 'key')}",
            f"{S3_OBJECT}.{self.object_name(name, 'cert')}",
        ]
        ca_cert_object = self.object_name(self.name, "cert")
        if ctx is self and self.has_record(RESOURCE, S3_OBJECT, ca_cert_object):
            resources.append(f"{S3_OBJECT}.{ca_cert_object}")

        return Keypair(
            name=name,
            ca=self,
            source={
                "cert": self.object_url(name, "cert", cert_version),
                "key": self.object_url(name, "key", key_version),
            },
            resources=resources,
            iam_statement={
                "Effect": "Allow",
                "Action": ["s3:GetObjectAcl", "s3:GetObject"],
                "Resource": [
                    self.object_arn(self.name, "cert"),
                    self.object_arn(name, "cert"),
                    self.object_arn(name, "key"),
                ],
            },
        )

    def _identity(self) -> tuple[str, str]:
        return (self.name, self.bucket)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CertificateAuthority):
            return NotImplemented
        return self._identity() == other._identity()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CertificateAuthority):
            return NotImplemented
        return self._identity() < other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, bucket={self.bucket!r})"
