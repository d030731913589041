import functools
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from terrafying.components.ca import (
    S3_OBJECT,
    CAMetadata,
    CAOptions,
    CertificateAuthority,
    KeypairOptions,
    private_key_attrs,
)
from terrafying.utils import config
from terrafying.utils.exceptions import (
    TrustAnchorFetchError,
    UnknownProviderError,
)
from terrafying.utils.terrascript.context import Context
from terrafying.utils.terrascript.references import OutputReference

DEFAULT_EMAIL_ADDRESS = "cloud@uswitch.com"
DEFAULT_MIN_DAYS_REMAINING = 21
DNS_CHALLENGE_PROVIDER = "route53"
EXTERNAL_NAMESERVERS = ["1.1.1.1:53", "8.8.8.8:53", "8.8.4.4:53"]
TRUST_ANCHOR_TIMEOUT = 60


@dataclass(frozen=True)
class AcmeServer:
    server_url: str
    ca_cert: str


ACME_SERVERS = {
    "staging": AcmeServer(
        server_url="https://acme-staging-v02.api.letsencrypt.org/directory",
        ca_cert="https://letsencrypt.org/certs/fakeleintermediatex1.pem",
    ),
    "live": AcmeServer(
        server_url="https://acme-v02.api.letsencrypt.org/directory",
        ca_cert="https://letsencrypt.org/certs/lets-encrypt-x3-cross-signed.pem.txt",
    ),
}


@dataclass(frozen=True)
class AcmeProvider:
    alias: str
    ref: str
    ca_cert_url: str


class LetsEncryptOptions(CAOptions):
    provider: str = "staging"
    email_address: str = DEFAULT_EMAIL_ADDRESS
    use_external_dns: bool = False


class LetsEncryptKeypairOptions(KeypairOptions):
    min_days_remaining: int = DEFAULT_MIN_DAYS_REMAINING


def acme_servers() -> dict[str, AcmeServer]:
    """The known ACME servers, with overrides from the [letsencrypt] config section"""
    servers = dict(ACME_SERVERS)
    for alias, settings in config.section("letsencrypt").items():
        default = servers.get(alias)
        server_url = settings.get("server_url") or (default and default.server_url)
        ca_cert = settings.get("ca_cert") or (default and default.ca_cert)
        if not server_url or not ca_cert:
            raise UnknownProviderError(
                f"letsencrypt.{alias} needs both server_url and ca_cert"
            )
        servers[alias] = AcmeServer(server_url=server_url, ca_cert=ca_cert)
    return servers


@functools.lru_cache(maxsize=None)
def fetch_trust_anchor(url: str) -> str:
    """Download an issuer certificate, once per process."""
    logging.info(f"fetching trust anchor {url}")
    try:
        response = requests.get(url, timeout=TRUST_ANCHOR_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise TrustAnchorFetchError(f"{url}: {e!s}") from e
    return response.text


class LetsEncrypt(CertificateAuthority):
    """
    A CA backed by an ACME server (Let's Encrypt staging or live).

    Certificates are issued by the acme provider using a DNS-01 challenge, and
    stored with the issuer certificate (the trust anchor) appended, so that
    consumers get the full chain. The trust anchor itself is what gets stored
    as this CA's certificate.
    """

    provider_name = "letsencrypt"
    options_class = LetsEncryptOptions
    keypair_options_class = LetsEncryptKeypairOptions

    def __init__(self, parent: Optional[Context] = None) -> None:
        super().__init__(parent)
        self.acme_providers = self._setup_providers()
        self.acme_provider: Optional[AcmeProvider] = None
        self.account_key: str = ""

    def _setup_providers(self) -> dict[str, AcmeProvider]:
        return {
            alias: AcmeProvider(
                alias=alias,
                ref=self.provider(
                    "acme", {"alias": alias, "server_url": server.server_url}
                ),
                ca_cert_url=server.ca_cert,
            )
            for alias, server in acme_servers().items()
        }

    def _select_provider(self, alias: str) -> AcmeProvider:
        try:
            return self.acme_providers[alias]
        except KeyError:
            raise UnknownProviderError(
                f"{alias}, expected one of {', '.join(self.acme_providers)}"
            ) from None

    def _create(self, name: str, bucket: str, opts: LetsEncryptOptions) -> None:
        acme_provider = self._select_provider(opts.provider)
        ca_cert = fetch_trust_anchor(acme_provider.ca_cert_url)

        self._bind(name, bucket, opts.prefix)
        self.acme_provider = acme_provider
        self.public_certificate = opts.public_certificate
        self.use_external_dns = opts.use_external_dns
        self.ca_cert = ca_cert

        self.provider("tls")

        self.resource(
            "tls_private_key",
            f"{self.ident}-account",
            private_key_attrs(opts.algorithm, opts.curve),
        )

        self.resource(
            "acme_registration",
            f"{self.ident}-reg",
            {
                "provider": acme_provider.ref,
                "account_key_pem": self.output_of(
                    "tls_private_key", f"{self.ident}-account", "private_key_pem"
                ),
                "email_address": opts.email_address,
            },
        )
        self.account_key = self.output_of(
            "acme_registration", f"{self.ident}-reg", "account_key_pem"
        )

        self.resource(
            S3_OBJECT,
            f"{self.ident}-account",
            {
                "bucket": bucket,
                "key": self.layout.account_key_key(),
                "content": self.account_key,
            },
        )

        self._store_ca_cert(self.ca_cert)
        self._store_metadata()

    def _metadata_provider(self) -> str:
        # find() needs the acme alias to pick the provider back
        assert self.acme_provider is not None
        return self.acme_provider.alias

    def _find(self, metadata: CAMetadata) -> None:
        acme_provider = self._select_provider(metadata.provider)
        self.ca_cert = fetch_trust_anchor(acme_provider.ca_cert_url)
        self.acme_provider = acme_provider

        self.provider("tls")

        account_key = self.data(
            S3_OBJECT,
            f"{self.ident}-account",
            {"bucket": self.bucket, "key": self.layout.account_key_key()},
        )
        self.account_key = account_key["body"]

    def _sign(
        self, ctx: Context, key_ident: str, opts: LetsEncryptKeypairOptions
    ) -> OutputReference:
        assert self.acme_provider is not None
        cert_values = {
            "provider": self.acme_provider.ref,
            "account_key_pem": self.account_key,
            "min_days_remaining": opts.min_days_remaining,
            "dns_challenge": {"provider": DNS_CHALLENGE_PROVIDER},
            "certificate_request_pem": ctx.output_of(
                "tls_cert_request", key_ident, "cert_request_pem"
            ),
        }
        if self.use_external_dns:
            cert_values["recursive_nameservers"] = EXTERNAL_NAMESERVERS

        ctx.resource("acme_certificate", key_ident, cert_values)
        return ctx.output_of("acme_certificate", key_ident, "certificate_pem")

    def _cert_content(self, cert_pem: str) -> str:
        return cert_pem + self.ca_cert
