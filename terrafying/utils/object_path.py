from dataclasses import dataclass
from typing import Optional

from terrafying.utils.exceptions import ConfigurationError
from terrafying.utils.terraform import tf_safe

ROLES = ("cert", "key")
CA_IDENT = "ca"
ALL_VERSIONS = "*"
LATEST = "latest"


@dataclass(frozen=True)
class ObjectPath:
    """
    An absolute object store path.

    Segments are split on "/" and empty ones are dropped, so the rendered
    path always has exactly one leading slash and no double slashes.
    """

    parts: tuple[str, ...]

    @classmethod
    def of(cls, *segments: Optional[str]) -> "ObjectPath":
        parts: list[str] = []
        for segment in segments:
            if segment:
                parts.extend(p for p in segment.split("/") if p)
        return cls(tuple(parts))

    def join(self, *segments: Optional[str]) -> "ObjectPath":
        return ObjectPath.of(*self.parts, *segments)

    def __str__(self) -> str:
        return "/" + "/".join(self.parts)


def check_role(role: str) -> str:
    if role not in ROLES:
        raise ConfigurationError(
            f"unknown object role {role!r}, expected one of {', '.join(ROLES)}"
        )
    return role


@dataclass(frozen=True)
class ObjectLayout:
    """
    Where a CA keeps its objects in the bucket:

        /<prefix>/<ca>/ca.cert
        /<prefix>/<ca>/.metadata
        /<prefix>/<ca>/<name>/<version>/<key|cert>
        /<prefix>/<ca>/<name>/latest/<key|cert>
    """

    bucket: str
    prefix: str
    ca_name: str

    @property
    def ca_ident(self) -> str:
        """The CA name as used in terraform record names"""
        return tf_safe(self.ca_name)

    @property
    def root(self) -> ObjectPath:
        return ObjectPath.of(self.prefix, self.ca_name)

    def object_ident(self, name: str) -> str:
        return CA_IDENT if name == self.ca_name else tf_safe(name)

    def object_name(self, name: str, role: str) -> str:
        """Name of the terraform record storing this object"""
        return f"{self.ca_ident}-{self.object_ident(name)}-{check_role(role)}"

    def object_path(
        self, name: str, role: str, version: Optional[str] = None
    ) -> ObjectPath:
        check_role(role)
        if name == self.ca_name:
            return self.root.join(f"{CA_IDENT}.{role}")
        return self.root.join(self.object_ident(name), version, role)

    def object_key(self, name: str, role: str, version: Optional[str] = None) -> str:
        return str(self.object_path(name, role, version))

    def object_url(self, name: str, role: str, version: Optional[str] = None) -> str:
        return f"s3://{self.bucket}{self.object_key(name, role, version)}"

    def object_arn(self, name: str, role: str, version: str = ALL_VERSIONS) -> str:
        return f"arn:aws:s3:::{self.bucket}{self.object_key(name, role, version)}"

    def metadata_key(self) -> str:
        return str(self.root.join(".metadata"))

    def account_key_key(self) -> str:
        return str(self.root.join("account.key"))

