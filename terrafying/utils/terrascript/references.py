import json
from dataclasses import dataclass
from typing import Any

RESOURCE = "resource"
DATA = "data"
PROVIDER = "provider"

RECORD_KINDS = (PROVIDER, RESOURCE, DATA)


class OutputReference(str):
    """
    A value that only terraform can resolve, at apply time.

    It behaves like the interpolation string it renders to
    (``${type.name.attribute}`` or ``${data.type.name.attribute}``), so it can
    be used as-is for any record attribute, while still remembering which
    record it points to.
    """

    kind: str
    record_type: str
    record_name: str
    attribute: str

    def __new__(
        cls, kind: str, record_type: str, record_name: str, attribute: str
    ) -> "OutputReference":
        address = f"{record_type}.{record_name}.{attribute}"
        if kind == DATA:
            address = f"data.{address}"
        ref = super().__new__(cls, "${" + address + "}")
        ref.kind = kind
        ref.record_type = record_type
        ref.record_name = record_name
        ref.attribute = attribute
        return ref

    @property
    def address(self) -> str:
        """The record address, as used in depends_on"""
        if self.kind == DATA:
            return f"data.{self.record_type}.{self.record_name}"
        return f"{self.record_type}.{self.record_name}"


@dataclass(frozen=True)
class Lookup:
    """An object read from the object store while generating the config."""

    bucket: str
    key: str
    body: str

    def json(self) -> Any:
        return json.loads(self.body)


def sha256_of(ref: OutputReference) -> str:
    """Interpolation of the sha256 of a referenced attribute, used as a version"""
    return "${sha256(" + ref[2:-1] + ")}"
