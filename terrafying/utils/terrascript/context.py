import json
import logging
import tempfile
from collections.abc import Mapping
from typing import (
    Any,
    Optional,
)

from terrascript import (
    Provider,
    Resource,
    Terrascript,
)

from terrafying.utils.exceptions import UnknownRecordError
from terrafying.utils.terrascript.references import (
    DATA,
    PROVIDER,
    RECORD_KINDS,
    RESOURCE,
    OutputReference,
)
from terrafying.utils.terrascript.resources import (
    data_class,
    provider_class,
    resource_class,
)

TMP_DIR_PREFIX = "terrafying-"


class DataHandle:
    """
    Returned by Context.data(). Every attribute read from it is a deferred
    reference that terraform resolves when it refreshes the data source.
    """

    def __init__(self, record_type: str, name: str) -> None:
        self.record_type = record_type
        self.name = name

    def ref(self, attribute: str) -> OutputReference:
        return OutputReference(DATA, self.record_type, self.name, attribute)

    def __getitem__(self, attribute: str) -> OutputReference:
        return self.ref(attribute)


class Context:
    """
    Collects terraform records (providers, resources and data sources) and
    renders them as Terraform JSON configuration.

    Records are keyed by (type, name); registering the same key twice keeps
    the last one. Contexts can be nested through ``parent`` so that references
    to records owned by an enclosing context are accepted by output_of().
    """

    def __init__(self, parent: Optional["Context"] = None) -> None:
        self.parent = parent
        self._terrascript = Terrascript()
        self._providers: dict[str, Provider] = {}

    def provider(
        self, provider_type: str, attrs: Mapping[str, Any] | None = None
    ) -> str:
        """
        Register a provider configuration and return the reference used in the
        ``provider`` attribute of resources (``type`` or ``type.alias``).
        """
        attrs = dict(attrs or {})
        alias = attrs.get("alias")
        key = f"{provider_type}.{alias}" if alias else provider_type

        block = provider_class(provider_type)(**attrs)
        previous = self._providers.get(key)
        if previous is not None:
            configs = self._terrascript["provider"][provider_type]
            configs[[c is previous for c in configs].index(True)] = block
        else:
            self._terrascript += block
        self._providers[key] = block
        return key

    def resource(
        self, resource_type: str, name: str, attrs: Mapping[str, Any] | None = None
    ) -> Resource:
        block = resource_class(resource_type)(name)
        block.update(attrs or {})
        self._terrascript += block
        return block

    def data(
        self, data_type: str, name: str, attrs: Mapping[str, Any] | None = None
    ) -> DataHandle:
        block = data_class(data_type)(name)
        block.update(attrs or {})
        self._terrascript += block
        return DataHandle(data_type, name)

    def has_record(self, kind: str, record_type: str, name: str) -> bool:
        if kind == PROVIDER:
            return name in self._providers
        return name in self._terrascript.get(kind, {}).get(record_type, {})

    def _resolves(self, kind: str, record_type: str, name: str) -> bool:
        ctx: Optional[Context] = self
        while ctx is not None:
            if ctx.has_record(kind, record_type, name):
                return True
            ctx = ctx.parent
        return False

    def output_of(
        self, resource_type: str, name: str, attribute: str
    ) -> OutputReference:
        if not self._resolves(RESOURCE, resource_type, name):
            raise UnknownRecordError(f"{resource_type}.{name}")
        return OutputReference(RESOURCE, resource_type, name, attribute)

    def data_output_of(
        self, data_type: str, name: str, attribute: str
    ) -> OutputReference:
        if not self._resolves(DATA, data_type, name):
            raise UnknownRecordError(f"data.{data_type}.{name}")
        return OutputReference(DATA, data_type, name, attribute)

    def add(self, other: "Context") -> "Context":
        """Merge the records of another context into this one."""
        for block in other._providers.values():
            self.provider(block.__class__.__name__, dict(block))
        for kind, cls_for in ((RESOURCE, resource_class), (DATA, data_class)):
            for record_type, records in other._terrascript.get(kind, {}).items():
                for name, attrs in records.items():
                    block = cls_for(record_type)(name)
                    block.update(attrs)
                    self._terrascript += block
        return self

    def output(self) -> dict[str, Any]:
        """
        Return the configuration as plain nested dicts, grouped by provider,
        resource and data, then by type and by name.
        """
        rendered = json.loads(json.dumps(self._terrascript))
        return {kind: rendered[kind] for kind in RECORD_KINDS if rendered.get(kind)}

    def dumps(self) -> str:
        """Return the Terraform JSON representation of the records"""
        return json.dumps(self.output(), indent=2)

    def dump(self, existing_dir: str | None = None) -> str:
        """Write the Terraform JSON representation of the records to disk"""
        if existing_dir is None:
            working_dir = tempfile.mkdtemp(prefix=TMP_DIR_PREFIX)
        else:
            working_dir = existing_dir
        with open(
            working_dir + "/config.tf.json", "w", encoding="utf-8"
        ) as terraform_config_file:
            terraform_config_file.write(self.dumps())
        logging.debug(f"terraform config written to {working_dir}")

        return working_dir
