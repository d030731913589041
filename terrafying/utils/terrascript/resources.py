"""
Terrascript classes for the records emitted by the components.

Terrascript names a record after its python class, so every terraform type
needs a class of the same name. The ones used directly by the components are
declared here; anything else is created on the fly by resource_class(),
data_class() and provider_class().
"""

from functools import cache

from terrascript import (
    Data,
    Provider,
    Resource,
)


class tls(Provider):
    """https://registry.terraform.io/providers/hashicorp/tls/latest/docs"""


class acme(Provider):
    """https://registry.terraform.io/providers/vancluever/acme/latest/docs"""


class tls_private_key(Resource):
    pass


class tls_cert_request(Resource):
    pass


class tls_self_signed_cert(Resource):
    pass


class tls_locally_signed_cert(Resource):
    pass


class acme_registration(Resource):
    pass


class acme_certificate(Resource):
    pass


class aws_s3_bucket_object(Resource):
    pass


# the data source shares its terraform type name with the resource above
aws_s3_bucket_object_data = type("aws_s3_bucket_object", (Data,), {})

_KNOWN_RESOURCES = {
    cls.__name__: cls
    for cls in (
        tls_private_key,
        tls_cert_request,
        tls_self_signed_cert,
        tls_locally_signed_cert,
        acme_registration,
        acme_certificate,
        aws_s3_bucket_object,
    )
}
_KNOWN_DATA = {"aws_s3_bucket_object": aws_s3_bucket_object_data}
_KNOWN_PROVIDERS = {"tls": tls, "acme": acme}


@cache
def resource_class(type_name: str) -> type[Resource]:
    if type_name in _KNOWN_RESOURCES:
        return _KNOWN_RESOURCES[type_name]
    return type(type_name, (Resource,), {})


@cache
def data_class(type_name: str) -> type[Data]:
    if type_name in _KNOWN_DATA:
        return _KNOWN_DATA[type_name]
    return type(type_name, (Data,), {})


@cache
def provider_class(type_name: str) -> type[Provider]:
    if type_name in _KNOWN_PROVIDERS:
        return _KNOWN_PROVIDERS[type_name]
    return type(type_name, (Provider,), {})
