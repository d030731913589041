from typing import Any


class ConfigurationError(Exception):
    pass


class UnknownRecordError(ConfigurationError):
    def __init__(self, msg: Any) -> None:
        super().__init__("reference to unregistered record: " + str(msg))


class UnknownProviderError(ConfigurationError):
    def __init__(self, msg: Any) -> None:
        super().__init__("unknown provider error: " + str(msg))


class ObjectNotFoundError(LookupError):
    pass


class CANotFoundError(LookupError):
    pass


class NetworkError(Exception):
    pass


class TrustAnchorFetchError(NetworkError):
    def __init__(self, msg: Any) -> None:
        super().__init__("error fetching trust anchor: " + str(msg))
