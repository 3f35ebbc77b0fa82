from .eventbus import EventBus
from .fetcher import Fetcher, FetchError, FetchErrorKind
from .host import HostRuntime
from .manifest import ManifestReader

__all__ = [
    "EventBus",
    "Fetcher",
    "FetchError",
    "FetchErrorKind",
    "HostRuntime",
    "ManifestReader",
]
