from .types import SourceType, LocalSource, RemoteSource, Event
from .module import ManifestInfo, InstalledModuleRecord

__all__ = ["SourceType", "LocalSource", "RemoteSource", "Event", "ManifestInfo", "InstalledModuleRecord"]
