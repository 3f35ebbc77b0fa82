from .errors import (
    ModuleRegistryError,
    AlreadyInstalled,
    NotInstalled,
    InvalidSource,
    InvalidModuleName,
    FetchFailed,
    SourceUnavailable,
    CorruptMetadata,
    RemovalFailed,
)
from .metadata_store import MetadataStore, MetadataProblem
from .layout import VersionLayout
from .reconciler import SourceReconciler
from .guard import SelfReferenceGuard, PendingReloads
from .registry import LifecycleRegistry, BatchItem, BatchReport

__all__ = [
    "ModuleRegistryError",
    "AlreadyInstalled",
    "NotInstalled",
    "InvalidSource",
    "InvalidModuleName",
    "FetchFailed",
    "SourceUnavailable",
    "CorruptMetadata",
    "RemovalFailed",
    "MetadataStore",
    "MetadataProblem",
    "VersionLayout",
    "SourceReconciler",
    "SelfReferenceGuard",
    "PendingReloads",
    "LifecycleRegistry",
    "BatchItem",
    "BatchReport",
]
