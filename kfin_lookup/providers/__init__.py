from .opendart_provider import OpenDartCorpCodeProvider, OpenDartError
from .fdr_provider import FdrListingProvider
from .provider_utils import SnapshotProvider, load_corp_snapshot

__all__ = [
    "OpenDartCorpCodeProvider",
    "OpenDartError",
    "FdrListingProvider",
    "SnapshotProvider",
    "load_corp_snapshot",
]
