"""Router access for homegate."""

from homegate.router.fritzbox import FritzboxClient, FritzboxConfig, RouterClient
from homegate.router.models import (
    Dataset,
    DataSource,
    Landevice,
    MonitorConfig,
    Subset,
    SubsetData,
    normalize_mac,
)

__all__ = [
    "FritzboxClient",
    "FritzboxConfig",
    "RouterClient",
    "Dataset",
    "DataSource",
    "Landevice",
    "MonitorConfig",
    "Subset",
    "SubsetData",
    "normalize_mac",
]
