from .connectivity import ConnectivityMonitor
from .tibiadata_client import TibiaDataClient

__all__ = [
    "ConnectivityMonitor",
    "TibiaDataClient",
]
