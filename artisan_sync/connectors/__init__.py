"""Partner API connectors"""

from artisan_sync.connectors.base_connector import BaseConnector
from artisan_sync.connectors.vishwakarma_connector import VishwakarmaConnector

__all__ = [
    "BaseConnector",
    "VishwakarmaConnector",
]
