from .types import Channel, BridgeRequest, BridgeResponse, raise_for_response
from .host import BridgeHost, bridge_main
from .manager import BridgeManager

__all__ = [
    "Channel", "BridgeRequest", "BridgeResponse", "raise_for_response",
    "BridgeHost", "bridge_main", "BridgeManager",
]
