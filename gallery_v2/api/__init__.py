"""
Catalog server protocols.

``ServerApiCalls`` is the protocol-neutral interface; ``V2ServerApiCalls``
implements it for NuGet v2 (OData) feeds.
"""

from gallery_v2.api.server_api_calls import ServerApiCalls
from gallery_v2.api.v2_server_api_calls import V2ServerApiCalls

__all__ = ["ServerApiCalls", "V2ServerApiCalls"]
