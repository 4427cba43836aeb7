"""
gallery_v2 - NuGet v2 catalog query layer

Translates package search criteria (name patterns, version ranges, resource
types, tags) into OData filter queries against a NuGet v2 feed such as the
PowerShell Gallery, and performs the resulting requests.
"""

__version__ = "0.1.0"
