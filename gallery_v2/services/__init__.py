"""
Query assembly and request execution for NuGet v2 feeds.
"""
