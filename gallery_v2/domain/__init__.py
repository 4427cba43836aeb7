"""
Domain models and query-string helpers for the gallery v2 query layer.

This package is responsible for:
* Describing search criteria, repository endpoints and request results.
* Translating name patterns and version ranges into OData filter clauses.
"""
