"""
NuGet v2 (OData) implementation of the catalog server protocol.

High level flow: caller criteria -> QueryAssembler (filter translation) ->
RequestExecutor (one GET) -> QueryResult. Failures of either step come back
as failed results; nothing raises across this boundary for a rejected name
pattern or a transport error.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

import httpx

from gallery_v2.api.server_api_calls import ServerApiCalls
from gallery_v2.core.dependencies import create_http_client
from gallery_v2.domain.exceptions import UnsupportedPatternError
from gallery_v2.domain.models import (
    ClientSettings,
    QueryResult,
    RepositoryEndpoint,
    ResourceType,
    SearchCriteria,
    VersionRange,
)
from gallery_v2.services.query_assembler import COMMAND_TAG_PREFIX, QueryAssembler
from gallery_v2.services.request_executor import RequestExecutor

logger = logging.getLogger(__name__)


class V2ServerApiCalls(ServerApiCalls):
    """
    Catalog operations against one v2 repository.

    Without an explicit executor the process-wide shared HTTP client is used.
    ``from_settings`` builds an instance that owns a private client, released by
    ``close()`` or by leaving a ``with`` block.
    """

    def __init__(
        self,
        repository: RepositoryEndpoint,
        executor: Optional[RequestExecutor] = None,
        assembler: Optional[QueryAssembler] = None,
    ):
        self.repository = repository
        self.assembler = assembler or QueryAssembler(repository)
        self.executor = executor or RequestExecutor()
        self._owned_client: Optional[httpx.Client] = None

    @classmethod
    def from_settings(cls, repository: RepositoryEndpoint, settings: Optional[ClientSettings] = None) -> "V2ServerApiCalls":
        client = create_http_client(settings)
        instance = cls(repository, executor=RequestExecutor(client))
        instance._owned_client = client
        return instance

    def close(self) -> None:
        if self._owned_client is not None:
            self._owned_client.close()
            self._owned_client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _call(self, build: Callable[..., str], *args) -> QueryResult:
        """Assemble an address and execute it, reporting rejected patterns as failures."""
        try:
            url = build(*args)
        except UnsupportedPatternError as e:
            return QueryResult.failure(e.message)
        return self.executor.execute(url)

    # ------------------------------------------------------------------
    # Search APIs
    # ------------------------------------------------------------------

    def find_all(self, include_prerelease: bool) -> QueryResult:
        return self._call(self.assembler.find_all, include_prerelease)

    def find_tag(self, tag: str, include_prerelease: bool, resource_type: ResourceType) -> List[QueryResult]:
        urls = self.assembler.find_tag(tag, include_prerelease, resource_type)
        results = [self.executor.execute(url) for url in urls]
        failed = sum(1 for r in results if not r.ok)
        if failed:
            logger.warning(f"Tag search for {tag!r} on {self.repository.name}: {failed}/{len(results)} requests failed")
        return results

    def find_command_or_dsc_resource(self, name: str, include_prerelease: bool, is_searching_for_commands: bool) -> QueryResult:
        return self._call(
            self.assembler.find_command_or_dsc_resource, name, include_prerelease, is_searching_for_commands
        )

    def find_types_with_prerelease(self, resource_type: ResourceType, name: Optional[str] = None) -> QueryResult:
        return self._call(self.assembler.find_types_with_prerelease, resource_type, name)

    def find_command_names(self, command_names: Sequence[str], include_prerelease: bool) -> QueryResult:
        return self._call(self.assembler.find_command_names, command_names, include_prerelease)

    def find_name(self, name: str, include_prerelease: bool, resource_type: ResourceType) -> QueryResult:
        return self._call(self.assembler.find_name, name, include_prerelease, resource_type)

    def find_name_globbing(self, pattern: str, include_prerelease: bool, resource_type: ResourceType) -> QueryResult:
        return self._call(self.assembler.find_name_globbing, pattern, include_prerelease, resource_type)

    def find_version_globbing(
        self,
        name: str,
        version_range: Optional[VersionRange],
        include_prerelease: bool,
        resource_type: ResourceType,
    ) -> QueryResult:
        return self._call(
            self.assembler.find_version_globbing, name, version_range, include_prerelease, resource_type
        )

    def find_version(self, name: str, version: str, resource_type: ResourceType) -> QueryResult:
        return self._call(self.assembler.find_version, name, version, resource_type)

    # ------------------------------------------------------------------
    # Install APIs
    # ------------------------------------------------------------------

    def install_name(self, name: str) -> QueryResult:
        return self._call(self.assembler.install_name, name)

    def install_version(self, name: str, version: str) -> QueryResult:
        return self._call(self.assembler.install_version, name, version)

    # ------------------------------------------------------------------
    # Criteria dispatch
    # ------------------------------------------------------------------

    def search(self, criteria: SearchCriteria) -> List[QueryResult]:
        """
        Pick the operation matching the shape of the criteria and run it.

        Search order:
        1. Tags: one tag search per tag
        2. Command names: DSC resources one by one, commands in a single OR search
        3. No name: all packages, or all packages of a type
        4. Wildcard name: name pattern search (a version range is not applied)
        5. Name with version range: exact version or range lookup
        6. Plain name: latest version lookup
        """
        prerelease = criteria.include_prerelease
        rtype = criteria.resource_type

        if criteria.tags:
            results: List[QueryResult] = []
            for tag in criteria.tags:
                results.extend(self.find_tag(tag, prerelease, rtype))
            return results

        if criteria.command_names:
            if rtype == ResourceType.DSC_RESOURCE:
                return [
                    self.find_command_or_dsc_resource(name, prerelease, False)
                    for name in criteria.command_names
                ]
            tagged = [f"{COMMAND_TAG_PREFIX}{name}" for name in criteria.command_names]
            return [self.find_command_names(tagged, prerelease)]

        if criteria.name is None:
            if rtype == ResourceType.NONE:
                return [self.find_all(prerelease)]
            return [self.find_types_with_prerelease(rtype)]

        if criteria.has_wildcard:
            if criteria.version_range is not None:
                logger.debug(f"Ignoring version range for wildcard name {criteria.name!r}")
            return [self.find_name_globbing(criteria.name, prerelease, rtype)]

        version_range = criteria.version_range
        if version_range is not None and (version_range.has_lower_bound or version_range.has_upper_bound):
            if version_range.is_exact:
                return [self.find_version(criteria.name, version_range.min_version, rtype)]
            return [self.find_version_globbing(criteria.name, version_range, prerelease, rtype)]

        return [self.find_name(criteria.name, prerelease, rtype)]
