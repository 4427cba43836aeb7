from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from gallery_v2.domain.models import QueryResult, ResourceType, VersionRange


class ServerApiCalls(ABC):
    """
    Abstract base class for catalog server protocols.

    Each method performs a single request (two for an untyped tag search) and
    returns the raw response. Looping over pages, version filtering and
    parsing of the response are left to the caller.
    """

    @abstractmethod
    def find_all(self, include_prerelease: bool) -> QueryResult:
        """Latest version of every package."""
        pass

    @abstractmethod
    def find_tag(self, tag: str, include_prerelease: bool, resource_type: ResourceType) -> List[QueryResult]:
        """Packages carrying a tag, one result per endpoint queried."""
        pass

    @abstractmethod
    def find_command_or_dsc_resource(self, name: str, include_prerelease: bool, is_searching_for_commands: bool) -> QueryResult:
        """Packages exporting a command (or a DSC resource) with the given name."""
        pass

    @abstractmethod
    def find_types_with_prerelease(self, resource_type: ResourceType, name: Optional[str]) -> QueryResult:
        """Packages of a resource type, optionally matching a name. Always includes prerelease."""
        pass

    @abstractmethod
    def find_command_names(self, command_names: Sequence[str], include_prerelease: bool) -> QueryResult:
        """Packages exporting any of the given commands."""
        pass

    @abstractmethod
    def find_name(self, name: str, include_prerelease: bool, resource_type: ResourceType) -> QueryResult:
        """Latest version of one package, no wildcard support."""
        pass

    @abstractmethod
    def find_name_globbing(self, pattern: str, include_prerelease: bool, resource_type: ResourceType) -> QueryResult:
        """
        Latest versions of packages whose name matches a wildcard pattern.
        An unsupported pattern is reported as a failed result.
        """
        pass

    @abstractmethod
    def find_version_globbing(
        self,
        name: str,
        version_range: Optional[VersionRange],
        include_prerelease: bool,
        resource_type: ResourceType,
    ) -> QueryResult:
        """All versions of one package within a version range."""
        pass

    @abstractmethod
    def find_version(self, name: str, version: str, resource_type: ResourceType) -> QueryResult:
        """One specific version of one package."""
        pass

    @abstractmethod
    def install_name(self, name: str) -> QueryResult:
        """Package content of the latest stable version."""
        pass

    @abstractmethod
    def install_version(self, name: str, version: str) -> QueryResult:
        """Package content of one specific version."""
        pass
