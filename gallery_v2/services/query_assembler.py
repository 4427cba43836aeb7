"""
Request address assembly for NuGet v2 (OData) catalog operations.

Each public method builds the full address for one catalog operation. The
addresses follow the conventions of the PowerShell Gallery v2 feed:

- Search()                 list/search endpoint (tags, types, name patterns)
- items/psscript/Search()  the same search, restricted to script items
- FindPackagesById()       lookup by identifier (exact name, versions)
- package/{id}[/{ver}]     package content, used for installs

Note on search terms: the quoting of ``searchTerm`` changes its meaning.
``searchTerm='az* tag:PSScript'`` is an AND of all tokens, while
``searchTerm=tag:A B`` is an OR. That convention is kept in ``search_term``.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

from gallery_v2.domain.models import RepositoryEndpoint, ResourceType, VersionRange
from gallery_v2.domain.query_utils import (
    join_clauses,
    name_filter,
    odata_literal,
    type_tag_filter,
    version_range_filter,
)
from gallery_v2.domain.versions import normalize_version

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "Search()"
SCRIPT_SEARCH_ENDPOINT = "items/psscript/Search()"
FIND_BY_ID_ENDPOINT = "FindPackagesById()"
PACKAGE_ENDPOINT = "package"

SELECT_FIELDS = (
    "Id",
    "Version",
    "Authors",
    "Copyright",
    "Dependencies",
    "Description",
    "IconUrl",
    "IsPrerelease",
    "Published",
    "ProjectUrl",
    "ReleaseNotes",
    "Tags",
    "LicenseUrl",
    "CompanyName",
)
SELECT = "$select=" + ",".join(SELECT_FIELDS)

PAGE_SIZE = 6000
PAGING_PARAMS = ("$orderby=Id desc", "$inlinecount=allpages", "$skip=0", f"$top={PAGE_SIZE}")
PAGING = "&".join(PAGING_PARAMS)

INCLUDE_PRERELEASE = "includePrerelease=true"
LATEST_STABLE = "IsLatestVersion"
LATEST_ANY = "IsAbsoluteLatestVersion"
EXCLUDE_PRERELEASE = "IsPrerelease eq false"

# OData syntax stays readable; everything else in a value is percent-encoded
QUERY_VALUE_SAFE = "'(),:$ *"

COMMAND_TAG_PREFIX = "PSCommand_"
DSC_RESOURCE_TAG_PREFIX = "PSDscResource_"


def search_term(terms: Sequence[str], match_all: bool = True) -> str:
    """
    Build a ``searchTerm`` parameter from whitespace-separated tokens.

    Quoted terms must all match; unquoted terms match any token.
    """
    joined = " ".join(terms)
    if match_all:
        return f"searchTerm={odata_literal(joined)}"
    return f"searchTerm={joined}"


def encode_param(param: str) -> str:
    """
    Percent-encode the value of a ``key=value`` query parameter.

    Reserved characters such as '&', '=', '#' and '%' inside the value are
    escaped so a value can never end the parameter or the query early.
    """
    key, sep, value = param.partition("=")
    if not sep:
        return quote(param, safe=QUERY_VALUE_SAFE)
    return f"{key}={quote(value, safe=QUERY_VALUE_SAFE)}"


def latest_filter(include_prerelease: bool) -> str:
    """Top-level predicate choosing the latest stable or latest overall version."""
    return LATEST_ANY if include_prerelease else LATEST_STABLE


class QueryAssembler:
    """
    Builds request addresses for one repository.

    The assembler holds no state besides the endpoint and may be shared
    between threads.
    """

    def __init__(self, repository: RepositoryEndpoint):
        self.repository = repository

    def _url(self, path: str, *params: str) -> str:
        query = "&".join(encode_param(p) for p in params if p)
        url = f"{self.repository.uri}/{path}"
        if query:
            url = f"{url}?{query}"
        logger.debug(f"Assembled request for {self.repository.name}: {url}")
        return url

    @staticmethod
    def _prerelease_param(include_prerelease: bool) -> str:
        return INCLUDE_PRERELEASE if include_prerelease else ""

    @staticmethod
    def _type_clause(resource_type: ResourceType) -> str:
        if resource_type == ResourceType.NONE:
            return ""
        return type_tag_filter(resource_type.tag_name)

    # ------------------------------------------------------------------
    # Search APIs
    # ------------------------------------------------------------------

    def find_all(self, include_prerelease: bool) -> str:
        """
        Latest version of every package.

        Search()?$filter=IsLatestVersion
        Search()?$filter=IsAbsoluteLatestVersion&includePrerelease=true
        """
        return self._url(
            SEARCH_ENDPOINT,
            f"$filter={latest_filter(include_prerelease)}",
            self._prerelease_param(include_prerelease),
            SELECT,
        )

    def find_tag(self, tag: str, include_prerelease: bool, resource_type: ResourceType) -> List[str]:
        """
        Packages carrying a tag.

        Scripts live behind their own endpoint, so an untyped search queries
        both the script endpoint and the general one (in that order). Modules,
        commands and DSC resources are all served by the general endpoint.
        """
        params = (
            f"$filter={LATEST_ANY}",
            search_term([f"tag:{tag}"]),
            self._prerelease_param(include_prerelease),
            SELECT,
        )
        urls = []
        if resource_type in (ResourceType.SCRIPT, ResourceType.NONE):
            urls.append(self._url(SCRIPT_SEARCH_ENDPOINT, *params))
        if resource_type != ResourceType.SCRIPT:
            urls.append(self._url(SEARCH_ENDPOINT, *params))
        return urls

    def find_command_or_dsc_resource(self, name: str, include_prerelease: bool, is_searching_for_commands: bool) -> str:
        """
        Modules exporting a command or DSC resource, found through the
        PSCommand_/PSDscResource_ tags the gallery generates.
        """
        prefix = COMMAND_TAG_PREFIX if is_searching_for_commands else DSC_RESOURCE_TAG_PREFIX
        return self._url(
            SEARCH_ENDPOINT,
            f"$filter={LATEST_ANY}",
            search_term([f"tag:{prefix}{name}"]),
            self._prerelease_param(include_prerelease),
            SELECT,
        )

    def find_types_with_prerelease(self, resource_type: ResourceType, name: Optional[str] = None) -> str:
        """
        Packages of a resource type, optionally restricted by name.

        Name and type tag are quoted together so both must match. This search
        always includes prerelease versions; a stable-only request is not
        honored by this operation.
        """
        return self._url(
            SEARCH_ENDPOINT,
            f"$filter={LATEST_STABLE}",
            search_term([t for t in (name, f"tag:{resource_type.tag_name}") if t]),
            INCLUDE_PRERELEASE,
            SELECT,
        )

    def find_command_names(self, command_names: Sequence[str], include_prerelease: bool) -> str:
        """
        Packages exporting any of the given commands.

        Search()?$filter=IsLatestVersion&searchTerm=tag:PSCommand_A PSCommand_B
        """
        return self._url(
            SEARCH_ENDPOINT,
            f"$filter={LATEST_STABLE}",
            search_term(["tag:" + " ".join(command_names)], match_all=False),
            self._prerelease_param(include_prerelease),
            SELECT,
        )

    def find_name(self, name: str, include_prerelease: bool, resource_type: ResourceType) -> str:
        """
        Latest version of a single package, no wildcards.

        FindPackagesById()?id='PowerShellGet'&$filter=IsLatestVersion and Id eq 'PowerShellGet'
        FindPackagesById()?id='PowerShellGet'&$filter=IsLatestVersion and substringof('PSModule', Tags) eq true
        """
        if resource_type == ResourceType.NONE:
            extra = f"Id eq {odata_literal(name)}"
        else:
            extra = self._type_clause(resource_type)
        return self._url(
            FIND_BY_ID_ENDPOINT,
            f"id={odata_literal(name)}",
            "$filter=" + join_clauses(latest_filter(include_prerelease), extra),
            SELECT,
        )

    def find_name_globbing(self, pattern: str, include_prerelease: bool, resource_type: ResourceType) -> str:
        """
        Latest versions of packages whose name matches a wildcard pattern.

        Search()?$filter=startswith(Id, 'PowerShell') and IsLatestVersion&$select=...&$orderby=Id desc&...

        Only the name shapes understood by ``name_filter`` are supported. A
        resource type adds a type tag clause ahead of the name clause.

        Raises:
            UnsupportedPatternError: If the pattern shape is not supported.
        """
        return self._url(
            SEARCH_ENDPOINT,
            "$filter=" + join_clauses(
                self._type_clause(resource_type),
                name_filter(pattern),
                latest_filter(include_prerelease),
            ),
            self._prerelease_param(include_prerelease),
            SELECT,
            *PAGING_PARAMS,
        )

    def find_version_globbing(
        self,
        name: str,
        version_range: Optional[VersionRange],
        include_prerelease: bool,
        resource_type: ResourceType,
    ) -> str:
        """
        All versions of a package within a version range, newest first.

        FindPackagesById()?id='PowerShellGet'&$orderby=NormalizedVersion desc&$select=...
            &$filter=IsPrerelease eq false and NormalizedVersion ge '2.0.0' and NormalizedVersion lt '3.0.0'

        A resource type adds a type tag clause after the version bounds.

        Stable-only requests add a single ``IsPrerelease eq false`` predicate
        rather than changing the bounds. An unbounded range with prerelease
        allowed and no type produces no ``$filter`` at all.
        """
        clauses = join_clauses(
            "" if include_prerelease else EXCLUDE_PRERELEASE,
            version_range_filter(version_range),
            self._type_clause(resource_type),
        )
        return self._url(
            FIND_BY_ID_ENDPOINT,
            f"id={odata_literal(name)}",
            "$orderby=NormalizedVersion desc",
            SELECT,
            f"$filter={clauses}" if clauses else "",
        )

    def find_version(self, name: str, version: str, resource_type: ResourceType) -> str:
        """
        One specific version of a package.

        FindPackagesById()?id='PowerShellGet'&$filter=NormalizedVersion eq '2.2.5' and Id eq 'PowerShellGet'

        Raises:
            ValueError: If the version is not a valid version string.
        """
        clauses = join_clauses(
            f"NormalizedVersion eq {odata_literal(normalize_version(version))}",
            self._type_clause(resource_type),
            f"Id eq {odata_literal(name)}",
        )
        return self._url(
            FIND_BY_ID_ENDPOINT,
            f"id={odata_literal(name)}",
            f"$filter={clauses}",
            SELECT,
        )

    # ------------------------------------------------------------------
    # Install APIs
    # ------------------------------------------------------------------

    def install_name(self, name: str) -> str:
        """Latest stable package content: package/{id}"""
        return self._url(f"{PACKAGE_ENDPOINT}/{quote(name, safe='')}")

    def install_version(self, name: str, version: str) -> str:
        """Package content of one version (may be a prerelease): package/{id}/{version}"""
        return self._url(f"{PACKAGE_ENDPOINT}/{quote(name, safe='')}/{quote(version.strip(), safe='')}")
