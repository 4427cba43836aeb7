"""
Unit tests for the v2 server API facade.
"""

import logging

import httpx
import pytest

from gallery_v2.api import ServerApiCalls, V2ServerApiCalls
from gallery_v2.domain.models import (
    ClientSettings,
    QueryResult,
    RepositoryEndpoint,
    ResourceType,
    SearchCriteria,
    VersionRange,
)
from gallery_v2.domain.query_utils import ALL_NAMES_MESSAGE, SUPPORTED_SHAPES_MESSAGE
from gallery_v2.services.request_executor import RequestExecutor

BASE = "https://www.powershellgallery.com/api/v2"


class RecordingExecutor(RequestExecutor):
    """Executor that records addresses instead of sending them."""

    def __init__(self, body="<feed/>"):
        super().__init__(client=None)
        self.urls = []
        self.body = body

    def execute(self, url):
        self.urls.append(url)
        return QueryResult.success(self.body)


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def api(executor):
    return V2ServerApiCalls(RepositoryEndpoint(uri=BASE), executor=executor)


class TestOperations:
    """Test cases for individual operations."""

    def test_implements_interface(self, api):
        assert isinstance(api, ServerApiCalls)

    def test_find_all(self, api, executor):
        result = api.find_all(False)
        assert result.ok
        assert result.body == "<feed/>"
        assert executor.urls == [api.assembler.find_all(False)]

    def test_find_tag_untyped_returns_two_results(self, api, executor):
        """Test that an untyped tag search issues two requests and returns two results."""
        results = api.find_tag("JSON", False, ResourceType.NONE)
        assert len(results) == 2
        assert len(executor.urls) == 2
        assert "/items/psscript/Search()" in executor.urls[0]
        assert executor.urls[1].startswith(f"{BASE}/Search()")

    def test_find_tag_untyped_two_failures(self):
        """Test that two failed tag requests still produce two results."""
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            api = V2ServerApiCalls(RepositoryEndpoint(uri=BASE), executor=RequestExecutor(client))
            results = api.find_tag("JSON", True, ResourceType.NONE)

        assert len(results) == 2
        assert all(not r.ok and r.error for r in results)

    @pytest.mark.parametrize("rtype", [ResourceType.SCRIPT, ResourceType.MODULE])
    def test_find_tag_typed_returns_one_result(self, api, executor, rtype):
        assert len(api.find_tag("JSON", False, rtype)) == 1
        assert len(executor.urls) == 1

    def test_find_name_globbing_rejects_without_request(self, api, executor):
        """Test that unsupported patterns fail before any request is issued."""
        result = api.find_name_globbing("a*b*c", False, ResourceType.NONE)
        assert not result.ok
        assert result.error == SUPPORTED_SHAPES_MESSAGE
        assert executor.urls == []

    def test_find_name_globbing_lone_wildcard(self, api, executor):
        result = api.find_name_globbing("*", True, ResourceType.NONE)
        assert result.error == ALL_NAMES_MESSAGE
        assert executor.urls == []

    def test_find_name_globbing_supported(self, api, executor):
        result = api.find_name_globbing("*Get*", False, ResourceType.NONE)
        assert result.ok
        assert "$filter=substringof('Get', Id) and IsLatestVersion" in executor.urls[0]

    def test_install_version(self, api, executor):
        api.install_version("PowerShellGet", "3.0.0")
        assert executor.urls == [f"{BASE}/package/PowerShellGet/3.0.0"]

    def test_install_name(self, api, executor):
        api.install_name("PowerShellGet")
        assert executor.urls == [f"{BASE}/package/PowerShellGet"]

    def test_other_operations_pass_through(self, api, executor):
        api.find_command_or_dsc_resource("Get-Foo", True, True)
        api.find_types_with_prerelease(ResourceType.MODULE, "Az*")
        api.find_command_names(["PSCommand_A"], False)
        api.find_name("Pester", False, ResourceType.NONE)
        api.find_version_globbing("Pester", VersionRange.parse("[5.0,6.0)"), False, ResourceType.NONE)
        api.find_version("Pester", "5.3.1", ResourceType.MODULE)
        assert len(executor.urls) == 6


class TestEndToEnd:
    """Test cases running through a real client with a mock transport."""

    def test_response_body_returned_unmodified(self):
        feed = '<?xml version="1.0"?><feed xmlns="http://www.w3.org/2005/Atom"><entry/></feed>'
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=feed)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            api = V2ServerApiCalls(RepositoryEndpoint(uri=BASE), executor=RequestExecutor(client))
            result = api.find_name("PowerShellGet", False, ResourceType.NONE)

        assert result.ok
        assert result.body == feed
        assert requests[0].url.path == "/api/v2/FindPackagesById()"
        assert requests[0].url.params["id"] == "'PowerShellGet'"
        assert requests[0].url.params["$filter"] == "IsLatestVersion and Id eq 'PowerShellGet'"

    def test_reserved_characters_reach_server_intact(self):
        """Test that a tag containing '#' arrives whole, with the parameters after it."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text="<feed/>")

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            api = V2ServerApiCalls(RepositoryEndpoint(uri=BASE), executor=RequestExecutor(client))
            api.find_tag("C#", True, ResourceType.MODULE)

        params = requests[0].url.params
        assert params["searchTerm"] == "'tag:C#'"
        assert params["includePrerelease"] == "true"
        assert params["$select"].startswith("Id,Version,")
        assert requests[0].url.fragment == ""

    def test_from_settings_owns_client(self):
        api = V2ServerApiCalls.from_settings(RepositoryEndpoint(uri=BASE), ClientSettings(timeout=1.0))
        client = api.executor.client
        with api:
            assert not client.is_closed
        assert client.is_closed


class TestSearchDispatch:
    """Test cases for choosing an operation from search criteria."""

    def test_no_criteria_lists_all(self, api, executor):
        results = api.search(SearchCriteria(include_prerelease=True))
        assert len(results) == 1
        assert executor.urls == [api.assembler.find_all(True)]

    def test_type_only(self, api, executor):
        api.search(SearchCriteria(resource_type=ResourceType.SCRIPT))
        assert executor.urls == [api.assembler.find_types_with_prerelease(ResourceType.SCRIPT)]

    def test_tags_each_searched(self, api, executor):
        results = api.search(SearchCriteria(tags=["JSON", "Azure"]))
        assert len(results) == 4
        assert len(executor.urls) == 4

    def test_command_names_joined(self, api, executor):
        api.search(SearchCriteria(command_names=["Get-A", "Get-B"], resource_type=ResourceType.COMMAND))
        assert executor.urls == [api.assembler.find_command_names(["PSCommand_Get-A", "PSCommand_Get-B"], False)]

    def test_dsc_resources_one_by_one(self, api, executor):
        results = api.search(SearchCriteria(command_names=["xFile", "xService"], resource_type=ResourceType.DSC_RESOURCE))
        assert len(results) == 2
        assert "PSDscResource_xService" in executor.urls[1]

    def test_wildcard_name(self, api, executor):
        api.search(SearchCriteria(name="Power*Get"))
        assert executor.urls == [api.assembler.find_name_globbing("Power*Get", False, ResourceType.NONE)]

    def test_unsupported_wildcard_reported(self, api, executor):
        results = api.search(SearchCriteria(name="*a*b"))
        assert len(results) == 1
        assert not results[0].ok
        assert executor.urls == []

    def test_exact_version_range(self, api, executor):
        api.search(SearchCriteria(name="Pester", version_range=VersionRange.parse("[5.3.1]")))
        assert executor.urls == [api.assembler.find_version("Pester", "5.3.1", ResourceType.NONE)]

    def test_equivalent_bounds_use_exact_lookup(self, api, executor):
        api.search(SearchCriteria(name="Pester", version_range=VersionRange.parse("[5.3, 5.3.0]")))
        assert executor.urls == [api.assembler.find_version("Pester", "5.3", ResourceType.NONE)]

    def test_wildcard_name_ignores_version_range(self, api, executor, caplog):
        """Test that a version range given with a wildcard name is logged and not applied."""
        with caplog.at_level(logging.DEBUG, logger="gallery_v2.api.v2_server_api_calls"):
            api.search(SearchCriteria(name="Pester*", version_range=VersionRange.parse("[5.0,6.0)")))
        assert executor.urls == [api.assembler.find_name_globbing("Pester*", False, ResourceType.NONE)]
        assert "NormalizedVersion" not in executor.urls[0]
        assert "Ignoring version range" in caplog.text

    def test_version_range(self, api, executor):
        r = VersionRange.parse("[5.0,6.0)")
        api.search(SearchCriteria(name="Pester", version_range=r, include_prerelease=True))
        assert executor.urls == [api.assembler.find_version_globbing("Pester", r, True, ResourceType.NONE)]

    def test_unbounded_range_is_name_lookup(self, api, executor):
        api.search(SearchCriteria(name="Pester", version_range=VersionRange.parse("*")))
        assert executor.urls == [api.assembler.find_name("Pester", False, ResourceType.NONE)]
