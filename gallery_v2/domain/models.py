"""
Pydantic models for the gallery v2 query layer.

This module defines the data models passed between the query layer components:
- Client transport settings
- Repository endpoint identification
- Resource types, version ranges and search criteria
- The result of a single catalog request

All models use Pydantic for validation. Models describing a call are frozen:
they are built per call and never mutated afterwards.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gallery_v2 import __version__
from gallery_v2.domain.versions import is_valid_version, normalize_version


# ---------------------------------------------------------------------------
# Client Configuration Models
# ---------------------------------------------------------------------------


class ClientSettings(BaseModel):
    """
    Transport settings for the shared HTTP client.

    The defaults mirror httpx's own defaults so that, unless a settings file
    says otherwise, the transport's default timeout applies.
    """

    timeout: float = Field(
        default=5.0,
        gt=0,
        description="Network timeout in seconds applied to connect, read, write and pool acquisition.",
    )
    follow_redirects: bool = Field(
        default=True,
        description="If True, redirects returned by the catalog service are followed.",
    )
    user_agent: str = Field(
        default=f"gallery-v2/{__version__}",
        description="User-Agent header sent with every request.",
    )
    max_connections: int = Field(
        default=100,
        ge=1,
        description="Maximum number of concurrent connections kept by the pool.",
    )
    max_keepalive_connections: int = Field(
        default=20,
        ge=0,
        description="Maximum number of idle keep-alive connections kept by the pool.",
    )


# ---------------------------------------------------------------------------
# Repository Models
# ---------------------------------------------------------------------------


class RepositoryEndpoint(BaseModel):
    """
    Base address of a NuGet v2 catalog service (e.g. the PowerShell Gallery).

    The URI is opaque to the query layer: it is only ever used as a prefix for
    the endpoint paths. A trailing slash is removed so that paths join cleanly.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        default="PSGallery",
        description="Friendly name of the repository, used in log messages.",
    )
    uri: str = Field(
        description="Absolute http(s) base address of the v2 feed, e.g. 'https://www.powershellgallery.com/api/v2'.",
    )

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, v: str) -> str:
        """Require a well-formed absolute http(s) URI."""
        parts = urlsplit(v.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"Repository URI must be an absolute http(s) URI: {v!r}")
        return v.strip().rstrip("/")


# ---------------------------------------------------------------------------
# Search Criteria Models
# ---------------------------------------------------------------------------


class ResourceType(str, Enum):
    """
    Classification of a package artifact.

    NONE means the caller did not restrict the type.
    """

    NONE = "None"
    MODULE = "Module"
    SCRIPT = "Script"
    COMMAND = "Command"
    DSC_RESOURCE = "DscResource"

    @property
    def tag_name(self) -> str:
        """Canonical tag the gallery attaches to packages of this type."""
        return f"PS{self.value}"


_RANGE_RE = re.compile(r"^(?P<open>[\[(])(?P<body>[^\[\]()]*)(?P<close>[\])])$")


class VersionRange(BaseModel):
    """
    Version interval with optional bounds.

    A missing bound means the interval is open on that side; each present bound
    carries its own inclusivity flag.
    """

    model_config = ConfigDict(frozen=True)

    min_version: Optional[str] = Field(
        default=None,
        description="Lower bound, or None for no lower bound.",
    )
    is_min_inclusive: bool = Field(
        default=True,
        description="If True the lower bound itself is part of the range.",
    )
    max_version: Optional[str] = Field(
        default=None,
        description="Upper bound, or None for no upper bound.",
    )
    is_max_inclusive: bool = Field(
        default=False,
        description="If True the upper bound itself is part of the range.",
    )

    @field_validator("min_version", "max_version")
    @classmethod
    def validate_bound(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not is_valid_version(v):
            raise ValueError(f"Invalid version bound: {v!r}")
        return v

    @property
    def has_lower_bound(self) -> bool:
        return self.min_version is not None

    @property
    def has_upper_bound(self) -> bool:
        return self.max_version is not None

    @property
    def is_exact(self) -> bool:
        """True for a single-version range such as '[1.2.0]' or '[1.0, 1.0.0]'."""
        return (
            self.min_version is not None
            and self.max_version is not None
            and normalize_version(self.min_version) == normalize_version(self.max_version)
            and self.is_min_inclusive
            and self.is_max_inclusive
        )

    @classmethod
    def parse(cls, text: Optional[str]) -> "VersionRange":
        """
        Parse NuGet version range notation.

        Supported forms:
            ''  or '*'     any version
            '1.0'          1.0 or later
            '[1.0]'        exactly 1.0
            '[1.0,2.0)'    1.0 <= v < 2.0 (any combination of brackets)
            '[1.0,)'       1.0 or later
            '(,2.0]'       2.0 or earlier
            '[,]'          any version

        Raises:
            ValueError: If the text is not valid range notation.
        """
        text = (text or "").strip()
        if text in ("", "*"):
            return cls()

        match = _RANGE_RE.match(text)
        if match is None:
            if any(c in text for c in "[](),"):
                raise ValueError(f"Invalid version range: {text!r}")
            # Bare version: minimum, inclusive
            return cls(min_version=text, is_min_inclusive=True)

        body = match.group("body")
        min_inclusive = match.group("open") == "["
        max_inclusive = match.group("close") == "]"

        if "," not in body:
            version = body.strip()
            if not version or not (min_inclusive and max_inclusive):
                raise ValueError(f"Invalid version range: {text!r}")
            return cls(
                min_version=version,
                is_min_inclusive=True,
                max_version=version,
                is_max_inclusive=True,
            )

        parts = body.split(",")
        if len(parts) != 2:
            raise ValueError(f"Invalid version range: {text!r}")
        low, high = (p.strip() or None for p in parts)
        if low is None and high is None:
            # '[,]' is how '*' is spelled in bracket form
            return cls()

        return cls(
            min_version=low,
            is_min_inclusive=min_inclusive,
            max_version=high,
            is_max_inclusive=max_inclusive,
        )


class SearchCriteria(BaseModel):
    """
    Abstract search criteria supplied by the caller for a single call.

    Attributes:
        name: Package name, literal or containing '*' wildcards
        resource_type: Restrict results to one resource type (NONE for any)
        version_range: Optional version interval for the named package
        include_prerelease: If True, prerelease versions are eligible
        tags: Tags to search for, in caller order
        command_names: Command or DSC resource names, in caller order
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, description="Package name or wildcard pattern")
    resource_type: ResourceType = Field(default=ResourceType.NONE, description="Resource type filter")
    version_range: Optional[VersionRange] = Field(default=None, description="Version interval")
    include_prerelease: bool = Field(default=False, description="Include prerelease versions")
    tags: List[str] = Field(default_factory=list, description="Tags to search for")
    command_names: List[str] = Field(default_factory=list, description="Command names to search for")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if not v.strip():
            raise ValueError("Package name cannot be empty")
        return v.strip()

    @field_validator("tags", "command_names")
    @classmethod
    def validate_terms(cls, v: List[str]) -> List[str]:
        """Drop blank entries while keeping the caller's order."""
        return [term.strip() for term in v if term and term.strip()]

    @property
    def has_wildcard(self) -> bool:
        return self.name is not None and "*" in self.name


# ---------------------------------------------------------------------------
# Result Models
# ---------------------------------------------------------------------------


class QueryResult(BaseModel):
    """
    Outcome of one catalog request.

    Exactly one of ``body`` and ``error`` is populated. A successful call may
    legitimately carry an empty body (an empty feed); a failed call always
    carries a non-empty error message.
    """

    model_config = ConfigDict(frozen=True)

    body: Optional[str] = Field(
        default=None,
        description="Raw response payload, returned unparsed. None when the call failed.",
    )
    error: Optional[str] = Field(
        default=None,
        description="Human-readable error description. None when the call succeeded.",
    )

    @model_validator(mode="after")
    def validate_exclusive(self) -> "QueryResult":
        if self.body is None and not self.error:
            raise ValueError("QueryResult requires either a body or a non-empty error")
        if self.body is not None and self.error is not None:
            raise ValueError("QueryResult cannot carry both a body and an error")
        return self

    @classmethod
    def success(cls, body: str) -> "QueryResult":
        return cls(body=body)

    @classmethod
    def failure(cls, error: str) -> "QueryResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        """Response body, or an empty string for a failed call."""
        return self.body if self.body is not None else ""

    @property
    def error_message(self) -> str:
        """Error description, or an empty string for a successful call."""
        return self.error or ""
