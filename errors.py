"""Self-review error hierarchy.

Every external-call failure is caught close to where it happens and turned
into an empty result or a fallback value. These types exist so call sites
can tell *why* they are falling back:

    SelfReviewError
    ├── ConfigurationMissing      # no credentials for a required source / oracle
    ├── InvalidDateFormat         # malformed explicit YYYY-MM-DD input
    ├── UpstreamUnavailable       # network, auth or rate-limit failure
    ├── MalformedOracleResponse   # non-JSON or schema-violating oracle output
    └── NoPriorSnapshot           # analyze run before any fetch
"""

from __future__ import annotations


class SelfReviewError(Exception):
    """Base class for all self-review errors."""


class ConfigurationMissing(SelfReviewError):
    pass


class InvalidDateFormat(SelfReviewError):
    pass


class UpstreamUnavailable(SelfReviewError):
    pass


class MalformedOracleResponse(SelfReviewError):
    pass


class NoPriorSnapshot(SelfReviewError):
    pass
