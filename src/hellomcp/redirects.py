# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Redirect-URI reconciliation for application updates.

Production and development redirect sets follow different rules:

* **production** accepts ``https`` URIs with a host and custom (non-HTTP)
  schemes such as ``com.example.app:/callback``.  Plain ``http`` is always
  rejected.  Existing valid URIs are kept and new valid ones appended, so
  re-applying the same proposal is a no-op.
* **development** accepts any syntactically valid URI, ``http`` included, and
  the accepted proposal replaces the previous set wholesale.

Every rejected value produces a warning that quotes it verbatim.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
import re
from urllib.parse import urlsplit


_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_WHITESPACE_RE = re.compile(r"\s")


class Environment(str, Enum):
    DEVELOPMENT = "dev"
    PRODUCTION = "prod"


@dataclass(slots=True, frozen=True)
class RejectedURI:
    uri: str
    reason: str


@dataclass(slots=True)
class ReconcileResult:
    accepted: list[str] = field(default_factory=list)
    rejected: list[RejectedURI] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def syntax_error(uri: object) -> str | None:
    """Return why *uri* is not a well-formed absolute URI, or ``None``."""
    if not isinstance(uri, str) or not uri:
        return "not a non-empty string"
    if _WHITESPACE_RE.search(uri):
        return "contains whitespace"
    scheme, sep, rest = uri.partition(":")
    if not sep or not _SCHEME_RE.match(scheme):
        return "missing or invalid scheme"
    if not rest:
        return "nothing follows the scheme"
    try:
        parts = urlsplit(uri)
    except ValueError as exc:
        return f"unparseable ({exc})"
    # urlsplit defers port validation until .port is read
    try:
        parts.port
    except ValueError:
        return "invalid port"
    if parts.scheme in {"http", "https"} and not parts.hostname:
        return "missing host"
    return None


def production_error(uri: object) -> str | None:
    reason = syntax_error(uri)
    if reason is not None:
        return reason
    assert isinstance(uri, str)
    if urlsplit(uri).scheme == "http":
        return "http is not allowed in production; use https or a custom scheme"
    return None


def reconcile(existing: Iterable[str] | None, proposed: Iterable[str] | None, environment: Environment) -> ReconcileResult:
    """Compute the redirect set to store for *environment*."""
    result = ReconcileResult()
    validate = production_error if environment is Environment.PRODUCTION else syntax_error

    candidates: list[str] = []
    if environment is Environment.PRODUCTION:
        candidates.extend(existing or ())
    candidates.extend(proposed or ())

    seen: set[str] = set()
    for uri in candidates:
        reason = validate(uri)
        if reason is not None:
            result.rejected.append(RejectedURI(uri=str(uri), reason=reason))
            result.warnings.append(f'Rejected {environment.value} redirect URI "{uri}": {reason}')
            continue
        if uri in seen:
            continue
        seen.add(uri)
        result.accepted.append(uri)

    if result.rejected:
        count = len(result.rejected)
        noun = "URI" if count == 1 else "URIs"
        result.warnings.append(f"{count} {environment.value} redirect {noun} rejected")
    return result


__all__ = [
    "Environment",
    "ReconcileResult",
    "RejectedURI",
    "production_error",
    "reconcile",
    "syntax_error",
]
