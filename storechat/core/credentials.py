"""
Credential resolution: per-request API key with a server-configured fallback.
"""

from storechat.core.errors import unauthorized


def resolve_credential(override: str | None, fallback: str | None) -> str:
    """
    Return the credential for one request.

    The explicit per-request value wins; otherwise the process-wide fallback is
    used. Blank values count as missing. Raises ServiceError(UNAUTHORIZED) when
    neither is set. Never logs the value.
    """
    for candidate in (override, fallback):
        if candidate and candidate.strip():
            return candidate.strip()
    raise unauthorized("API key required")
