from __future__ import annotations

import logging

from ..config import ProbeSettings
from ..errors import ProtocolFailure
from ..http import HttpClient
from ..models import EndpointDefinition
from ..results import ConnectionTestResult
from .base import BaseProbe

logger = logging.getLogger(__name__)

BODY_SNIPPET_LIMIT = 500
EMPTY_BODY = "<empty>"
TRUNCATION_MARKER = "..."


def body_snippet(body: str | None, limit: int = BODY_SNIPPET_LIMIT) -> str:
    """Return at most *limit* characters of *body*, or ``<empty>`` when blank."""
    if body is None or not body.strip():
        return EMPTY_BODY
    if len(body) > limit:
        return body[:limit] + TRUNCATION_MARKER
    return body


def format_http_failure(status: int, reason: str | None, body: str | None) -> str:
    return f"HTTP {status} - {reason or ''}\nBody:\n{body_snippet(body)}"


class HttpProbe(BaseProbe):
    """Single GET through the shared client; any 2xx counts as success.

    The same probe serves ``http`` and ``https`` endpoints.
    """

    name = "http"

    def __init__(self, client: HttpClient, settings: ProbeSettings | None = None) -> None:
        super().__init__(settings)
        self.client = client

    async def probe(self, endpoint: EndpointDefinition) -> ConnectionTestResult:
        url = endpoint.connection_string
        verify_ssl = not endpoint.ignore_ssl_errors
        logger.debug("GET %s for %r", url, endpoint.name)
        if not verify_ssl:
            logger.debug("Certificate validation disabled for %r", endpoint.name)
        try:
            await self.with_deadline(
                self._get(url, verify_ssl=verify_ssl),
                self.client.timeout + self.settings.deadline_grace,
                f"GET {url}",
            )
        except ProtocolFailure as exc:
            logger.info("%r answered with a failure status", endpoint.name)
            return ConnectionTestResult.fail(str(exc))
        except Exception as exc:
            return self.failure(endpoint, exc)
        return self.success(endpoint)

    async def _get(self, url: str, *, verify_ssl: bool) -> None:
        session = await self.client.session()
        async with session.get(url, **self.client.request_kwargs(verify_ssl=verify_ssl)) as resp:
            if 200 <= resp.status < 300:
                return
            body = await resp.text(errors="replace")
            raise ProtocolFailure(format_http_failure(resp.status, resp.reason, body))


__all__ = ["HttpProbe", "body_snippet", "format_http_failure"]
