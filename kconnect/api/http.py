"""
Module containing the HTTP client capability shared by providers.
"""

import contextlib
from typing import Protocol

import httpx


class HttpClient(Protocol):
    """
    Minimal interface for the HTTP client used by providers.

    ``httpx.AsyncClient`` satisfies this interface.
    """
    async def send(self, request: httpx.Request, **kwargs) -> httpx.Response:
        """
        Send the given request and return the response.
        """

    def build_request(self, method: str, url, **kwargs) -> httpx.Request:
        """
        Build a request that can be passed to ``send``.
        """


async def get_json(client: HttpClient, url, **kwargs):
    """
    Make a GET request for the given URL and return the decoded JSON body.

    Raises ``httpx.HTTPError`` on transport errors or error status codes.
    """
    request = client.build_request(
        "GET",
        url,
        headers = { 'Accept': 'application/json' },
        **kwargs
    )
    response = await client.send(request)
    response.raise_for_status()
    try:
        return response.json()
    except ValueError as exc:
        # Treat a body that is not JSON like any other bad response
        raise httpx.DecodingError(f'invalid JSON from {url}: {exc}', request = request) from exc


def client_from_settings(settings):
    """
    Return an ``httpx.AsyncClient`` configured from the given settings.
    """
    return httpx.AsyncClient(
        timeout = settings.http_timeout,
        verify = settings.verify_ssl,
        follow_redirects = True
    )


@contextlib.asynccontextmanager
async def http_client(settings):
    """
    Async context manager that yields a configured HTTP client and closes it afterwards.
    """
    client = client_from_settings(settings)
    try:
        yield client
    finally:
        await client.aclose()
