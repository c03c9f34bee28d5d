"""Blocking transaction resolvers over Electrum, Esplora and mempool backends.

``select_resolver`` picks exactly one configured backend, connects to it and
checks that it serves the expected network. There is no retry or pooling
here: a failed connection or a failed check surfaces immediately.
"""

from __future__ import annotations

import json
import logging
import socket
import ssl
from typing import Any, Protocol

import httpx

from rgbstock.config import ResolverConfig
from rgbstock.constants import DEFAULT_RESOLVER_TIMEOUT, Network

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class ResolverError(Exception):
    """Base exception for resolver selection and backend calls."""


class ResolverArityError(ResolverError):
    """Zero, or more than one, resolver endpoint was configured."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "no transaction resolver is specified; use either --esplora, "
            "--electrum or --mempool argument"
        )


class ResolverNetworkMismatchError(ResolverError):
    """The backend serves a different chain than the configured network."""

    def __init__(
        self, expected: Network, actual: Network | None, genesis_hash: str,
    ) -> None:
        actual_name = actual.value if actual is not None else f"unknown chain {genesis_hash}"
        super().__init__(
            f"resolver serves {actual_name} while {expected.value} was requested"
        )
        self.expected = expected
        self.actual = actual
        self.genesis_hash = genesis_hash


class ResolverConnectionError(ResolverError):
    """Network/DNS failure reaching the backend."""


class ResolverTimeoutError(ResolverError):
    """Backend did not answer in time."""


class ResolverResponseError(ResolverError):
    """Backend answered with an error status or a malformed payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def network_by_genesis(genesis_hash: str) -> Network | None:
    for network in Network:
        if network.genesis_hash == genesis_hash:
            return network
    return None


class ResolverBackend(Protocol):
    def genesis_hash(self) -> str: ...

    def tip_height(self) -> int: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Esplora / mempool (HTTP)
# ---------------------------------------------------------------------------


class EsploraBlockingClient:
    """Blocking client for the Esplora REST API (also served by mempool)."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_RESOLVER_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url).rstrip("/")

    def _request(self, method: str, endpoint: str) -> str:
        """Send a request and map errors to the resolver exception hierarchy."""
        try:
            response = self._client.request(method, endpoint)
        except httpx.ConnectError as exc:
            raise ResolverConnectionError(str(exc)) from exc
        except httpx.TimeoutException as exc:
            raise ResolverTimeoutError(str(exc)) from exc
        except httpx.TransportError as exc:
            raise ResolverConnectionError(str(exc)) from exc

        if response.status_code >= 400:
            raise ResolverResponseError(response.text, status_code=response.status_code)
        return response.text.strip()

    def genesis_hash(self) -> str:
        """GET /block-height/0 — hash of the genesis block."""
        return self._request("GET", "/block-height/0").lower()

    def tip_height(self) -> int:
        """GET /blocks/tip/height — current chain height."""
        body = self._request("GET", "/blocks/tip/height")
        try:
            return int(body)
        except ValueError as exc:
            raise ResolverResponseError(f"invalid tip height '{body}'") from exc

    def close(self) -> None:
        self._client.close()


def mempool_api_url(url: str) -> str:
    """mempool.space-style hosts serve the Esplora API under ``/api``."""
    url = url.rstrip("/")
    return url if url.endswith("/api") else url + "/api"


# ---------------------------------------------------------------------------
# Electrum (line-delimited JSON-RPC over TCP/SSL)
# ---------------------------------------------------------------------------

_ELECTRUM_DEFAULT_PORTS = {"tcp": 50001, "ssl": 50002}
_ELECTRUM_PROTOCOL_VERSION = "1.4"


def parse_electrum_url(url: str) -> tuple[str, str, int]:
    """Split ``[ssl|tcp://]host[:port]`` into ``(scheme, host, port)``."""
    scheme, sep, rest = url.strip().partition("://")
    if not sep:
        scheme, rest = "tcp", url.strip()
    scheme = scheme.lower()
    if scheme not in _ELECTRUM_DEFAULT_PORTS:
        raise ResolverError(f"unsupported electrum scheme '{scheme}'")
    rest = rest.rstrip("/")
    host, colon, port = rest.rpartition(":")
    if not colon:
        return scheme, rest, _ELECTRUM_DEFAULT_PORTS[scheme]
    if not host or not port.isdigit():
        raise ResolverError(f"invalid electrum server address '{url}'")
    return scheme, host, int(port)


class ElectrumBlockingClient:
    """Minimal blocking Electrum client; connects on construction."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_RESOLVER_TIMEOUT,
        validate_domain: bool = True,
    ) -> None:
        self._scheme, self._host, self._port = parse_electrum_url(url)
        self._next_id = 0
        try:
            sock = socket.create_connection((self._host, self._port), timeout=timeout)
            if self._scheme == "ssl":
                ctx = ssl.create_default_context()
                if not validate_domain:
                    ctx.check_hostname = False
                    ctx.verify_mode = ssl.CERT_NONE
                sock = ctx.wrap_socket(sock, server_hostname=self._host)
        except socket.timeout as exc:
            raise ResolverTimeoutError(str(exc)) from exc
        except OSError as exc:
            raise ResolverConnectionError(str(exc)) from exc
        self._sock = sock
        self._stream = sock.makefile("rwb")
        try:
            self.server_version = self._call(
                "server.version", ["rgbstock", _ELECTRUM_PROTOCOL_VERSION]
            )
        except ResolverError:
            self.close()
            raise

    def _call(self, method: str, params: list[Any] | None = None) -> Any:
        self._next_id += 1
        request_id = self._next_id
        request = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or []}
        try:
            self._stream.write(json.dumps(request).encode() + b"\n")
            self._stream.flush()
        except socket.timeout as exc:
            raise ResolverTimeoutError(str(exc)) from exc
        except OSError as exc:
            raise ResolverConnectionError(str(exc)) from exc

        # Subscriptions make the server push notifications on the same stream.
        while True:
            response = self._read_message(method)
            if response.get("id") == request_id:
                break
            if "id" not in response and "method" in response:
                logger.debug("Skipping electrum notification %s.", response["method"])
                continue
            raise ResolverResponseError(
                f"{method}: unexpected response id {response.get('id')!r}"
            )

        if response.get("error"):
            raise ResolverResponseError(f"{method}: {response['error']}")
        return response.get("result")

    def _read_message(self, method: str) -> dict[str, Any]:
        try:
            line = self._stream.readline()
        except socket.timeout as exc:
            raise ResolverTimeoutError(str(exc)) from exc
        except OSError as exc:
            raise ResolverConnectionError(str(exc)) from exc
        if not line:
            raise ResolverConnectionError(f"electrum server closed connection on {method}")

        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ResolverResponseError(f"malformed electrum response: {exc}") from exc
        if not isinstance(message, dict):
            raise ResolverResponseError("electrum response is not an object")
        return message

    def genesis_hash(self) -> str:
        features = self._call("server.features")
        if not isinstance(features, dict) or "genesis_hash" not in features:
            raise ResolverResponseError("electrum server did not report genesis_hash")
        return str(features["genesis_hash"]).lower()

    def tip_height(self) -> int:
        header = self._call("blockchain.headers.subscribe")
        if not isinstance(header, dict) or not isinstance(header.get("height"), int):
            raise ResolverResponseError("electrum server returned an invalid tip header")
        return header["height"]

    def close(self) -> None:
        self._stream.close()
        self._sock.close()


# ---------------------------------------------------------------------------
# AnyResolver
# ---------------------------------------------------------------------------


class AnyResolver:
    """One of the supported blocking backends behind a common interface."""

    def __init__(self, kind: str, backend: ResolverBackend) -> None:
        self.kind = kind
        self._backend = backend

    @classmethod
    def electrum_blocking(
        cls, url: str, timeout: float = DEFAULT_RESOLVER_TIMEOUT,
    ) -> AnyResolver:
        return cls("electrum", ElectrumBlockingClient(url, timeout))

    @classmethod
    def esplora_blocking(
        cls,
        url: str,
        timeout: float = DEFAULT_RESOLVER_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> AnyResolver:
        return cls("esplora", EsploraBlockingClient(url, timeout, transport))

    @classmethod
    def mempool_blocking(
        cls,
        url: str,
        timeout: float = DEFAULT_RESOLVER_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> AnyResolver:
        return cls("mempool", EsploraBlockingClient(mempool_api_url(url), timeout, transport))

    def network(self) -> Network | None:
        """Network the backend serves, or None for an unknown chain."""
        return network_by_genesis(self._backend.genesis_hash())

    def check(self, network: Network) -> None:
        """Raise ``ResolverNetworkMismatchError`` unless the backend serves ``network``."""
        genesis = self._backend.genesis_hash()
        if genesis != network.genesis_hash:
            raise ResolverNetworkMismatchError(network, network_by_genesis(genesis), genesis)

    def tip_height(self) -> int:
        return self._backend.tip_height()

    def close(self) -> None:
        self._backend.close()

    def __enter__(self) -> AnyResolver:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def select_resolver(
    config: ResolverConfig,
    network: Network,
    verbose: int = 0,
    *,
    transport: httpx.BaseTransport | None = None,
) -> AnyResolver:
    """Build the single configured resolver and check it serves ``network``.

    ``transport`` is handed to the HTTP backends only.
    """
    configured = config.configured()
    if len(configured) != 1:
        raise ResolverArityError()
    kind, url = configured[0]

    if verbose > 1:
        logger.info("Connecting to %s resolver at %s ...", kind, url)
    if kind == "electrum":
        resolver = AnyResolver.electrum_blocking(url, config.timeout)
    elif kind == "esplora":
        resolver = AnyResolver.esplora_blocking(url, config.timeout, transport)
    else:
        resolver = AnyResolver.mempool_blocking(url, config.timeout, transport)

    try:
        resolver.check(network)
    except ResolverError as exc:
        logger.error("Resolver check failed: %s", exc)
        resolver.close()
        raise
    if verbose > 1:
        logger.info("Resolver serves %s.", network.value)
    return resolver
