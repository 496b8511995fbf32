"""Configuration for the AWS WAF solvers."""

import os
from dataclasses import dataclass, field
from typing import Optional

from awswaf_solver.constants import POLL_INTERVAL, SERVICE_URL


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class PollPolicy:
    """Bounds on the getTaskResult polling loop."""

    # Interval is the wait in seconds before every poll request.
    interval: float = POLL_INTERVAL

    # MaxAttempts is the number of poll requests before giving up.
    max_attempts: int = 60

    # Timeout is the total time in seconds spent polling before giving up.
    timeout: float = 180.0


@dataclass
class Config:
    """Configuration for an AWS WAF solving run."""

    # APIKey is your CapSolver API key.
    # Get yours at: https://capsolver.com
    api_key: str

    # TargetURL is the protected page you want to access.
    target_url: str

    # AcceptLanguage is the browser's accept-language header.
    accept_language: str = "en-US,en;q=0.9"

    # Proxy is an optional proxy descriptor, "user:pass@host:port" or "host:port".
    # The same proxy is used for the page requests and passed to the solving service.
    proxy: Optional[str] = None

    # Timeout is the HTTP request timeout in seconds.
    timeout: int = 30

    # ServiceURL is the base URL of the solving service API.
    service_url: str = SERVICE_URL

    # Poll bounds the wait for the solving service.
    poll: PollPolicy = field(default_factory=PollPolicy)

    def validate(self) -> None:
        """Raises ValueError when the configuration cannot be used."""
        if not self.api_key:
            raise ValueError("API key is required - get yours at https://capsolver.com")
        if not self.target_url:
            raise ValueError("Target URL is required")
        if self.poll.interval < 0:
            raise ValueError("Poll interval must not be negative")
        if self.poll.max_attempts <= 0:
            raise ValueError("Poll max_attempts must be positive")
        if self.poll.timeout <= 0:
            raise ValueError("Poll timeout must be positive")


def default_config() -> Config:
    """Returns a sensible default configuration."""
    return Config(
        api_key=os.environ.get("CAPSOLVER_API_KEY", ""),
        target_url=os.environ.get("AWSWAF_TARGET_URL", "https://example.com/protected-page"),
        proxy=os.environ.get("AWSWAF_PROXY") or None,
    )


# =============================================================================
# PROXY
# =============================================================================

# Schemes understood by tls_client, rnet and the solving service
PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


@dataclass(frozen=True)
class Proxy:
    """A proxy parsed from a "user:pass@host:port" or "host:port" descriptor."""

    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: str = "http"

    @property
    def url(self) -> str:
        if self.username is not None:
            return f"{self.scheme}://{self.username}:{self.password}@{self.host}:{self.port}"
        return f"{self.scheme}://{self.host}:{self.port}"


def parse_proxy(descriptor: str) -> Proxy:
    """Parses a proxy descriptor.

    Accepts "host:port" and "user:pass@host:port", optionally prefixed with
    an http, https, socks5 or socks5h scheme (http when omitted). The
    credentials are split on the last "@" so passwords may contain one.
    """
    descriptor = descriptor.strip()
    scheme = "http"
    if "://" in descriptor:
        scheme, descriptor = descriptor.split("://", 1)
        scheme = scheme.lower()
        if scheme not in PROXY_SCHEMES:
            raise ValueError(f"Unsupported proxy scheme {scheme!r}")

    username = password = None
    address = descriptor
    if "@" in descriptor:
        credentials, address = descriptor.rsplit("@", 1)
        if ":" not in credentials:
            raise ValueError(f"Proxy credentials must be user:pass, got {credentials!r}")
        username, password = credentials.split(":", 1)

    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise ValueError(f"Proxy address must be host:port, got {address!r}")
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid proxy port {port!r}")

    return Proxy(host=host, port=int(port), username=username, password=password, scheme=scheme)
