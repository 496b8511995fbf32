"""
AWS WAF Bypass using python-tls-client and the CapSolver task API

This module handles:
  - Setting up a TLS client session with Chrome browser impersonation
  - Detecting the AWS WAF challenge (202) and captcha (405) pages
  - Extracting the challenge script and captcha parameters
  - Solving the challenge through an AntiAwsWafTask
  - Replaying the request with the aws-waf-token cookie
"""

import logging
from typing import Optional

import tls_client
from tls_client.exceptions import TLSClientExeption

from awswaf_solver.challenge import ChallengeKind, detect_challenge
from awswaf_solver.config import Config, parse_proxy
from awswaf_solver.constants import (
    CLIENT_IDENTIFIER,
    NAVIGATION_HEADER_ORDER,
    TOKEN_COOKIE_NAME,
    navigation_headers,
)
from awswaf_solver.errors import ChallengeParseError, SolverServiceError
from awswaf_solver.tasks import TaskClient, task_for_page

logger = logging.getLogger(__name__)


# =============================================================================
# AWS WAF SOLVER
# =============================================================================

class AwsWafSolver:
    """Handles the complete AWS WAF bypass flow."""

    def __init__(self, config: Config, session=None, task_client: Optional[TaskClient] = None):
        config.validate()
        self.config = config

        # Proxy URL shared by the page session and the solving service
        self.proxy_url: Optional[str] = None
        if config.proxy:
            self.proxy_url = parse_proxy(config.proxy).url

        if session is None:
            # Create tls_client session with Chrome impersonation
            session = tls_client.Session(
                client_identifier=CLIENT_IDENTIFIER,
                random_tls_extension_order=True,
                disable_http3=True,
            )
            session.timeout_seconds = config.timeout
            if self.proxy_url:
                session.proxies = {
                    "http": self.proxy_url,
                    "https": self.proxy_url,
                }
        self.session = session

        self.task_client = task_client or TaskClient(
            config.api_key,
            service_url=config.service_url,
            poll=config.poll,
            timeout=config.timeout,
        )

        # Filled in by solve()
        self.token: Optional[str] = None
        self.response = None

    def __enter__(self) -> "AwsWafSolver":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def solve(self) -> bool:
        """
        Attempts to bypass AWS WAF protection and access the target page.
        Returns True if successful, False otherwise.
        """
        logger.info("Step 1: Making initial request to %s...", self.config.target_url)
        resp = self._get()
        if resp is None:
            return False

        kind = detect_challenge(resp.status_code)
        if kind is ChallengeKind.NONE:
            logger.info("  No challenge (HTTP %d), page is accessible", resp.status_code)
            self.response = resp
            return True
        if kind is ChallengeKind.UNHANDLED:
            logger.error("  Unhandled status code %d, giving up", resp.status_code)
            return False

        logger.info("  AWS WAF %s detected (HTTP %d)", kind.value, resp.status_code)

        try:
            logger.info("Step 2: Extracting challenge parameters...")
            task = task_for_page(kind, resp.text, self.config.target_url, self.proxy_url)

            logger.info("Step 3: Solving challenge via the task API...")
            token = self.task_client.solve(task)
        except ChallengeParseError as e:
            logger.error("  Failed to parse challenge page: %s", e)
            return False
        except SolverServiceError as e:
            logger.error("  Solving service error: %s", e)
            return False

        if not token:
            logger.error("  No token obtained from the solving service")
            return False

        logger.info("  Token obtained: %s...", token[:30])
        self.token = token

        logger.info("Step 4: Replaying request with %s cookie...", TOKEN_COOKIE_NAME)
        return self._verify_access(token)

    def _get(self, cookie: Optional[str] = None):
        """GETs the target page, returning None on transport failure or a 5xx status."""
        headers = navigation_headers(self.config.accept_language)
        if cookie:
            headers["cookie"] = cookie

        self.session.headers = headers
        self.session.header_order = NAVIGATION_HEADER_ORDER

        try:
            resp = self.session.get(self.config.target_url)
        except TLSClientExeption as e:
            logger.error("  Request to %s failed: %s", self.config.target_url, e)
            return None

        if not 200 <= resp.status_code < 500:
            logger.error("  Server error from %s (HTTP %d)", self.config.target_url, resp.status_code)
            return None
        return resp

    def _verify_access(self, token: str) -> bool:
        """Makes the final request with the token and checks for HTTP 200."""
        resp = self._get(cookie=f"{TOKEN_COOKIE_NAME}={token}")
        if resp is None:
            return False

        self.response = resp
        if resp.status_code != 200:
            logger.error("Failed! Access denied (HTTP %d)", resp.status_code)
            return False

        logger.info("Success! Access granted (HTTP %d)", resp.status_code)
        return True

    def close(self) -> None:
        """Releases resources associated with the solver."""
        self.task_client.close()
        if hasattr(self.session, "close"):
            self.session.close()
