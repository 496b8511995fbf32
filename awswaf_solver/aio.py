"""
AWS WAF Bypass using rnet TLS client and the CapSolver task API (Async)

Same flow as awswaf_solver.solver, awaiting one request at a time:
  - Setting up an async TLS client with Chrome 143 emulation
  - Detecting the AWS WAF challenge (202) and captcha (405) pages
  - Solving the challenge through an AntiAwsWafTask
  - Replaying the request with the aws-waf-token cookie
"""

import asyncio
import json
import logging
from typing import Optional, Tuple

from rnet import Client, HeaderMap, OrigHeaderMap, Proxy
from rnet.emulation import Emulation
from rnet.exceptions import BodyError, DecodingError, RequestError
from rnet.exceptions import ConnectionError as RnetConnectionError
from rnet.exceptions import TimeoutError as RnetTimeoutError

from awswaf_solver.challenge import ChallengeKind, detect_challenge
from awswaf_solver.config import Config, PollPolicy, parse_proxy
from awswaf_solver.constants import NAVIGATION_HEADER_ORDER, SERVICE_URL, TOKEN_COOKIE_NAME, navigation_headers
from awswaf_solver.errors import ChallengeParseError, SolverServiceError
from awswaf_solver.tasks import PollDeadline, SolverTask, check_error, cookie_from, task_for_page, task_id_from

logger = logging.getLogger(__name__)

# Failures of the connection or of reading the body, as raised by rnet
TRANSPORT_ERRORS = (RequestError, RnetConnectionError, RnetTimeoutError, BodyError, DecodingError)


def build_headers(header_dict: dict) -> HeaderMap:
    """Build a HeaderMap from a dictionary."""
    headers = HeaderMap()
    for key, value in header_dict.items():
        headers.insert(key, value)
    return headers


def build_header_order(order_list: list) -> OrigHeaderMap:
    """Build an OrigHeaderMap for header ordering."""
    header_order = OrigHeaderMap()
    for header_name in order_list:
        header_order.insert(header_name)
    return header_order


# =============================================================================
# ASYNC TASK CLIENT
# =============================================================================

class AsyncTaskClient:
    """Async counterpart of TaskClient, talking to the service through rnet."""

    def __init__(
        self,
        api_key: str,
        service_url: str = SERVICE_URL,
        poll: Optional[PollPolicy] = None,
        timeout: int = 30,
        client: Optional[Client] = None,
    ):
        self.api_key = api_key
        self.service_url = service_url.rstrip("/")
        self.poll_policy = poll or PollPolicy()
        self.client = client or Client(timeout=timeout)

    async def _post(self, method: str, body: dict) -> Optional[dict]:
        """POSTs to an API method, returning None on transport failure."""
        try:
            resp = await self.client.post(
                f"{self.service_url}/{method}",
                headers=build_headers({"content-type": "application/json"}),
                body=json.dumps(body),
            )
            return await resp.json()
        except TRANSPORT_ERRORS + (ValueError,) as e:
            logger.error("%s request failed: %s", method, e)
            return None

    async def submit(self, task: SolverTask) -> Optional[str]:
        data = await self._post("createTask", {"clientKey": self.api_key, "task": task.to_payload()})
        if data is None:
            return None
        task_id = task_id_from(data)
        logger.info("Task %s created", task_id)
        return task_id

    async def poll(self, task_id: str) -> Optional[str]:
        deadline = PollDeadline(self.poll_policy, task_id)
        body = {"clientKey": self.api_key, "taskId": task_id}
        while True:
            deadline.next_attempt()
            await asyncio.sleep(self.poll_policy.interval)
            data = await self._post("getTaskResult", body)
            if data is None:
                return None
            cookie = cookie_from(data)
            if cookie is not None:
                logger.info("Task %s ready after %d polls", task_id, deadline.attempts)
                return cookie

    async def solve(self, task: SolverTask) -> Optional[str]:
        task_id = await self.submit(task)
        if task_id is None:
            return None
        return await self.poll(task_id)

    async def get_balance(self) -> Optional[float]:
        data = await self._post("getBalance", {"clientKey": self.api_key})
        if data is None:
            return None
        return check_error(data).get("balance")


# =============================================================================
# ASYNC AWS WAF SOLVER
# =============================================================================

class AsyncAwsWafSolver:
    """Handles the complete AWS WAF bypass flow using async rnet client."""

    def __init__(self, config: Config, client: Optional[Client] = None,
                 task_client: Optional[AsyncTaskClient] = None):
        config.validate()
        self.config = config

        self.proxy_url: Optional[str] = None
        if config.proxy:
            self.proxy_url = parse_proxy(config.proxy).url

        if client is None:
            # Build proxy list if configured
            proxies = None
            if self.proxy_url:
                proxies = [Proxy.all(url=self.proxy_url)]

            # Create rnet async client with Chrome 143 emulation
            client = Client(
                emulation=Emulation.Chrome143,
                proxies=proxies,
                timeout=config.timeout,
            )
        self.client = client

        self.task_client = task_client or AsyncTaskClient(
            config.api_key,
            service_url=config.service_url,
            poll=config.poll,
            timeout=config.timeout,
        )

        self.token: Optional[str] = None
        self.status_code: Optional[int] = None
        self.body: Optional[str] = None

    async def solve(self) -> bool:
        """
        Attempts to bypass AWS WAF protection and access the target page.
        Returns True if successful, False otherwise.
        """
        logger.info("Step 1: Making initial request to %s...", self.config.target_url)
        result = await self._get()
        if result is None:
            return False
        status_code, body = result

        kind = detect_challenge(status_code)
        if kind is ChallengeKind.NONE:
            logger.info("  No challenge (HTTP %d), page is accessible", status_code)
            self.status_code, self.body = status_code, body
            return True
        if kind is ChallengeKind.UNHANDLED:
            logger.error("  Unhandled status code %d, giving up", status_code)
            return False

        logger.info("  AWS WAF %s detected (HTTP %d)", kind.value, status_code)

        try:
            logger.info("Step 2: Extracting challenge parameters...")
            task = task_for_page(kind, body, self.config.target_url, self.proxy_url)

            logger.info("Step 3: Solving challenge via the task API...")
            token = await self.task_client.solve(task)
        except ChallengeParseError as e:
            logger.error("  Failed to parse challenge page: %s", e)
            return False
        except SolverServiceError as e:
            logger.error("  Solving service error: %s", e)
            return False

        if not token:
            logger.error("  No token obtained from the solving service")
            return False

        self.token = token

        logger.info("Step 4: Replaying request with %s cookie...", TOKEN_COOKIE_NAME)
        result = await self._get(cookie=f"{TOKEN_COOKIE_NAME}={token}")
        if result is None:
            return False
        self.status_code, self.body = result

        if self.status_code != 200:
            logger.error("Failed! Access denied (HTTP %d)", self.status_code)
            return False

        logger.info("Success! Access granted (HTTP %d)", self.status_code)
        return True

    async def _get(self, cookie: Optional[str] = None) -> Optional[Tuple[int, str]]:
        """GETs the target page, returning None on transport failure or a 5xx status."""
        header_dict = navigation_headers(self.config.accept_language)
        if cookie:
            header_dict["cookie"] = cookie

        try:
            resp = await self.client.get(
                self.config.target_url,
                headers=build_headers(header_dict),
                orig_headers=build_header_order(NAVIGATION_HEADER_ORDER),
                default_headers=False,
            )
            status_code = resp.status.as_int()
            body = await resp.text()
        except TRANSPORT_ERRORS as e:
            logger.error("  Request to %s failed: %s", self.config.target_url, e)
            return None

        if not 200 <= status_code < 500:
            logger.error("  Server error from %s (HTTP %d)", self.config.target_url, status_code)
            return None
        return status_code, body
