"""Client for the CapSolver task API (createTask / getTaskResult)."""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import requests

from awswaf_solver.challenge import (
    ChallengeKind,
    ChallengeParameters,
    extract_parameters,
    find_challenge_script,
)
from awswaf_solver.config import PollPolicy
from awswaf_solver.constants import SERVICE_URL, TASK_TYPE
from awswaf_solver.errors import ChallengeParseError, SolverServiceError, SolverTimeoutError

logger = logging.getLogger(__name__)


# =============================================================================
# TASK DESCRIPTION
# =============================================================================

@dataclass(frozen=True)
class SolverTask:
    """An AntiAwsWafTask as sent to createTask."""

    website_url: str
    challenge_script_url: str
    parameters: Optional[ChallengeParameters] = None
    proxy: Optional[str] = None
    type: str = TASK_TYPE

    def to_payload(self) -> dict:
        """Returns the task object in the service's wire format."""
        payload = {
            "type": self.type,
            "websiteURL": self.website_url,
            "awsChallengeJS": self.challenge_script_url,
        }
        if self.parameters is not None:
            payload["awsKey"] = self.parameters.key
            payload["awsIv"] = self.parameters.iv
            payload["awsContext"] = self.parameters.context
        if self.proxy:
            payload["proxy"] = self.proxy
        return payload


# =============================================================================
# RESPONSE HANDLING
# =============================================================================

def check_error(data: dict) -> dict:
    """Raises SolverServiceError when the response reports a non-zero errorId."""
    if data.get("errorId", 0) != 0:
        raise SolverServiceError.from_response(data)
    return data


def task_id_from(data: dict) -> str:
    """Returns the task handle from a createTask response."""
    check_error(data)
    task_id = data.get("taskId")
    if not task_id:
        raise SolverServiceError("createTask response has no taskId")
    return task_id


def cookie_from(data: dict) -> Optional[str]:
    """
    Interprets a getTaskResult response.
    Returns the token when ready, None while processing, raises otherwise.
    """
    check_error(data)
    status = data.get("status")
    if status == "ready":
        cookie = (data.get("solution") or {}).get("cookie")
        if not cookie:
            raise SolverServiceError("Task is ready but the solution has no cookie")
        return cookie
    if status in ("processing", "idle"):
        return None
    raise SolverServiceError(f"Task ended with status {status!r}")


class PollDeadline:
    """Tracks attempts and elapsed time against a PollPolicy."""

    def __init__(self, policy: PollPolicy, task_id: str):
        self.policy = policy
        self.task_id = task_id
        self.attempts = 0
        self.started = time.monotonic()

    def next_attempt(self) -> None:
        """Counts one more poll, raising SolverTimeoutError once the policy is spent."""
        elapsed = time.monotonic() - self.started
        if self.attempts >= self.policy.max_attempts or elapsed >= self.policy.timeout:
            raise SolverTimeoutError(
                f"Task {self.task_id} not ready after {self.attempts} polls ({elapsed:.0f}s)",
                error_code="ERROR_POLL_TIMEOUT",
            )
        self.attempts += 1


# =============================================================================
# TASK CLIENT
# =============================================================================

class TaskClient:
    """Submits tasks to the solving service and polls them to completion."""

    def __init__(
        self,
        api_key: str,
        service_url: str = SERVICE_URL,
        poll: Optional[PollPolicy] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.service_url = service_url.rstrip("/")
        self.poll_policy = poll or PollPolicy()
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, method: str, body: dict) -> Optional[dict]:
        """POSTs to an API method, returning None on transport failure."""
        try:
            resp = self.session.post(f"{self.service_url}/{method}", json=body, timeout=self.timeout)
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("%s request failed: %s", method, e)
            return None

    def submit(self, task: SolverTask) -> Optional[str]:
        """Creates a task and returns its id, or None if the service was unreachable."""
        data = self._post("createTask", {"clientKey": self.api_key, "task": task.to_payload()})
        if data is None:
            return None
        task_id = task_id_from(data)
        logger.info("Task %s created", task_id)
        return task_id

    def poll(self, task_id: str) -> Optional[str]:
        """Waits for a task and returns its token, or None if the service was unreachable."""
        deadline = PollDeadline(self.poll_policy, task_id)
        body = {"clientKey": self.api_key, "taskId": task_id}
        while True:
            deadline.next_attempt()
            time.sleep(self.poll_policy.interval)
            data = self._post("getTaskResult", body)
            if data is None:
                return None
            cookie = cookie_from(data)
            if cookie is not None:
                logger.info("Task %s ready after %d polls", task_id, deadline.attempts)
                return cookie
            logger.debug("Task %s still processing", task_id)

    def solve(self, task: SolverTask) -> Optional[str]:
        """Submits a task and waits for its token."""
        task_id = self.submit(task)
        if task_id is None:
            return None
        return self.poll(task_id)

    def get_balance(self) -> Optional[float]:
        """Returns the account balance in USD."""
        data = self._post("getBalance", {"clientKey": self.api_key})
        if data is None:
            return None
        return check_error(data).get("balance")

    def close(self) -> None:
        self.session.close()


def task_for_page(kind: ChallengeKind, html: str, website_url: str, proxy: Optional[str] = None) -> SolverTask:
    """
    Builds the task for a challenge page.
    Captcha pages (405) additionally carry key, iv and context.
    """
    script_url = find_challenge_script(html)
    if not script_url:
        logger.warning("Challenge script reference not found in %s page", kind.value)
        raise ChallengeParseError("Challenge script not found in challenge page")
    logger.info("  Challenge script: %s", script_url)

    parameters = None
    if kind is ChallengeKind.CAPTCHA:
        parameters = extract_parameters(html)

    return SolverTask(
        website_url=website_url,
        challenge_script_url=script_url,
        parameters=parameters,
        proxy=proxy,
    )
