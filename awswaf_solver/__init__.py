"""Solve AWS WAF challenges and captchas through the CapSolver task API."""

from awswaf_solver.challenge import ChallengeKind, ChallengeParameters, detect_challenge, extract_parameters, find_challenge_script
from awswaf_solver.config import Config, PollPolicy, Proxy, default_config, parse_proxy
from awswaf_solver.errors import AwsWafError, ChallengeParseError, SolverServiceError, SolverTimeoutError
from awswaf_solver.solver import AwsWafSolver
from awswaf_solver.tasks import SolverTask, TaskClient

__version__ = "0.1.0"

__all__ = [
    "AwsWafError",
    "AwsWafSolver",
    "ChallengeKind",
    "ChallengeParameters",
    "ChallengeParseError",
    "Config",
    "PollPolicy",
    "Proxy",
    "SolverServiceError",
    "SolverTask",
    "SolverTimeoutError",
    "TaskClient",
    "default_config",
    "detect_challenge",
    "extract_parameters",
    "find_challenge_script",
    "parse_proxy",
]
