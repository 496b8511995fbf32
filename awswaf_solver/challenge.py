"""Detecting AWS WAF challenge pages and extracting their parameters."""

import enum
import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

from awswaf_solver.constants import CAPTCHA_FIELDS, CHALLENGE_SCRIPT_DOMAIN, INLINE_SCRIPT_TYPE
from awswaf_solver.errors import ChallengeParseError

logger = logging.getLogger(__name__)

# Start of the parameter object, e.g. window.gokuProps = {...};
GOKU_PROPS_REGEX = re.compile(r"gokuProps\s*=\s*\{")


class ChallengeKind(enum.Enum):
    """What the WAF answered the first request with."""

    NONE = "none"
    CHALLENGE = "challenge"
    CAPTCHA = "captcha"
    UNHANDLED = "unhandled"


STATUS_KINDS = {
    200: ChallengeKind.NONE,
    202: ChallengeKind.CHALLENGE,
    405: ChallengeKind.CAPTCHA,
}


@dataclass(frozen=True)
class ChallengeParameters:
    """Parameters embedded in a captcha page as window.gokuProps."""

    key: str
    iv: str
    context: str


def detect_challenge(status_code: int) -> ChallengeKind:
    """Maps the status code of the first response to a challenge kind."""
    return STATUS_KINDS.get(status_code, ChallengeKind.UNHANDLED)


def find_challenge_script(html: str) -> Optional[str]:
    """Returns the src of the challenge script served from the AWS WAF token domain."""
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script", src=True):
        if CHALLENGE_SCRIPT_DOMAIN in script["src"]:
            return script["src"]
    return None


def extract_parameters(html: str) -> ChallengeParameters:
    """
    Parses key, iv and context from the last inline text/javascript block.
    Raises ChallengeParseError when the block, the object or a field is missing.
    """
    soup = BeautifulSoup(html, "html.parser")
    scripts = [
        script for script in soup.find_all("script", type=INLINE_SCRIPT_TYPE)
        if not script.has_attr("src")
    ]
    if not scripts:
        raise ChallengeParseError("No inline captcha script found in challenge page")

    text = scripts[-1].string or ""
    match = GOKU_PROPS_REGEX.search(text)
    start = match.end() - 1 if match else text.find("{")
    if start < 0:
        raise ChallengeParseError("Captcha script does not contain a parameter object")

    # Decoding stops at the end of the object, statements after it are ignored
    try:
        props, _ = json.JSONDecoder().raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise ChallengeParseError(f"Captcha parameters are not valid JSON: {e}") from e

    if not isinstance(props, dict):
        raise ChallengeParseError("Captcha parameters are not an object")

    missing = [
        name for name in CAPTCHA_FIELDS
        if not isinstance(props.get(name), str) or not props[name]
    ]
    if missing:
        raise ChallengeParseError(f"Captcha parameters missing: {', '.join(missing)}")

    logger.debug("Captcha parameters extracted: key=%s...", props["key"][:20])
    return ChallengeParameters(key=props["key"], iv=props["iv"], context=props["context"])
