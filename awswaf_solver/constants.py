"""Browser fingerprint and AWS WAF constants shared by both solvers."""

# =============================================================================
# BROWSER FINGERPRINT CONSTANTS
# =============================================================================

# User agent string for Chrome on Windows
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36"

# sec-ch-ua header value for Chrome 143
SEC_CH_UA = '"Google Chrome";v="143", "Chromium";v="143", "Not A(Brand";v="24"'

# sec-ch-ua-platform header value
SEC_CH_UA_PLATFORM = '"Windows"'

# tls_client identifier matching the fingerprint above
CLIENT_IDENTIFIER = "chrome_133"

# Header order of a top-level navigation in Chrome
NAVIGATION_HEADER_ORDER = [
    "sec-ch-ua", "sec-ch-ua-mobile", "sec-ch-ua-platform",
    "upgrade-insecure-requests", "user-agent", "accept",
    "sec-fetch-site", "sec-fetch-mode", "sec-fetch-user",
    "sec-fetch-dest", "accept-encoding", "accept-language", "cookie", "priority",
]


def navigation_headers(accept_language: str) -> dict:
    """Returns the headers Chrome sends when navigating to a page."""
    return {
        "sec-ch-ua": SEC_CH_UA,
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": SEC_CH_UA_PLATFORM,
        "upgrade-insecure-requests": "1",
        "user-agent": USER_AGENT,
        "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7",
        "sec-fetch-site": "none",
        "sec-fetch-mode": "navigate",
        "sec-fetch-user": "?1",
        "sec-fetch-dest": "document",
        "accept-encoding": "gzip, deflate, br, zstd",
        "accept-language": accept_language,
        "priority": "u=0, i",
    }


# =============================================================================
# AWS WAF CONSTANTS
# =============================================================================

# Domain serving the challenge.js / captcha.js integration scripts
CHALLENGE_SCRIPT_DOMAIN = "token.awswaf.com"

# Cookie carrying the solved token
TOKEN_COOKIE_NAME = "aws-waf-token"

# Content type of the inline script holding the captcha parameters
INLINE_SCRIPT_TYPE = "text/javascript"

# Fields the captcha page embeds in window.gokuProps
CAPTCHA_FIELDS = ("key", "iv", "context")


# =============================================================================
# SOLVING SERVICE CONSTANTS
# =============================================================================

# Base URL of the CapSolver API
SERVICE_URL = "https://api.capsolver.com"

# Task type for AWS WAF challenges and captchas
TASK_TYPE = "AntiAwsWafTask"

# Seconds to wait before each getTaskResult call
POLL_INTERVAL = 3.0
