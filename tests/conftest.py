import json

import pytest

from awswaf_solver.config import Config, PollPolicy

CHALLENGE_JS = "https://abc123.edge.sdk.token.awswaf.com/abc123/def456/challenge.js"

CHALLENGE_PAGE = f"""<!DOCTYPE html>
<html><head>
<script type="text/javascript" src="{CHALLENGE_JS}" defer></script>
</head><body><div id="challenge-container"></div></body></html>
"""

CAPTCHA_PAGE = f"""<!DOCTYPE html>
<html><head>
<script type="text/javascript" src="{CHALLENGE_JS}"></script>
<script type="text/javascript">var unrelated = {{"key": "not-this-one"}};</script>
<script type="text/javascript">
window.gokuProps = {{"key":"K","iv":"I","context":"C"}};
</script>
</head><body><div id="captcha-container"></div></body></html>
"""


class FakeResponse:
    """Stands in for tls_client and requests responses."""

    def __init__(self, status_code=200, text="", data=None):
        self.status_code = status_code
        self.text = text if data is None else json.dumps(data)
        self._data = data

    def json(self):
        if self._data is None:
            raise ValueError("not json")
        return self._data


class FakePageSession:
    """Records GETs made through a tls_client-like session."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.headers = {}
        self.header_order = []
        self.closed = False

    def get(self, url):
        self.requests.append((url, dict(self.headers)))
        return self.responses.pop(0)

    def close(self):
        self.closed = True


class FakeServiceSession:
    """Records POSTs made through a requests-like session."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, json=None, timeout=None):
        self.requests.append((url, json))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return FakeResponse(data=response)

    def close(self):
        pass

    def methods(self):
        return [url.rsplit("/", 1)[1] for url, _ in self.requests]


@pytest.fixture
def config():
    return Config(
        api_key="CAP-TEST",
        target_url="https://shop.example.com/products",
        poll=PollPolicy(interval=3.0, max_attempts=5, timeout=60.0),
    )


@pytest.fixture
def sleeps(monkeypatch):
    """Replaces time.sleep in the task client and records the waits."""
    waits = []
    monkeypatch.setattr("awswaf_solver.tasks.time.sleep", waits.append)
    return waits
