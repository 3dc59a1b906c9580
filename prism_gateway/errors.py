"""
Error taxonomy for the gateway.

Inbound problems (bad upload, missing credential) are raised as exceptions and
caught at the route boundary. Upstream problems are never raised: each call to
the PRISM API returns an UpstreamFailure describing what went wrong.
"""

import json
from enum import Enum
from typing import Optional

from pydantic import BaseModel


# ── Inbound errors ───────────────────────────────────────────────────────────

class GatewayError(Exception):
    status_code = 500
    step = "upload"

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(GatewayError):
    """Bad input. Never retried."""
    status_code = 400
    step = "validation"


class ConfigError(GatewayError):
    """Missing or malformed configuration. Never retried."""
    status_code = 500
    step = "configuration"


# ── Upstream failures ────────────────────────────────────────────────────────

class FailureKind(str, Enum):
    CLIENT_ERROR = "client_error"      # 4xx other than 429, terminal
    RATE_LIMITED = "rate_limited"      # 429
    SERVER_ERROR = "server_error"      # 5xx
    TRANSPORT = "transport"            # network failure or timeout
    PARSE_ERROR = "parse_error"        # 2xx with a body we could not read


RETRYABLE_KINDS = {FailureKind.RATE_LIMITED, FailureKind.SERVER_ERROR, FailureKind.TRANSPORT}

NETWORK_ERROR_STATUS = 503
TIMEOUT_STATUS = 504
BAD_RESPONSE_STATUS = 502


class UpstreamFailure(BaseModel):
    kind: FailureKind
    status_code: int
    message: str
    details: str = ""

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


def classify_status(status_code: int) -> FailureKind:
    """Map a non-2xx upstream status to a failure kind."""
    if status_code == 429:
        return FailureKind.RATE_LIMITED
    if status_code >= 500:
        return FailureKind.SERVER_ERROR
    return FailureKind.CLIENT_ERROR


def extract_error_details(body: str) -> str:
    """
    Pull a readable detail out of an upstream error body.

    JSON bodies yield their `message` or `error` field, falling back to the
    whole document; anything else is returned as raw text.
    """
    try:
        data = json.loads(body)
    except ValueError:
        return body
    if isinstance(data, dict):
        detail = data.get("message") or data.get("error") or data.get("detail")
        if detail:
            return detail if isinstance(detail, str) else json.dumps(detail)
    return json.dumps(data)


# ── User-facing messages ─────────────────────────────────────────────────────

STEP_LABELS = {
    "character_generation": "Character",
    "video_generation": "Video",
}


def user_message_for(status_code: int, step: Optional[str] = None, kind: Optional[FailureKind] = None) -> str:
    """Translate an upstream status into the message shown to the browser."""
    if kind == FailureKind.PARSE_ERROR:
        return "Invalid response from server. Please try again."
    if status_code == 429:
        return "API rate limit exceeded. Please try again later."
    if status_code == 402:
        return "Insufficient credits. Please top up your account."
    if status_code in (401, 403):
        return "API authentication failed. Please check your API key."
    if status_code >= 500:
        return "PRISM API server error. The service may be temporarily unavailable."
    label = STEP_LABELS.get(step or "", "")
    return f"{label} generation failed".strip().capitalize()
