"""
excusemaster/llm/xai_adapter.py
x.ai backend adapter. Talks to any OpenAI-compatible
POST /v1/chat/completions endpoint with a bearer key.

TIMEOUTS:
  connectivity test: 15s  (tiny payload, max_tokens=5)
  generation:        30s

No retries. Every failure is mapped to an ExcuseGeneratorError with a
user-facing message and surfaced to the caller.
"""

import errno
import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Tuple

from excusemaster.errors import (
    HTTPStatusError,
    InvalidAPIKeyError,
    InvalidURLError,
    NetworkError,
    NoContentError,
)
from excusemaster.llm.base import LLMAdapter
from excusemaster.llm.prompt import build_connectivity_payload
from excusemaster.models.record import DEFAULT_MODEL

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://api.x.ai/v1'

MSG_NO_INTERNET = 'No internet connection.'
MSG_TIMED_OUT   = 'Request timed out. Try again.'
MSG_UNREACHABLE = 'Cannot reach the API server.'

_NO_ROUTE_ERRNOS = {errno.ENETUNREACH, errno.ENETDOWN}


class XAIAdapter(LLMAdapter):

    def __init__(
        self,
        api_key:              str,
        base_url:             str   = DEFAULT_BASE_URL,
        model:                str   = DEFAULT_MODEL,
        connect_timeout_sec:  float = 15,
        generate_timeout_sec: float = 30,
    ):
        self.api_key              = api_key or ''
        self.base_url             = (base_url or '').rstrip('/')
        self.model                = model
        self.connect_timeout_sec  = connect_timeout_sec
        self.generate_timeout_sec = generate_timeout_sec

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    # ── CONNECTIVITY TEST ────────────────────────────────────
    def test_connection(self) -> bool:
        """Tiny 'Say OK' request. True on any 2xx, raises otherwise."""
        self._post(build_connectivity_payload(self.model), self.connect_timeout_sec)
        logger.info(f"Connection test passed for model '{self.model}'")
        return True

    # ── COMPLETION ───────────────────────────────────────────
    def complete(self, payload: Dict[str, Any]) -> str:
        status, body = self._post(payload, self.generate_timeout_sec)
        content = self._extract_content(body)
        logger.info(
            f"Completion received: status={status} model={payload.get('model')} "
            f"chars={len(content)}"
        )
        return content

    # ── TRANSPORT ────────────────────────────────────────────
    def _check_config(self) -> None:
        if not self.api_key.strip():
            raise InvalidAPIKeyError()
        parsed = urllib.parse.urlparse(self.endpoint)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise InvalidURLError()

    def _post(self, payload: Dict[str, Any], timeout: float) -> Tuple[int, bytes]:
        self._check_config()

        req = urllib.request.Request(
            self.endpoint,
            data    = json.dumps(payload).encode('utf-8'),
            headers = {
                'Authorization': f"Bearer {self.api_key}",
                'Content-Type':  'application/json',
            },
            method  = 'POST',
        )

        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                return resp.status, resp.read()

        except urllib.error.HTTPError as e:
            body = e.read().decode('utf-8', errors='replace') if e.fp else ''
            logger.error(f"API returned HTTP {e.code}")
            raise HTTPStatusError(e.code, body or 'Unknown error') from e

        except urllib.error.URLError as e:
            detail = _describe_network_failure(e.reason)
            logger.error(f"API request failed: {detail}")
            raise NetworkError(detail) from e

        except (socket.timeout, TimeoutError) as e:
            logger.error("API request timed out")
            raise NetworkError(MSG_TIMED_OUT) from e

        except OSError as e:
            detail = _describe_network_failure(e)
            logger.error(f"API request failed: {detail}")
            raise NetworkError(detail) from e

    # ── RESPONSE ENVELOPE ────────────────────────────────────
    @staticmethod
    def _extract_content(body: bytes) -> str:
        """choices[0].message.content, or NoContentError."""
        try:
            data    = json.loads(body.decode('utf-8'))
            content = data['choices'][0]['message']['content']
        except (json.JSONDecodeError, UnicodeDecodeError, KeyError, IndexError, TypeError) as e:
            logger.warning(f"Response envelope had no message content: {type(e).__name__}")
            raise NoContentError() from e
        if not isinstance(content, str):
            raise NoContentError()
        return content


def _describe_network_failure(reason: Any) -> str:
    """Map a socket-level failure to a user-facing message."""
    if isinstance(reason, (socket.timeout, TimeoutError)):
        return MSG_TIMED_OUT
    if isinstance(reason, socket.gaierror):
        return MSG_UNREACHABLE
    if isinstance(reason, ConnectionRefusedError):
        return MSG_UNREACHABLE
    if isinstance(reason, OSError) and reason.errno in _NO_ROUTE_ERRNOS:
        return MSG_NO_INTERNET
    if isinstance(reason, OSError) and reason.errno == errno.EHOSTUNREACH:
        return MSG_UNREACHABLE
    return str(reason)
