"""
excusemaster/errors.py
Errors raised at the transport boundary. Each carries a user-facing
`message`. The API key is never part of any message.

Parse failures are not raised: the parser degrades to a raw-text record.
"""

from typing import Optional


class ExcuseGeneratorError(Exception):
    """Base class. `message` is safe to show to the user."""

    message = 'Excuse generation failed.'

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidURLError(ExcuseGeneratorError):
    message = 'Invalid API URL configuration.'


class InvalidAPIKeyError(ExcuseGeneratorError):
    message = 'Invalid or missing API key. Check your key in Settings.'


class NetworkError(ExcuseGeneratorError):

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Network error: {detail}")


class HTTPStatusError(ExcuseGeneratorError):

    def __init__(self, status_code: int, body: str = ''):
        self.status_code = status_code
        self.body        = body
        super().__init__(self._describe(status_code, body))

    @staticmethod
    def _describe(status_code: int, body: str) -> str:
        if status_code == 401:
            return 'Authentication failed. Your API key is invalid or expired.'
        if status_code == 403:
            return 'Access denied. Your API key may lack the required permissions.'
        if status_code == 429:
            return 'Rate limited. Please wait a moment and try again.'
        if 500 <= status_code <= 599:
            return f"Server error ({status_code}). The API is temporarily unavailable."
        return f"HTTP {status_code}: {body}"


class NoContentError(ExcuseGeneratorError):
    message = 'The API returned an empty response. Try again.'


class GenerationInProgressError(ExcuseGeneratorError):
    message = 'A generation is already in progress. Wait for it to finish.'
