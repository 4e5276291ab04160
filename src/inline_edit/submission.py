"""
Client for the external apply-edit service.

One POST per save, no retry. The service rewrites the source file and
answers with ``{success, newFileContent, beforeCode, afterCode, error}``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import requests

from src.errors import SubmissionError
from src.inline_edit.constants import APPLY_EDIT_API_PATH

logger = logging.getLogger(__name__)

# Characters the markup re-parser would otherwise read as tags or expressions
_ESCAPES = (
    ('<', '&lt;'),
    ('>', '&gt;'),
    ('{', '&#123;'),
    ('}', '&#125;'),
)


def escape_edit_text(text: str) -> str:
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def unescape_edit_text(text: str) -> str:
    """Inverse of escape_edit_text, as applied by the downstream re-parser."""
    for char, entity in _ESCAPES:
        text = text.replace(entity, char)
    return text


@dataclass
class ApplyEditResult:
    success: bool
    new_file_content: Optional[str] = None
    before_code: Optional[str] = None
    after_code: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'ApplyEditResult':
        return cls(
            success=bool(data.get('success')),
            new_file_content=data.get('newFileContent'),
            before_code=data.get('beforeCode'),
            after_code=data.get('afterCode'),
            error=data.get('error'),
        )


class EditSubmissionClient:
    """Submits a single edit to the apply-edit endpoint."""

    def __init__(self, base_url: str = '', api_path: str = APPLY_EDIT_API_PATH,
                 timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.url = base_url.rstrip('/') + api_path
        if not urlsplit(self.url).scheme:
            logger.warning(
                f"[inline-edit] Apply-edit URL {self.url!r} is not absolute; "
                f"set INLINE_EDIT_API_URL or serve the page over HTTP"
            )
        self.timeout = timeout
        self._session = session or requests.Session()

    @staticmethod
    def build_payload(edit_id: str, new_text: str) -> Dict[str, str]:
        return {'editId': edit_id, 'newFullText': escape_edit_text(new_text)}

    def submit(self, edit_id: str, new_text: str) -> Optional[ApplyEditResult]:
        """
        Send the edit. Returns the result on success, ``None`` otherwise.

        Failures (transport errors, unreadable responses, ``success: false``)
        are logged, never raised.
        """
        payload = self.build_payload(edit_id, new_text)
        try:
            result = self._post(payload)
        except SubmissionError as e:
            logger.error(f"[inline-edit] Error during request for {e.edit_id}: {e}")
            return None

        if not result.success:
            logger.error(f"[inline-edit] Error saving changes: {result.error}")
            return None
        return result

    def _post(self, payload: Dict[str, str]) -> ApplyEditResult:
        edit_id = payload['editId']
        try:
            response = self._session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise SubmissionError(str(e), edit_id) from e

        try:
            data = response.json()
        except ValueError as e:
            raise SubmissionError(
                f"Invalid JSON response (HTTP {response.status_code})",
                edit_id,
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise SubmissionError(
                f"Unexpected response body (HTTP {response.status_code})",
                edit_id,
                status_code=response.status_code,
            )
        return ApplyEditResult.from_json(data)
