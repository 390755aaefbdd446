"""QR code payload parsing and generation service."""
import base64
import io
import json
import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import parse_qsl, urlsplit

import qrcode

_INTEGER = re.compile(r'^[+-]?\d{1,19}$')
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

SESSION_ID_PARAMS = ('sessid', 'sessionid', 'id')
PASSCODE_PARAMS = ('code', 'passcode', 'password')

@dataclass(frozen=True)
class ScannedCodePayload:
    """Session reference decoded from a scanned code."""
    session_id: int
    passcode: Optional[str] = None

    def matches(self, session) -> bool:
        """Check whether the payload targets the given session."""
        return session is not None and session.id == self.session_id

def _parse_int(value: Any) -> Optional[int]:
    """Parse a 64-bit integer from a string, or None."""
    if not isinstance(value, str) or not _INTEGER.match(value):
        return None
    number = int(value)
    if number < _INT64_MIN or number > _INT64_MAX:
        return None
    return number

def _from_json(raw: str) -> Optional[ScannedCodePayload]:
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        return None

    if not isinstance(data, dict):
        return None

    session_id = data.get('sessionId')
    # bool is an int subclass but never a valid id
    if isinstance(session_id, bool) or not isinstance(session_id, int):
        return None
    if session_id < _INT64_MIN or session_id > _INT64_MAX:
        return None

    passcode = data.get('passcode')
    return ScannedCodePayload(
        session_id=session_id,
        passcode=passcode if isinstance(passcode, str) else None
    )

def _from_url(raw: str) -> Optional[ScannedCodePayload]:
    try:
        query = urlsplit(raw).query
    except ValueError:
        return None

    if not query:
        return None

    session_id = None
    passcode = None
    for name, value in parse_qsl(query, keep_blank_values=True):
        name = name.lower()
        if name in SESSION_ID_PARAMS:
            session_id = _parse_int(value)
        elif name in PASSCODE_PARAMS:
            passcode = value

    if session_id is None:
        return None
    return ScannedCodePayload(session_id=session_id, passcode=passcode)

class QRService:
    """Service for QR code operations."""

    @staticmethod
    def parse_qr_code(raw_text: Any) -> Optional[ScannedCodePayload]:
        """
        Decode a scanned attendance code.

        Accepts, in order: a JSON object with ``sessionId`` and an optional
        ``passcode``; a URL whose query carries ``sessid``/``sessionid``/``id``
        and ``code``/``passcode``/``password``; a bare integer session id.
        Returns None for anything else and never raises.
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            return None

        return (
            _from_json(raw_text)
            or _from_url(raw_text)
            or QRService._from_bare_id(raw_text)
        )

    @staticmethod
    def _from_bare_id(raw_text: str) -> Optional[ScannedCodePayload]:
        session_id = _parse_int(raw_text.strip())
        if session_id is None:
            return None
        return ScannedCodePayload(session_id=session_id)

    @staticmethod
    def encode_payload(session_id: int, passcode: Optional[str] = None) -> str:
        """Encode the canonical JSON payload printed in session QR codes."""
        data = {'sessionId': session_id}
        if passcode:
            data['passcode'] = passcode
        return json.dumps(data, separators=(',', ':'))

    @staticmethod
    def generate_qr_image(payload: str, box_size: int = 10, border: int = 4) -> str:
        """Render a payload as a base64 PNG data URI."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=box_size,
            border=border,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

parse_qr_code = QRService.parse_qr_code
