"""Check-in state machine shared by the passcode and scan endpoints."""
import logging
from enum import Enum
from typing import Callable, Optional

from planora.services.attendance_service import METHOD_PASSCODE, METHOD_SCAN, AttendanceVerifier
from planora.services.qr_service import QRService
from planora.utils.errors import ValidationError, WrongSessionError

logger = logging.getLogger(__name__)

class CheckInState(Enum):
    IDLE = 'idle'
    SUBMITTING = 'submitting'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'

class CheckInFlow:
    """
    Drives one session's check-in: Idle -> Submitting -> Succeeded | Failed.

    Succeeded is terminal and fires on_success exactly once. Failed is not:
    submitting again from Failed goes straight back through Submitting, with
    no limit on retries.
    """

    def __init__(self, session, verifier: AttendanceVerifier,
                 on_success: Callable[[object], None] = None):
        self.session = session
        self.verifier = verifier
        self.on_success = on_success
        self.state = CheckInState.IDLE
        self.passcode = ''
        self.last_error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.state == CheckInState.SUCCEEDED

    def submit(self, passcode: Optional[str] = None, method: str = METHOD_PASSCODE) -> bool:
        """Submit the current attempt; errors propagate and leave the flow Failed."""
        if self.state == CheckInState.SUCCEEDED:
            return True
        if self.state == CheckInState.SUBMITTING:
            raise ValidationError("A check-in is already in progress")

        if passcode is not None:
            self.passcode = passcode

        self.state = CheckInState.SUBMITTING
        self.last_error = None
        try:
            success = self.verifier.submit_attendance(
                self.session, self.passcode or None, method=method
            )
        except Exception as e:
            self._fail(e)
            raise

        if not success:
            self._fail(None)
            return False

        self.state = CheckInState.SUCCEEDED
        if self.on_success is not None:
            self.on_success(self.session)
        return True

    def handle_scan(self, raw_text) -> bool:
        """
        Apply a scanned code to this flow.

        Returns False when the scan was accepted but more input is needed
        (the session requires a passcode the code did not carry).
        """
        payload = QRService.parse_qr_code(raw_text)
        if payload is None:
            raise ValidationError("Invalid QR code format.")
        if not payload.matches(self.session):
            raise WrongSessionError()

        self.passcode = payload.passcode or ''
        if not self.session.requires_passcode or self.passcode:
            return self.submit(method=METHOD_SCAN)
        return False

    def _fail(self, error: Optional[Exception]) -> None:
        self.last_error = error
        self.state = CheckInState.FAILED
        logger.debug("Check-in for session %s failed: %s", self.session.id, error)

    def reset(self) -> None:
        """Return a failed flow to Idle."""
        if self.state == CheckInState.FAILED:
            self.state = CheckInState.IDLE
