"""Application error taxonomy."""

class PlanoraError(Exception):
    """Base error rendered as a JSON error response."""
    status_code = 400
    default_message = 'Request failed'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class ValidationError(PlanoraError):
    """Bad or missing required input."""
    status_code = 400
    default_message = 'Invalid input'

class NotFoundError(PlanoraError):
    """Requested entity does not exist."""
    status_code = 404
    default_message = 'Not found'

class SessionClosedError(PlanoraError):
    """Check-in attempted after the session window ended."""
    status_code = 409
    default_message = 'Attendance session is not currently open'

class SessionNotOpenError(PlanoraError):
    """Check-in attempted before the session window started."""
    status_code = 409
    default_message = 'Attendance session has not opened yet'

class WrongSessionError(PlanoraError):
    """Scanned code belongs to a different session."""
    status_code = 400
    default_message = 'This QR code is for a different session.'

class StoreError(PlanoraError):
    """Underlying persistence failure."""
    status_code = 503
    default_message = 'Attendance could not be recorded. Please try again.'
