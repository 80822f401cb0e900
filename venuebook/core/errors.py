class DomainError(Exception):
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class NotFound(DomainError):
    status_code = 404
    default_message = "Not found"

class Conflict(DomainError):
    """Slot no longer available: lost a race, overlapped something busy, or used a bad hold."""
    status_code = 409
    default_message = "Conflict"

class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid request"
