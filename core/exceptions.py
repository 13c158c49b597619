class GymError(Exception):
    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFound(GymError):
    code = "not_found"


class InvalidState(GymError):
    code = "invalid_state"
