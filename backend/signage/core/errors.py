"""Error taxonomy shared by the service layer and the HTTP boundary."""


class SignAgeError(Exception):
    """Base error. ``status_code`` is the HTTP status the boundary reports."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserNotFoundError(SignAgeError):
    """No user record exists for the identity."""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__("User not found")
        self.user_id = user_id


class InvalidInputError(SignAgeError):
    """A required field is missing or has the wrong type or range."""

    status_code = 400


class StorageError(SignAgeError):
    """The underlying store failed to read or write."""

    status_code = 500


class AuthenticationError(SignAgeError):
    """Missing or invalid bearer token."""

    status_code = 401
