"""Domain errors. Each one knows the HTTP status and JSON key it is rendered with."""


class AppError(Exception):
    """Base class for errors that are translated into a JSON error response."""

    status_code = 400
    response_key = "message"
    default_message = "Request failed"
    # internal errors keep their detail in the log, never in the response
    public_message: str | None = None

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def client_message(self) -> str:
        return self.public_message or self.message


# ---------- auth ----------

class ValidationError(AppError):
    """Malformed or missing input the user can correct."""

    default_message = "Invalid input"


class DuplicateUsernameError(AppError):
    default_message = "Username already taken"


class InvalidCredentialsError(AppError):
    """Same error for unknown user and wrong password."""

    status_code = 401
    default_message = "Invalid username or password"


class NotAuthenticatedError(AppError):
    status_code = 401
    default_message = "You must be logged in"


class TokenInvalidError(AppError):
    status_code = 401
    default_message = "Invalid token"


class TokenExpiredError(AppError):
    status_code = 401
    default_message = "Token expired"


class HashingError(AppError):
    status_code = 500
    default_message = "Password hashing failed"
    public_message = "Something went wrong"


class MalformedHashError(AppError):
    status_code = 500
    default_message = "Stored password hash is malformed"
    public_message = "Something went wrong"


# ---------- files ----------

class FileError(AppError):
    response_key = "error"


class UploadValidationError(FileError, ValidationError):
    default_message = "No file was selected"


class UnsupportedFileTypeError(FileError):
    default_message = "File type not allowed"


class FileTooLargeError(FileError):
    default_message = "File too large. Maximum size is 10MB."


class InvalidCategoryError(FileError):
    default_message = "No category was selected"


class RelocationError(FileError):
    status_code = 500
    default_message = "Could not move file into place"
    public_message = "Upload failed"


class StorageReadError(FileError):
    status_code = 500
    default_message = "Unable to read folder"
