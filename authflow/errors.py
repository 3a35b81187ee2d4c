"""
Error kinds raised by the auth flow.

Every error carries the HTTP status and the machine-readable code that the
exception handler in ``main.py`` renders as ``{"error": code, "message": message}``.
"""


class AuthServiceError(Exception):
    status_code = 500
    code = "SERVER_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


## Kinds
class ValidationError(AuthServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class NotFoundError(AuthServiceError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class ConflictError(AuthServiceError):
    status_code = 400
    code = "ALREADY_EXISTS"
    message = "Resource already exists"


class AuthenticationError(AuthServiceError):
    status_code = 401
    code = "UNAUTHENTICATED"
    message = "Could not validate credentials"


class AuthorizationError(AuthServiceError):
    status_code = 403
    code = "UNAUTHORIZED"
    message = "You are not allowed to access this resource"


class DependencyError(AuthServiceError):
    status_code = 500
    code = "DEPENDENCY_FAILURE"
    message = "An upstream service failed"


class InternalError(AuthServiceError):
    pass


## Concrete errors
class InvalidRequest(ValidationError):
    code = "INVALID_REQUEST"
    message = "User ID is required"


class InvalidId(ValidationError):
    code = "INVALID_ID"
    message = "The provided user ID is not valid"


class NoPendingSignup(ValidationError):
    code = "NO_PENDING_SIGNUP"
    message = "No pending signup found"


class UserAlreadyExists(ConflictError):
    message = "User already exists"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    message = "No user found with this email address"


class InvalidOTP(AuthenticationError):
    status_code = 400
    code = "INVALID_OTP"
    message = "Invalid OTP"


class InvalidCredentials(AuthenticationError):
    status_code = 400
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class InvalidOrExpiredToken(AuthenticationError):
    status_code = 400
    code = "INVALID_OR_EXPIRED_TOKEN"
    message = "Invalid or expired reset token"


class InvalidRefreshToken(AuthenticationError):
    code = "INVALID_REFRESH_TOKEN"
    message = "Invalid refresh token"


class InvalidAccessToken(AuthenticationError):
    code = "INVALID_ACCESS_TOKEN"


class ProfileAccessDenied(AuthorizationError):
    message = "You can only access your own profile"


class NotificationFailure(DependencyError):
    code = "NOTIFICATION_FAILURE"
    message = "Failed to send email"
