"""Application error taxonomy. Each error carries a user-visible message and an HTTP status."""


class AppError(Exception):
    """Base class for errors surfaced to API clients as {"error": message}."""

    status_code: int = 500
    default_message: str = "Une erreur interne est survenue"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(AppError):
    """Malformed or inconsistent input not caught by schema validation."""

    status_code = 400
    default_message = "Requête invalide"


class InvalidCurrentPasswordError(BadRequestError):
    default_message = "Mot de passe actuel incorrect"


class PasswordUnchangedError(BadRequestError):
    default_message = "Le nouveau mot de passe doit être différent de l'actuel"


class UnauthenticatedError(AppError):
    """No credential was presented."""

    status_code = 401
    default_message = "No token provided"


class InvalidCredentialsError(UnauthenticatedError):
    """Same message for unknown email and wrong password."""

    default_message = "Identifiants invalides"


class InvalidTokenError(AppError):
    """Token signature, expiry or version check failed."""

    status_code = 403
    default_message = "Invalid token"


class ForbiddenError(AppError):
    """Caller does not own the targeted resource (or it does not exist)."""

    status_code = 403
    default_message = "Forbidden"


class InsufficientPermissionsError(ForbiddenError):
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Ressource introuvable"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflit"


class EmailInUseError(ConflictError):
    default_message = "Email déjà utilisé"


class TooManyAttemptsError(AppError):
    """Raised by the login rate limiter once the attempt budget is spent."""

    status_code = 429
    default_message = "Too many login attempts, please try again later."

    def __init__(self, retry_after_seconds: int, message: str | None = None) -> None:
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message)

    @property
    def retry_after_hint(self) -> str:
        minutes = max(1, round(self.retry_after_seconds / 60))
        return f"{minutes} minutes"


class InternalError(AppError):
    status_code = 500
