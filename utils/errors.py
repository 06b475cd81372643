"""Domain exceptions raised by services and translated to HTTP at the route seam."""

from typing import Optional

# Short messages shown to the user per provider error code.
IDENTITY_MESSAGES = {
    "auth/email-already-in-use": "User already exists. Sign in?",
    "auth/invalid-credential": "Password or Email Incorrect",
    "auth/user-not-found": "Password or Email Incorrect",
    "auth/wrong-password": "Password or Email Incorrect",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/weak-password": "Password must be at least 6 characters.",
    "auth/popup-closed-by-user": "Sign in cancelled",
    "auth/unauthorized-domain": "Domain not authorized in Firebase Console.",
    "auth/cancelled-popup-request": "Popup closed or blocked.",
}

PASSWORD_RESET_MESSAGES = {
    "auth/user-not-found": "No user found with this email.",
    "auth/invalid-email": "Please enter a valid email address.",
}


class IdentityError(Exception):
    """Failure reported by the identity provider."""

    def __init__(self, code: str, message: Optional[str] = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(f"{code}: {self.message}")

    def friendly_message(self) -> str:
        """Return the user-facing text for this error, falling back to the raw message."""
        return IDENTITY_MESSAGES.get(self.code) or self.message or "An error occurred. Please try again."

    def password_reset_message(self) -> str:
        return PASSWORD_RESET_MESSAGES.get(self.code, "Failed to send reset email. Try again.")


class ConfirmationRequired(Exception):
    """A destructive action was attempted without explicit confirmation."""


class FileNotFoundInCatalog(Exception):
    """No catalog record matches the requested id."""


class StagingNotFound(Exception):
    """Upload confirmation was requested with nothing staged."""


class ProfileStoreError(Exception):
    """The profile collection could not be read or written."""
