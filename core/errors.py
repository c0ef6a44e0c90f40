"""Error taxonomy for the chat pipeline.

Only infrastructure failures (auth, quota, transport) and caller-contract
violations are raised. Content-safety outcomes are normal results and never
appear here.

Every error carries a short, generic ``user_message`` that is safe to show
to the end user; the exception text itself is for logs only.
"""


class MomCareError(Exception):
    """Base class for all chat pipeline errors."""
    user_message = "Something went wrong. Please try again later."


class ConfigurationError(MomCareError):
    """The provider client was never initialized (e.g. missing API key)."""
    user_message = "AI service is not available. Please check configuration."


# === Infrastructure failures ===

class ProviderError(MomCareError):
    """A call to the generation provider failed."""


class AuthError(ProviderError):
    """The provider rejected the credential. Fatal to the session."""
    user_message = "Authentication error. Please check configuration or contact support."


class QuotaError(ProviderError):
    """Rate or usage limit reached. Recoverable by retrying later."""
    user_message = "API usage limit reached. Please try again later."


class TransportError(ProviderError):
    """Network failure. Recoverable by retrying."""
    user_message = "Network error. Please check your connection and try again."


class UnknownError(ProviderError):
    """Any other provider failure."""
    user_message = "Failed to process your message. Please try again."


# === Caller-contract violations ===

class InvalidSessionState(MomCareError):
    """The session is not in a state that allows this operation."""
    user_message = "Chat session is not active. Please start a new chat."


class EmptyMessageError(MomCareError):
    """A message was sent with no text and no attachments."""
    user_message = "Cannot send an empty message."


class UnsupportedContentError(MomCareError):
    """A message part is neither text nor an inline attachment."""
    user_message = "Only text and images can be sent."


class UnsupportedAttachmentError(MomCareError):
    """The attachment type is not accepted, or the file is too large."""
    user_message = "That file type isn't supported. Please attach a PNG, JPEG, WEBP, HEIC, HEIF or GIF image."
