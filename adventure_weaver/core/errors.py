class AdventureError(Exception):
    """Base class for everything the game reports to the player."""


class CredentialsMissing(AdventureError):
    """No API key was configured when the process started."""


class GenerationError(AdventureError):
    """A text or image generation request could not be completed."""


class EmptyResponse(GenerationError):
    """The provider answered, but the payload held nothing usable."""
