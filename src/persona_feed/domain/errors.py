"""Error taxonomy shared by the repositories, the API and the feed client."""


class PersonaFeedError(Exception):
    """Base class for all application errors."""

    pass


class ValidationError(PersonaFeedError):
    """Malformed or missing input. Surfaced to the caller verbatim."""

    pass


class InvalidEngagementType(ValidationError):
    """Raised when an engagement type is not view, like, comment or share."""

    def __init__(self, engagement_type: object) -> None:
        self.engagement_type = engagement_type
        super().__init__(f"Invalid engagement type: {engagement_type!r}")


class NotFoundError(PersonaFeedError):
    """A referenced entity does not exist."""

    pass


class ConflictError(PersonaFeedError):
    """The request conflicts with the current state of an entity."""

    pass


class ContentAlreadyPublishedError(ConflictError):
    """Raised when publishing content that is already published."""

    def __init__(self, content_id: int) -> None:
        self.content_id = content_id
        super().__init__("Content is already published")


class StorageError(PersonaFeedError):
    """The underlying persistence layer failed."""

    pass


class EmbedError(PersonaFeedError):
    """A third-party embed failed to initialize. Scoped to one feed item."""

    def __init__(self, source_url: str, reason: str) -> None:
        self.source_url = source_url
        self.reason = reason
        super().__init__(f"{reason} ({source_url})")
