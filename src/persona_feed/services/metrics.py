"""Engagement accumulation: every engagement is one additive counter bump."""

from sqlalchemy.orm import Session

from persona_feed.domain.enums import EngagementType
from persona_feed.domain.errors import InvalidEngagementType, NotFoundError
from persona_feed.logging import get_logger
from persona_feed.services.content import ContentRepository

logger = get_logger(__name__)


class MetricsAccumulator:
    """Records viewer engagement against content counters.

    Counters only ever grow; an engagement never overwrites a value.
    """

    def __init__(self, session: Session) -> None:
        self.content = ContentRepository(session)

    @staticmethod
    def parse(engagement_type: EngagementType | str) -> EngagementType:
        """Validate an engagement type.

        Raises:
            InvalidEngagementType: For anything but view, like, comment or share.
        """
        try:
            return EngagementType(engagement_type)
        except ValueError:
            raise InvalidEngagementType(engagement_type)

    def record(self, content_id: int, engagement_type: EngagementType | str) -> None:
        """Increment the counter for ``engagement_type`` on ``content_id`` by one.

        Raises:
            InvalidEngagementType: If the type is not recognized.
            NotFoundError: If the content does not exist.
        """
        engagement = self.parse(engagement_type)
        touched = self.content.update_metrics(content_id, {engagement.counter: 1})
        if touched == 0:
            raise NotFoundError("Content not found")
        logger.info("engagement_recorded", content_id=content_id, type=engagement.value)
