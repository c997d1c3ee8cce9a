"""Native video embed."""

from html import escape

from persona_feed.client.embeds.base import EmbedAdapter, EmbedHandle
from persona_feed.domain.enums import SourceType
from persona_feed.domain.errors import EmbedError


class NativeVideoAdapter(EmbedAdapter):
    """Plays directly hosted video files in an inline, looping video element."""

    source_type = SourceType.NATIVE
    label = "original source"

    def render(self, handle: EmbedHandle) -> None:
        if not handle.source_url:
            raise EmbedError(handle.source_url, "Missing video URL")

        attributes = ["playsinline", "loop", "muted"]
        if handle.autoplay:
            attributes.append("autoplay")
        handle.container.append(
            f'<video src="{escape(handle.source_url, quote=True)}" {" ".join(attributes)}></video>'
        )
