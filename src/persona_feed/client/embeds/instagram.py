"""Instagram embed."""

import re
from html import escape

from persona_feed.client.embeds.base import EmbedAdapter, EmbedHandle
from persona_feed.domain.enums import SourceType
from persona_feed.domain.errors import EmbedError

INSTAGRAM_EMBED_SCRIPT = "https://www.instagram.com/embed.js"

# Only posts and reels can be embedded
_PERMALINK = re.compile(r"instagram\.com/(p|reel)/[^/]+", re.IGNORECASE)


def is_embeddable(url: str | None) -> bool:
    return bool(url) and _PERMALINK.search(url) is not None


class InstagramEmbedAdapter(EmbedAdapter):
    """Renders Instagram's permalink blockquote and loads embed.js once per page."""

    source_type = SourceType.INSTAGRAM
    label = "Instagram"

    def render(self, handle: EmbedHandle) -> None:
        url = handle.source_url
        if not is_embeddable(url):
            raise EmbedError(url, "Invalid Instagram post URL")

        permalink = escape(url, quote=True)
        handle.container.append(
            f'<blockquote class="instagram-media" data-instgrm-permalink="{permalink}" '
            f'data-instgrm-version="14"><a href="{permalink}" target="_blank" '
            f'rel="noopener noreferrer">View this post on Instagram</a></blockquote>'
        )
        self.page.inject_script(INSTAGRAM_EMBED_SCRIPT)
