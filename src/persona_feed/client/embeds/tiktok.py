"""TikTok embed."""

import re
from html import escape

from persona_feed.client.embeds.base import EmbedAdapter, EmbedHandle
from persona_feed.domain.enums import SourceType
from persona_feed.domain.errors import EmbedError

TIKTOK_EMBED_SCRIPT = "https://www.tiktok.com/embed.js"

# Bare numeric ids in URLs without a /video/ segment
_LONG_ID = re.compile(r"(\d{15,})")


def extract_video_id(url: str) -> str | None:
    """Video id from ``.../video/<id>``, else the first 15+ digit run."""
    parts = url.split("/")
    if "video" in parts:
        index = parts.index("video")
        if index < len(parts) - 1:
            video_id = parts[index + 1].split("?")[0]
            if video_id:
                return video_id
    match = _LONG_ID.search(url)
    return match.group(1) if match else None


def extract_username(url: str) -> str | None:
    """The ``@handle`` path segment, if any."""
    for part in url.split("/"):
        if part.startswith("@"):
            return part
    return None


class TikTokEmbedAdapter(EmbedAdapter):
    """Renders TikTok's blockquote markup and loads embed.js once per page."""

    source_type = SourceType.TIKTOK
    label = "TikTok"

    def render(self, handle: EmbedHandle) -> None:
        url = handle.source_url
        if not url or "tiktok.com" not in url.lower():
            raise EmbedError(url, "Invalid TikTok URL format")

        video_id = extract_video_id(url)
        if not video_id:
            raise EmbedError(url, "Could not extract TikTok video ID")

        username = extract_username(url)
        section = ""
        if username:
            section = (
                f'<a target="_blank" title="{escape(username, quote=True)}" '
                f'href="https://www.tiktok.com/{escape(username, quote=True)}?refer=embed">'
                f"{escape(username)}</a>"
            )

        handle.container.append(
            f'<blockquote class="tiktok-embed" cite="{escape(url, quote=True)}" '
            f'data-video-id="{escape(video_id, quote=True)}">'
            f"<section>{section}</section></blockquote>"
        )
        self.page.inject_script(TIKTOK_EMBED_SCRIPT)
