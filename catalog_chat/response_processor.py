"""Response processing utilities.

Turns raw assistant (or local-search fallback) text into the display markup
stored and sent to the client: the first embedded product image is pulled
out of the text and shown above it through the image proxy.
"""
from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)

DEFAULT_LOGO_URL = "/images/informatica_logo.png"
DEFAULT_LOGO_ALT = "Cia da Informática Logo"
DEFAULT_IMAGE_ALT = "Imagem do Produto"
DEFAULT_PROXY_PATH = "/proxy-image"

# Any character except a line terminator (\n, \r, U+2028, U+2029).
_LINE_CHAR = r"[^\n\r\u2028\u2029]"
# Line boundaries over the same terminators ("^" and "$" alone only know "\n").
_LINE_START = r"(?:^|(?<=[\r\u2028\u2029]))"
_LINE_END = r"(?=[\n\r\u2028\u2029]|\Z)"

# Either "📸 <url>" (local-search fallback) or markdown "![caption](<url>)".
IMAGE_PATTERN = re.compile(
    rf"\U0001F4F8\s*(https?://\S+)|!\[{_LINE_CHAR}*?\]\((https?://\S+)\)"
)
_MARKER_LINE = re.compile(r"\U0001F4F8\s*https?://\S+\n?")
_BRACKET_LINE = re.compile(rf"!\[{_LINE_CHAR}*?\]\(https?://\S+\)\n?")

# encodeURIComponent leaves these unescaped as well
_URI_COMPONENT_SAFE = "!~*'()"


@dataclass(frozen=True)
class ImageReference:
    url: str
    # Exact matched substring, used to strip the image line from the text.
    full_match: str
    notation: str  # "marker" or "bracket"


@dataclass(frozen=True)
class ProcessedResponse:
    content: str
    image_url: Optional[str]
    is_html: bool = True


def extract_image_url(text: str) -> Optional[ImageReference]:
    """Return the first embedded image in `text`, or None."""
    match = IMAGE_PATTERN.search(text or "")
    if not match:
        return None
    if match.group(1) is not None:
        return ImageReference(url=match.group(1), full_match=match.group(0), notation="marker")
    return ImageReference(url=match.group(2), full_match=match.group(0), notation="bracket")


def proxied_image_url(url: str, proxy_path: str = DEFAULT_PROXY_PATH) -> str:
    return f"{proxy_path}?url={quote(url, safe=_URI_COMPONENT_SAFE)}"


def strip_image_line(text: str, image: ImageReference) -> str:
    """Remove the line holding `image` from `text`.

    Tries an exact, line-anchored removal first; if that leaves the text
    unchanged, removes any marker or markdown image occurrence instead.
    """
    line_pattern = re.compile(
        rf"{_LINE_START}{_LINE_CHAR}*?{re.escape(image.full_match)}{_LINE_CHAR}*{_LINE_END}\n?",
        re.MULTILINE,
    )
    cleaned = line_pattern.sub("", text).strip()

    if cleaned == text:
        logger.warning("Precise line removal failed, attempting broader regex removal for image URL.")
        cleaned = _BRACKET_LINE.sub("", _MARKER_LINE.sub("", text)).strip()

    return cleaned


def format_final_response(
    text: str,
    image: Optional[ImageReference],
    *,
    logo_url: str = DEFAULT_LOGO_URL,
    logo_alt: str = DEFAULT_LOGO_ALT,
    image_alt: str = DEFAULT_IMAGE_ALT,
    proxy_path: str = DEFAULT_PROXY_PATH,
) -> str:
    """Build the display markup: optional logo + proxied image block, then the text."""
    image_html = ""
    cleaned_text = text

    if image is not None and image.url:
        cleaned_text = strip_image_line(text, image)
        src = html.escape(proxied_image_url(image.url, proxy_path), quote=True)
        image_html = (
            '<div style="text-align: center; margin-bottom: 10px;">'
            f'<img src="{html.escape(logo_url, quote=True)}" alt="{html.escape(logo_alt, quote=True)}" '
            'style="max-height: 50px; display: block; margin: 0 auto 10px auto;">'
            f'<img src="{src}" alt="{html.escape(image_alt, quote=True)}" '
            'style="max-width: 100%; max-height: 300px; display: block; margin: 0 auto;">'
            "</div>"
        )

    text_html = '<div class="message-text-content">{}</div>'.format(cleaned_text.replace("\n", "<br>"))
    return image_html + text_html


class ResponseProcessor:
    """Extract the embedded image from a raw reply and render the final markup.

    The output is always treated as HTML so clients only need one rendering path.
    """

    def __init__(
        self,
        logo_url: str = DEFAULT_LOGO_URL,
        logo_alt: str = DEFAULT_LOGO_ALT,
        image_alt: str = DEFAULT_IMAGE_ALT,
        proxy_path: str = DEFAULT_PROXY_PATH,
    ):
        self.logo_url = logo_url
        self.logo_alt = logo_alt
        self.image_alt = image_alt
        self.proxy_path = proxy_path

    def process(self, raw_response: str) -> ProcessedResponse:
        raw_response = raw_response or ""
        image = extract_image_url(raw_response)
        logger.debug("Processing response: image=%s", image.url if image else None)
        content = format_final_response(
            raw_response,
            image,
            logo_url=self.logo_url,
            logo_alt=self.logo_alt,
            image_alt=self.image_alt,
            proxy_path=self.proxy_path,
        )
        return ProcessedResponse(content=content, image_url=image.url if image else None, is_html=True)
