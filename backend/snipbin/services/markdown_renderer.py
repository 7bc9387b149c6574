"""
SnipBin Backend — Markdown Rendering
=====================================

What:  Converts document content to an HTML fragment for the reader view.
How:   python-markdown with the "extra" bundle (tables, fenced code,
       footnotes), sane list handling and heading anchors. Links open in a
       new tab.

Untrusted input:
    Document content comes from anyone who can post. The fragment is
    embedded unescaped in reader.html, so:
    - raw HTML blocks and inline HTML are not passed through; they are
      rendered as escaped text (`<script>` → `&lt;script&gt;`)
    - link and image URLs with a script-capable scheme (javascript:,
      vbscript:, data:) lose their href / src attribute
"""

import xml.etree.ElementTree as etree

from markdown import Markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from snipbin.exceptions import RenderFailedError

UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")


def _is_unsafe_url(url: str) -> bool:
    # Browsers ignore whitespace and control characters inside the scheme
    compact = "".join(ch for ch in url if ch > " ").lower()
    return compact.startswith(UNSAFE_SCHEMES)


class _TargetBlankProcessor(Treeprocessor):
    def run(self, root: etree.Element) -> None:
        for link in root.iter("a"):
            href = link.get("href", "")
            if href and _is_unsafe_url(href):
                del link.attrib["href"]
                continue
            if href and not href.startswith("#"):
                link.set("target", "_blank")
                link.set("rel", "noopener noreferrer")
        for image in root.iter("img"):
            if _is_unsafe_url(image.get("src", "")):
                del image.attrib["src"]


class TargetBlankExtension(Extension):
    """Adds target="_blank" to every non-anchor link and drops script URLs."""

    def extendMarkdown(self, md: Markdown) -> None:
        md.treeprocessors.register(_TargetBlankProcessor(md), "target_blank", 5)


class EscapeHtmlExtension(Extension):
    """
    Treats raw HTML in the source as text.

    Must be loaded after "extra": md_in_html re-registers `html_block`.
    """

    def extendMarkdown(self, md: Markdown) -> None:
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")


def render_markdown(text: str) -> str:
    """
    Render Markdown `text` to an HTML fragment.

    A new converter is built per call; Markdown instances keep per-document state.

    Raises:
        RenderFailedError: the converter raised
    """
    converter = Markdown(
        extensions=[
            "extra",
            "sane_lists",
            "toc",
            TargetBlankExtension(),
            EscapeHtmlExtension(),
        ],
        output_format="html",
    )
    try:
        return converter.convert(text)
    except Exception as e:
        raise RenderFailedError(
            message="Could not render document as Markdown",
            context={"error_type": type(e).__name__},
        ) from e
