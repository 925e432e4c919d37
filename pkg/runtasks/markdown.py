"""Markdown helpers for run task PR comments.

Keep surface area small: shields.io badges, fenced code blocks, <details> blocks.
"""

from __future__ import annotations

from urllib.parse import quote

SHIELDS_URL = "https://img.shields.io/static/v1"


def badge_image(label: str, message: str, *, color: str | None = None) -> str:
    """Shields.io static badge URL."""
    url = f"{SHIELDS_URL}?label={quote(label)}&message={quote(message)}"
    if color:
        url += f"&color={quote(color)}"
    return url + "&style=flat"


def badge_link(alt: str, label: str, message: str, href: str, *, color: str | None = None) -> str:
    """Badge image wrapped in a link."""
    return f"[![{alt}]({badge_image(label, message, color=color)})]({href})"


def code_block(text: str, *, lang: str = "") -> str:
    """Code block."""
    return f"```{lang}\n{text}\n```"


def details_block(body: str, *, summary: str, lang: str = "diff") -> str:
    """Collapsible section whose body is rendered as a fenced code block."""
    return f"<details>\n<summary>{summary}</summary>\n\n{code_block(body, lang=lang)}\n</details>"
