"""Question prompts are stored as Markdown and sent to learners as HTML."""

from __future__ import annotations

from markdown_it import MarkdownIt

# Raw HTML is off: prompt text is rendered, never passed through.
_markdown = MarkdownIt("commonmark", {"html": False}).enable("table")


def render_prompt(prompt: str) -> str:
    """Render a question prompt; a blank prompt renders as an empty string."""
    text = prompt.strip()
    if not text:
        return ""
    return _markdown.render(text)
