"""Markdown + math rendering for question, hint and option text.

Architecture note:
    Math is typeset on the client by KaTeX. The server only has to make sure
    markdown-it does not eat the formula source: ``$a_n$`` would otherwise
    turn into emphasis and ``\\frac`` would lose its backslash. Formulas are
    swapped for inert placeholders before rendering and put back, HTML
    escaped, afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import html
import re

from markdown_it import MarkdownIt

_MATH_PATTERN = re.compile(r"\$\$(.+?)\$\$|\$(?!\s)([^$\n]+?)(?<!\s)\$", re.DOTALL)
_PLACEHOLDER = "\ue000{}\ue001"
_PLACEHOLDER_PATTERN = re.compile("\ue000(\\d+)\ue001")


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a block of markdown into HTML."""

        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return ""
        protected, formulas = _protect_math(sanitized)
        return _restore_math(self._markdown.render(protected), formulas)

    def render_inline(self, markdown_text: str) -> str:
        """Render a single line (option labels) without the wrapping paragraph."""

        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return ""
        protected, formulas = _protect_math(sanitized)
        return _restore_math(self._markdown.renderInline(protected), formulas)


def _protect_math(text: str) -> tuple[str, list[str]]:
    formulas: list[str] = []

    def replace(match: re.Match[str]) -> str:
        formulas.append(match.group(0))
        return _PLACEHOLDER.format(len(formulas) - 1)

    return _MATH_PATTERN.sub(replace, text), formulas


def _restore_math(rendered: str, formulas: list[str]) -> str:
    return _PLACEHOLDER_PATTERN.sub(lambda m: html.escape(formulas[int(m.group(1))], quote=False), rendered)


renderer = MarkdownMathRenderer()
# Shared instance. MarkdownIt is safe for concurrent read-only renders, so the
# FastAPI worker threads reuse it.
