"""HTML/CSS safety filter for the markup generators.

The model answers with two delimited blocks::

    ===index.html===
    ...
    ===styles.css===
    ...

Markers are matched case-insensitively; the CSS marker must follow the HTML
marker and both trimmed blocks must be non-empty. The filter rejects any
``<script`` tag and any absolute http(s) URL in either block.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from lp_generator.models import HtmlCssBundle, ValidationResult
from lp_generator.storage import build_bundle

INDEX_MARKER = "===index.html==="
CSS_MARKER = "===styles.css==="

SPLIT_FAILED = "html/css split failed"
SCRIPT_NOT_ALLOWED = "script tag is not allowed"
EXTERNAL_URL_NOT_ALLOWED = "external url is not allowed"

_SCRIPT_TAG_RE = re.compile(r"<\s*script\b", re.IGNORECASE)
_EXTERNAL_URL_RE = re.compile(r"https?://", re.IGNORECASE)


def split_html_css(content: str) -> Optional[Tuple[str, str]]:
    """Return ``(html, css)`` or None when the two-block layout is broken."""
    lower = content.lower()
    index_pos = lower.find(INDEX_MARKER)
    css_pos = lower.find(CSS_MARKER)
    if index_pos < 0 or css_pos < 0 or css_pos <= index_pos:
        return None

    html = content[index_pos + len(INDEX_MARKER):css_pos].strip()
    css = content[css_pos + len(CSS_MARKER):].strip()
    if not html or not css:
        return None
    return html, css


def validate_html_css(html: str, css: str) -> List[str]:
    violations: List[str] = []
    if _SCRIPT_TAG_RE.search(html) or _SCRIPT_TAG_RE.search(css):
        violations.append(SCRIPT_NOT_ALLOWED)
    if _EXTERNAL_URL_RE.search(html) or _EXTERNAL_URL_RE.search(css):
        violations.append(EXTERNAL_URL_NOT_ALLOWED)
    return violations


class HtmlCssValidator:
    """Split, filter and package a two-block markup response.

    Shares the ``parse_and_validate`` shape of the JSON validators so the
    orchestrator can treat every kind alike.
    """

    def parse_and_validate(self, raw_text: str) -> Tuple[Optional[HtmlCssBundle], ValidationResult]:
        blocks = split_html_css(raw_text)
        if blocks is None:
            return None, ValidationResult(errors=[SPLIT_FAILED])

        html, css = blocks
        violations = validate_html_css(html, css)
        if violations:
            return None, ValidationResult(errors=violations)

        bundle = HtmlCssBundle(html=html, css=css, zip_bytes=build_bundle(html, css))
        return bundle, ValidationResult(normalized=bundle)
