"""Fenced code block substitution over rendered HTML.

Two phases: find ``<pre><code class="language-X">`` blocks and hand their
unescaped inner text to a transformer, which returns replacement HTML or
None to leave the block as it was.
"""

import html
import re
from typing import Callable, Optional


Transform = Callable[[str], Optional[str]]


def code_block_pattern(language: str) -> re.Pattern:
    return re.compile(
        r'<pre><code class="language-' + re.escape(language) + r'">(.*?)</code></pre>',
        re.DOTALL,
    )


def unescape(text: str) -> str:
    """Undo HTML entity escaping applied by the markdown renderer."""
    return html.unescape(text)


def replace_code_blocks(content: str, language: str, transform: Transform) -> str:
    """Replace every ``language`` block for which transform returns HTML."""
    pattern = code_block_pattern(language)

    def _sub(match: re.Match) -> str:
        replacement = transform(unescape(match.group(1)).strip())
        return match.group(0) if replacement is None else replacement

    return pattern.sub(_sub, content)
