"""
HTML -> plain text for catalog fields (description, prerequisites, notes).

Substitution rules:
- <li>           -> new line starting with "• "
- </p>, </li>, </div>, <br>, headings -> line break
- <ul>, <ol> and every other tag -> removed (text kept)
- entities decoded, lines stripped, blank lines dropped
"""

from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup

BULLET = "• "
_LINE_END_TAGS = ["p", "li", "div", "h1", "h2", "h3", "h4", "h5", "h6", "tr"]


def html_to_text(html: Optional[str]) -> str:
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for li in soup.find_all("li"):
        li.insert(0, BULLET)
    for tag in soup.find_all(_LINE_END_TAGS):
        tag.append("\n")

    lines = [line.strip() for line in soup.get_text().splitlines()]
    return "\n".join(line for line in lines if line)
