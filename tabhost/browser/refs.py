"""Element references built from aria snapshots.

A snapshot line looks like ``- button "Submit"`` or ``- link "Home":`` with
nesting expressed by indentation. Every line whose role is interactive gets
the next ``eN`` id in tree order. A ref stores just enough to find the element
again by role and accessible name, so it is only meaningful for the DOM state
that produced it.
"""
from __future__ import annotations

import logging
import re
from typing import Iterator, Optional

from playwright.async_api import Locator
from playwright.async_api import Page as PlaywrightPage
from pydantic import BaseModel

from .page import Page

logger = logging.getLogger(__name__)

MAX_SNAPSHOT_REFS = 500

INTERACTIVE_ROLES: frozenset[str] = frozenset({
    "button",
    "link",
    "textbox",
    "checkbox",
    "radio",
    "combobox",
    "menuitem",
    "tab",
    "searchbox",
    "slider",
    "spinbutton",
    "switch",
})

# Keys needing YAML quoting are wrapped in single quotes, with '' for '
_LINE_RE = re.compile(r"""^(\s*-\s+)('?)(\w+)(?:\s+"((?:[^"\\]|\\.)*)")?""")
_ESCAPE_RE = re.compile(r"\\(.)")


class ElementRef(BaseModel):
    """Role, accessible name and disambiguating index of one element."""

    role: str
    name: str = ""
    nth: int = 0


def _interactive_lines(
    snapshot: str, max_refs: int
) -> Iterator[tuple[int, re.Match, ElementRef]]:
    """Yield (line index, match, ref) for interactive lines, up to the cap."""
    count = 0
    for index, line in enumerate(snapshot.split("\n")):
        if count >= max_refs:
            break
        match = _LINE_RE.match(line)
        if not match:
            continue
        role = match.group(3).lower()
        if role not in INTERACTIVE_ROLES:
            continue
        name = match.group(4) or ""
        if match.group(2):
            name = name.replace("''", "'")
        name = _ESCAPE_RE.sub(r"\1", name)
        count += 1
        yield index, match, ElementRef(role=role, name=name)


def parse_refs(snapshot: Optional[str], max_refs: int = MAX_SNAPSHOT_REFS) -> dict[str, ElementRef]:
    """Build a ref table from aria snapshot text.

    Args:
        snapshot: Aria snapshot text, may be empty.
        max_refs: Elements past this many are left unaddressed.

    Returns:
        Mapping of ``e1``, ``e2``, ... to element refs, in tree order.
    """
    refs: dict[str, ElementRef] = {}
    if not snapshot:
        return refs
    for _, _, ref in _interactive_lines(snapshot, max_refs):
        refs[f"e{len(refs) + 1}"] = ref
    return refs


def annotate_snapshot(snapshot: str, max_refs: int = MAX_SNAPSHOT_REFS) -> str:
    """Prefix each interactive line with its ``[eN]`` label.

    Uses the same scan as :func:`parse_refs`, so labels match the ref table
    built from the same text.
    """
    lines = snapshot.split("\n")
    for count, (index, match, _) in enumerate(_interactive_lines(snapshot, max_refs), start=1):
        prefix = match.group(1)
        lines[index] = f"{prefix}[e{count}] {lines[index][len(prefix):]}"
    return "\n".join(lines)


async def build_refs(page: Page, max_refs: int = MAX_SNAPSHOT_REFS) -> dict[str, ElementRef]:
    """Snapshot the page and build a fresh ref table for it."""
    if page.is_closed():
        logger.info("build_refs: page is closed")
        return {}
    snapshot = await page.aria_snapshot()
    if not snapshot:
        logger.info("build_refs: no aria snapshot available")
        return {}
    return parse_refs(snapshot, max_refs)


def resolve_ref(
    page: PlaywrightPage, ref_id: str, refs: dict[str, ElementRef]
) -> Optional[Locator]:
    """Turn a ref back into a role locator.

    Returns None for refs not in the current table. Elements sharing role
    and name are not told apart: refs are always built with ``nth == 0``.
    """
    ref = refs.get(ref_id)
    if ref is None:
        return None
    if ref.name:
        locator = page.get_by_role(ref.role, name=ref.name, exact=True)
    else:
        locator = page.get_by_role(ref.role)
    if ref.nth > 0:
        locator = locator.nth(ref.nth)
    return locator
