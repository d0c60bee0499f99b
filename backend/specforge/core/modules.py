"""
Documentation Modules
=====================

The fixed catalogue of documents the generator produces, in the order the
master prompt asks for them. Premium modules are generated for everyone
but their bodies are withheld from free-plan users.

Premium Redaction:
------------------
The master prompt asks the model to put a machine-readable marker on the
line right after each numbered heading:

    ### 5. Schema Design
    <!-- module:schema_design -->

A section carrying the marker is matched by module id. A section without
one (older documents, or a heading where the model dropped it) falls back
to matching the module's display name literally after the ``### <n>.``
prefix. The choice is made per section. Either way the heading (and
marker) stay in place and everything up to the next numbered heading is
replaced with the upsell block.

While a document is still streaming, PremiumStreamFilter holds back the
section currently being written and releases each section only once the
next heading shows up, already redacted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from specforge.core.sections import find_headings


@dataclass(frozen=True)
class DocModule:
    id: str
    name: str
    is_premium: bool = False

    @property
    def marker(self) -> str:
        return f"<!-- module:{self.id} -->"


ALL_MODULES: tuple[DocModule, ...] = (
    DocModule("prd", "PRD (Product Requirements Document)"),
    DocModule("tech_stack", "Tech Stack Specification"),
    DocModule("project_structure", "Project Structure"),
    DocModule("user_flow_textual", "User Flow (textual)"),
    DocModule("schema_design", "Schema Design", is_premium=True),
    DocModule("user_flow_chart", "User Flow Flow-Chart", is_premium=True),
    DocModule("backend_structure", "Backend Structure", is_premium=True),
    DocModule("implementation_plan", "Implementation Plan", is_premium=True),
    DocModule("project_rules", "Project Rules & Coding Standards", is_premium=True),
    DocModule("security_guidelines", "Security Guidelines", is_premium=True),
    DocModule("styling_guidelines", "Styling Guidelines", is_premium=True),
)

MODULES_BY_ID: dict[str, DocModule] = {m.id: m for m in ALL_MODULES}

_NEXT_HEADING = r"(?=\n###\s*\d+\.|\Z)"

_SECTION_PATTERN = re.compile(
    r"(?m)^(###\s*\d+\.([^\n]*))"
    r"(\n[ \t]*<!--\s*module:\s*([\w-]+)\s*-->[^\n]*)?"
    r"([\s\S]*?)" + _NEXT_HEADING
)


def unknown_module_ids(module_ids: Iterable[str]) -> list[str]:
    return [module_id for module_id in module_ids if module_id not in MODULES_BY_ID]


def premium_placeholder(module: DocModule) -> str:
    return (
        "\n\n> ✨ **Premium Module**\n>\n"
        f"> This section is available on our Pro and Team plans. Upgrade to unlock "
        f"the full content for **{module.name}** and get access to advanced features "
        "like AI-Powered Spec Analysis.\n>\n"
        '> *Please visit the "Billing" page to see our upgrade options.*\n'
    )


def _module_for(heading_text: str, marker_id: str | None) -> DocModule | None:
    if marker_id:
        return MODULES_BY_ID.get(marker_id)
    title = heading_text.strip()
    for module in ALL_MODULES:
        if title.startswith(module.name):
            return module
    return None


def module_for_section(content: str) -> DocModule | None:
    """The catalogue module a section was generated for, by marker or by name."""
    match = _SECTION_PATTERN.match(content.strip())
    if match is None:
        return None
    return _module_for(match.group(2), match.group(4))


def redact_premium_sections(document: str, selected_module_ids: Iterable[str]) -> str:
    selected = set(selected_module_ids)
    if not any(m.is_premium and m.id in selected for m in ALL_MODULES):
        return document

    def _redact(match: re.Match[str]) -> str:
        module = _module_for(match.group(2), match.group(4))
        if module is None or not module.is_premium or module.id not in selected:
            return match.group(0)
        return match.group(1) + (match.group(3) or "") + premium_placeholder(module)

    return _SECTION_PATTERN.sub(_redact, document)


def has_premium_selection(selected_module_ids: Iterable[str]) -> bool:
    return any(MODULES_BY_ID[m].is_premium for m in selected_module_ids if m in MODULES_BY_ID)


class PremiumStreamFilter:
    """
    Redacts a document that arrives in fragments.

    Text up to the start of the last numbered heading seen so far is final:
    redacting it can only grow at the end as more sections arrive. Each
    call to feed() returns the newly finalised, redacted text; flush()
    returns the rest once the stream ends. Everything returned, joined,
    equals ``redact_premium_sections(full_text, selected_module_ids)``.
    """

    def __init__(self, selected_module_ids: Iterable[str]) -> None:
        self.selected_module_ids = tuple(selected_module_ids)
        self._raw: list[str] = []
        self._cut = 0
        self._released = 0

    @property
    def text(self) -> str:
        return "".join(self._raw)

    def feed(self, chunk: str) -> str:
        self._raw.append(chunk)
        raw = self.text
        headings = find_headings(raw)
        if not headings or headings[-1].start() == self._cut:
            return ""
        self._cut = headings[-1].start()
        return self._release(raw[:self._cut])

    def flush(self) -> str:
        return self._release(self.text)

    def _release(self, fragment: str) -> str:
        redacted = redact_premium_sections(fragment, self.selected_module_ids)
        new_text = redacted[self._released:]
        self._released = len(redacted)
        return new_text
