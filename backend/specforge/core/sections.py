"""
Section Parser
==============

Splits a generated specification into addressable sections.

A section starts at every line of the form ``### <digits>. <free text>``
and runs up to the next such line or the end of the document. Any other
heading level, or a third-level heading without the ``<n>.`` numbering,
is ordinary body text.

    ### 1. PRD (Product Requirements Document)    <- section "1.-prd-(product-requirements-document)"
    ...body...
    ### 2. Tech Stack Specification               <- section "2.-tech-stack-specification"
    ...body...

Text before the first heading becomes a synthetic ``overview`` section;
a document with no headings at all becomes a single ``full-document``
section. Parsing is total: it never raises, and blank input yields an
empty list.

Section ids are NOT de-duplicated. Two headings that slug to the same id
produce two sections with the same id, and ``sections_by_id`` keeps the
last one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

HEADING_PATTERN = re.compile(r"^### \d+\..*$", re.MULTILINE)

FULL_DOCUMENT_ID = "full-document"
FULL_DOCUMENT_TITLE = "Full Document"
OVERVIEW_ID = "overview"
OVERVIEW_TITLE = "Overview"

_MARKER_PREFIX = re.compile(r"^###\s*")
_WHITESPACE_RUN = re.compile(r"\s+")
_DISALLOWED_ID_CHARS = re.compile(r"[^\w().-]+", re.ASCII)


@dataclass(frozen=True)
class Section:
    id: str
    title: str
    content: str

    @property
    def heading(self) -> str:
        """First line of the section (the heading line for numbered sections)."""
        return self.content.split("\n", 1)[0]

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title, "content": self.content}


def derive_section_id(title: str, index: int) -> str:
    slug = _WHITESPACE_RUN.sub("-", title.lower())
    slug = _DISALLOWED_ID_CHARS.sub("", slug)
    return slug or f"section-{index}"


def heading_title(heading_line: str) -> str:
    return _MARKER_PREFIX.sub("", heading_line).strip()


def find_headings(document: str) -> list[re.Match[str]]:
    return list(HEADING_PATTERN.finditer(document))


def parse_sections(document: str) -> list[Section]:
    if not document:
        return []

    headings = find_headings(document)

    if not headings:
        if not document.strip():
            return []
        return [Section(FULL_DOCUMENT_ID, FULL_DOCUMENT_TITLE, document)]

    sections: list[Section] = []

    first_start = headings[0].start()
    if first_start > 0:
        preamble = document[:first_start].strip()
        if preamble:
            sections.append(Section(OVERVIEW_ID, OVERVIEW_TITLE, preamble))

    for i, match in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(document)
        title = heading_title(match.group(0))
        sections.append(
            Section(
                id=derive_section_id(title, i),
                title=title,
                content=document[match.start():end].strip(),
            )
        )

    return sections


def sections_by_id(sections: Iterable[Section]) -> dict[str, Section]:
    return {section.id: section for section in sections}


def find_section(sections: Sequence[Section], section_id: str) -> Section | None:
    return sections_by_id(sections).get(section_id)


def find_section_by_title(sections: Sequence[Section], title: str) -> Section | None:
    for section in sections:
        if section.title == title:
            return section
    return None
