"""
Editor Session State
====================

The document being edited, its parsed sections and the selected section,
held as one immutable value. Every operation is a pure transform that
returns a new state; nothing is shared between requests.

    state = EditorState.from_document(text)
    state = select_section(state, "3.-project-structure")
    state, result = apply_section_update(state, state.active_section_id, new_text)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from specforge.core.patcher import PatchResult, apply_patch
from specforge.core.sections import Section, find_section, parse_sections
from specforge.errors import SectionNotFound


@dataclass(frozen=True)
class EditorState:
    document: str = ""
    sections: tuple[Section, ...] = field(default_factory=tuple)
    active_section_id: str | None = None

    @classmethod
    def from_document(cls, document: str, active_section_id: str | None = None) -> EditorState:
        return with_document(cls(active_section_id=active_section_id), document)

    @property
    def active_section(self) -> Section | None:
        if self.active_section_id is None:
            return None
        return find_section(self.sections, self.active_section_id)


def with_document(state: EditorState, document: str) -> EditorState:
    """Replace the document, re-deriving sections and revalidating the selection."""
    sections = tuple(parse_sections(document))
    active = state.active_section_id
    if not sections:
        active = None
    elif active is None or not any(s.id == active for s in sections):
        active = sections[0].id
    return EditorState(document=document, sections=sections, active_section_id=active)


def select_section(state: EditorState, section_id: str) -> EditorState:
    if find_section(state.sections, section_id) is None:
        raise SectionNotFound(section_id=section_id)
    return replace(state, active_section_id=section_id)


def require_section(state: EditorState, section_id: str) -> Section:
    section = find_section(state.sections, section_id)
    if section is None:
        raise SectionNotFound(section_id=section_id)
    return section


def apply_section_update(
    state: EditorState,
    section_id: str,
    new_content: str,
) -> tuple[EditorState, PatchResult]:
    section = require_section(state, section_id)
    result = apply_patch(state.document, section.content, new_content)
    if not result.applied:
        return state, result
    return with_document(state, result.document), result
