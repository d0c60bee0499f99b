"""
Section Patcher
===============

Replaces one section's text inside the full document, leaving every other
byte untouched.

The replacement is a plain first-occurrence substring substitution, not an
offset splice. If the old section text is no longer present verbatim (the
document changed after it was parsed, or trimming made the stored content
differ from the literal text), nothing is replaced.

``patch_document`` keeps that silent behaviour; ``apply_patch`` reports
whether the replacement happened so callers can refuse to drop an edit.
"""

from __future__ import annotations

from dataclasses import dataclass

from specforge.errors import SectionPatchError


@dataclass(frozen=True)
class PatchResult:
    document: str
    applied: bool

    def unwrap(self) -> str:
        if not self.applied:
            raise SectionPatchError()
        return self.document


def apply_patch(document: str, old_content: str, new_content: str) -> PatchResult:
    if not old_content:
        return PatchResult(document, False)
    index = document.find(old_content)
    if index < 0:
        return PatchResult(document, False)
    patched = document[:index] + new_content + document[index + len(old_content):]
    return PatchResult(patched, True)


def patch_document(document: str, old_content: str, new_content: str) -> str:
    return apply_patch(document, old_content, new_content).document
