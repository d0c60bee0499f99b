"""Structure an AI review of a specification into linkable items."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from specforge.core.sections import Section, find_section_by_title

SECTION_REFERENCE = re.compile(r"""\(Refers to section: ['"]?(.*?)['"]?\)""")


class AnalysisItemKind(str, Enum):
    HEADING = "heading"
    SUGGESTION = "suggestion"
    FREE_TEXT = "freeText"


@dataclass(frozen=True)
class AnalysisItem:
    id: str
    kind: AnalysisItemKind
    text: str
    raw_line: str
    referenced_section_title: str | None = None
    resolved_section: Section | None = None

    @property
    def is_actionable(self) -> bool:
        return self.resolved_section is not None


def parse_analysis(analysis_text: str, sections: Sequence[Section]) -> list[AnalysisItem]:
    items: list[AnalysisItem] = []

    for index, line in enumerate(analysis_text.split("\n")):
        stripped = line.strip()
        item_id = f"analysis-line-{index}"

        if not stripped:
            continue

        if stripped.startswith("### "):
            items.append(
                AnalysisItem(item_id, AnalysisItemKind.HEADING, stripped[4:].strip(), line)
            )
        elif stripped.startswith("- "):
            match = SECTION_REFERENCE.search(stripped)
            if match and match.group(1):
                title = match.group(1).strip()
                items.append(
                    AnalysisItem(
                        item_id,
                        AnalysisItemKind.SUGGESTION,
                        stripped[2:match.start()].strip(),
                        line,
                        referenced_section_title=title,
                        resolved_section=find_section_by_title(sections, title),
                    )
                )
            else:
                items.append(
                    AnalysisItem(item_id, AnalysisItemKind.SUGGESTION, stripped[2:].strip(), line)
                )
        else:
            items.append(AnalysisItem(item_id, AnalysisItemKind.FREE_TEXT, stripped, line))

    return items
