from specforge.core.analysis import AnalysisItem, AnalysisItemKind, parse_analysis
from specforge.core.modules import ALL_MODULES, DocModule, redact_premium_sections
from specforge.core.patcher import PatchResult, apply_patch, patch_document
from specforge.core.sections import Section, derive_section_id, parse_sections
from specforge.core.session import EditorState

__all__ = [
    "AnalysisItem",
    "AnalysisItemKind",
    "parse_analysis",
    "ALL_MODULES",
    "DocModule",
    "redact_premium_sections",
    "PatchResult",
    "apply_patch",
    "patch_document",
    "Section",
    "derive_section_id",
    "parse_sections",
    "EditorState",
]
