"""Generation, editing and analysis schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from specforge.core.analysis import AnalysisItemKind


class SectionInfo(BaseModel):

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str


class GenerationRequest(BaseModel):
    """Length bounds and module ids are checked by the service, not here."""

    idea_text: str
    selected_module_ids: list[str] = Field(default_factory=list)


class ElaborationRequest(BaseModel):

    section_content: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1, max_length=5000)


class ElaborationResponse(BaseModel):

    answer: str
    remaining: int | None = None


class RegenerationRequest(BaseModel):

    document: str = Field(..., min_length=1)
    section_id: str = Field(..., min_length=1)
    instructions: str | None = Field(default=None, max_length=5000)


class RegenerationResponse(BaseModel):

    document: str
    section: SectionInfo
    sections: list[SectionInfo]
    remaining: int | None = None


class DocumentRequest(BaseModel):

    document: str


class SectionsResponse(BaseModel):

    sections: list[SectionInfo]


class AnalysisItemResponse(BaseModel):

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: AnalysisItemKind
    text: str
    referenced_section_title: str | None = None
    section_id: str | None = None


class AnalysisResponse(BaseModel):

    analysis: str
    items: list[AnalysisItemResponse]
