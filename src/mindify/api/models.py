"""Pydantic request/response models for the categorize API.

Field names are camelCase on the wire to match the capture clients.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from mindify.ai.types import Categorization, ExtractedItem, ExtractionResult
from mindify.config import UserProfile
from mindify.db.models import Entities


class UserContext(BaseModel):
    name: str
    profession: str = ""
    company: str = ""
    projects: list[str] = Field(default_factory=list)
    additionalContext: str | None = None

    def to_profile(self) -> UserProfile:
        return UserProfile(
            name=self.name,
            profession=self.profession,
            company=self.company,
            projects=list(self.projects),
            additional_context=self.additionalContext or "",
        )


class CategorizeRequest(BaseModel):
    rawInput: str = Field(min_length=1)
    userContext: UserContext


class EntitiesModel(BaseModel):
    people: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)

    @classmethod
    def from_entities(cls, entities: Entities) -> EntitiesModel:
        return cls(**entities.to_dict())


class CategorizeResponse(BaseModel):
    category: str
    subcategory: str | None = None
    title: str
    entities: EntitiesModel
    urgency: str
    confidence: float
    reasoning: str | None = None

    @classmethod
    def from_result(cls, result: Categorization) -> CategorizeResponse:
        return cls(
            category=result.category,
            subcategory=result.subcategory,
            title=result.title,
            entities=EntitiesModel.from_entities(result.entities),
            urgency=result.urgency,
            confidence=result.confidence,
            reasoning=result.reasoning,
        )


class ExtractedItemModel(BaseModel):
    category: str
    title: str
    tags: list[str]
    urgency: str
    confidence: float
    rawText: str
    entities: EntitiesModel

    @classmethod
    def from_item(cls, item: ExtractedItem) -> ExtractedItemModel:
        return cls(
            category=item.category,
            title=item.title,
            tags=item.tags,
            urgency=item.urgency,
            confidence=item.confidence,
            rawText=item.raw_text,
            entities=EntitiesModel.from_entities(item.entities),
        )


class ExtractResponse(BaseModel):
    items: list[ExtractedItemModel]
    reasoning: str

    @classmethod
    def from_result(cls, result: ExtractionResult) -> ExtractResponse:
        return cls(
            items=[ExtractedItemModel.from_item(i) for i in result.items],
            reasoning=result.reasoning,
        )
