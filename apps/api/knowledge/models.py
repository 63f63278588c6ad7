from typing import List, Literal

from pydantic import BaseModel, Field, field_validator

CATEGORIES = ("Core", "Tools", "Patterns", "Testing", "Integration")
EDGE_TYPES = ("causal", "multiway", "branchial")
MAX_DESCRIPTION_CHARS = 100

Category = Literal["Core", "Tools", "Patterns", "Testing", "Integration"]
EdgeType = Literal["causal", "multiway", "branchial"]


def _known_category(value) -> str:
    text = str(value or "").strip()
    for category in CATEGORIES:
        if text.lower() == category.lower():
            return category
    return "Core"


def _known_edge_type(value) -> str:
    text = str(value or "").strip().lower()
    return text if text in EDGE_TYPES else "causal"


class RelatedTopic(BaseModel):
    topic: str
    description: str = ""
    edgeType: EdgeType = "causal"
    relation: str = ""
    category: Category = "Core"

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value):
        return _known_category(value)

    @field_validator("edgeType", mode="before")
    @classmethod
    def _edge_type(cls, value):
        return _known_edge_type(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value):
        return str(value or "")[:MAX_DESCRIPTION_CHARS]


class TopicRelation(BaseModel):
    id: str
    edgeType: EdgeType = "causal"
    relation: str = ""

    @field_validator("edgeType", mode="before")
    @classmethod
    def _edge_type(cls, value):
        return _known_edge_type(value)


class QuizQuestion(BaseModel):
    question: str = Field(min_length=1)
    answers: List[str] = Field(min_length=4, max_length=4)
    correctIndex: int = Field(ge=0, le=3)
    explanation: str = ""


class ExtractedConcept(BaseModel):
    topic: str
    description: str = ""
    category: Category = "Core"

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value):
        return _known_category(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value):
        return str(value or "")[:MAX_DESCRIPTION_CHARS]
