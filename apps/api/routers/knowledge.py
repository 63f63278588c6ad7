"""
AI endpoints for growing the knowledge graph and running the quiz.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Union

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from knowledge.llm import (
    expand_concept,
    extract_concepts,
    find_relations,
    generate_question,
    related_topics,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class ExpandConceptRequest(BaseModel):
    concept: Optional[str] = None
    stack: Optional[str] = None


class RelatedTopicsRequest(BaseModel):
    topic: Optional[str] = None
    stackDescription: Optional[str] = None
    existingTopics: List[str] = Field(default_factory=list)


class FindRelationsRequest(BaseModel):
    topic: Optional[str] = None
    candidates: Optional[List[str]] = None


class GenerateQuestionRequest(BaseModel):
    topics: Union[List[str], str, None] = None
    stack: Optional[str] = None
    difficulty: int = 1
    previousQuestions: List[str] = Field(default_factory=list)
    nodeContext: str = ""
    topicWeights: Dict[str, float] = Field(default_factory=dict)


class ExtractConceptsRequest(BaseModel):
    question: Optional[str] = None
    correctAnswer: Optional[str] = None
    explanation: Optional[str] = None


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@router.post("/expand-concept")
async def expand_concept_endpoint(request: ExpandConceptRequest):
    """Suggest 3-4 sub-concepts for a node."""
    concept = (request.concept or "").strip()
    if not concept:
        return _error(400, "Concept is required")
    try:
        subconcepts = await asyncio.to_thread(expand_concept, concept, request.stack)
    except Exception as exc:
        logger.exception("Failed to expand concept %s", concept)
        return _error(500, "Failed to generate subconcepts", str(exc))
    return {"subconcepts": subconcepts}


@router.post("/related-topics")
async def related_topics_endpoint(request: RelatedTopicsRequest):
    """Suggest related topics, reusing names already present in the graph."""
    topic = (request.topic or "").strip()
    if not topic:
        return _error(400, "Topic is required")
    try:
        topics = await asyncio.to_thread(
            related_topics, topic, request.stackDescription, request.existingTopics
        )
    except Exception:
        logger.exception("Failed to generate related topics for %s", topic)
        return _error(500, "Failed to generate related topics")
    return [item.model_dump() for item in topics]


@router.post("/find-relations")
async def find_relations_endpoint(request: FindRelationsRequest):
    """Link a new topic to the existing candidates it is related to."""
    topic = (request.topic or "").strip()
    if not topic or request.candidates is None:
        return _error(400, "Topic and candidates array are required")
    if not request.candidates:
        return []
    try:
        relations = await asyncio.to_thread(find_relations, topic, request.candidates)
    except Exception:
        logger.exception("Failed to find relations for %s", topic)
        return _error(500, "Failed to find relations")
    return [item.model_dump() for item in relations]


@router.post("/generate-question")
async def generate_question_endpoint(request: GenerateQuestionRequest):
    """Generate one quiz question at the requested difficulty."""
    topics = request.topics
    if isinstance(topics, str):
        topics = [topics]
    topics = [t.strip() for t in (topics or []) if t and t.strip()]
    if not topics:
        return _error(400, "Topics are required")

    logger.info("Generating question topics=%s difficulty=%s", ", ".join(topics), request.difficulty)
    try:
        question = await asyncio.to_thread(
            generate_question,
            topics,
            request.stack,
            request.difficulty,
            request.previousQuestions,
            request.nodeContext,
            request.topicWeights,
        )
    except Exception as exc:
        logger.exception("Failed to generate question for topics=%s", topics)
        return _error(500, "Failed to generate question", str(exc))
    return question.model_dump()


@router.post("/extract-concepts")
async def extract_concepts_endpoint(request: ExtractConceptsRequest):
    """Pull graph-worthy concepts out of an answered question."""
    question = (request.question or "").strip()
    if not question:
        return _error(400, "Question text is required")
    try:
        concepts = await asyncio.to_thread(
            extract_concepts, question, request.correctAnswer, request.explanation
        )
    except Exception as exc:
        logger.exception("Failed to extract concepts")
        return _error(500, "Failed to extract concepts", str(exc))
    return {"concepts": [item.model_dump() for item in concepts]}
