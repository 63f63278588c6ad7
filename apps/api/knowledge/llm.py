import json
import logging
import re
from typing import Any, Dict, List, Optional

from openai import OpenAI
from pydantic import TypeAdapter

from config import settings
from .models import ExtractedConcept, QuizQuestion, RelatedTopic, TopicRelation
from .prompts import (
    expand_concept_prompt,
    extract_concepts_prompt,
    find_relations_prompt,
    generate_question_prompt,
    related_topics_prompt,
)

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*\n?")

_related_topics = TypeAdapter(List[RelatedTopic])
_relations = TypeAdapter(List[TopicRelation])
_concepts = TypeAdapter(List[ExtractedConcept])


def get_openai_client(api_key: Optional[str] = None) -> Optional[OpenAI]:
    """Get OpenAI client, handling placeholders."""
    api_key = settings.OPENAI_API_KEY if api_key is None else api_key
    if not api_key or "your_" in api_key or api_key == "test-key":
        return None
    return OpenAI(api_key=api_key)


def parse_json_payload(text: str) -> Any:
    """Parse model output, tolerating Markdown code fences around the JSON."""
    cleaned = _FENCE.sub("", (text or "").strip()).strip()
    return json.loads(cleaned)


def _complete(client: OpenAI, prompt: str, *, temperature: float, max_tokens: int = 1024) -> Any:
    response = client.chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=[{"role": "user", "content": prompt}],
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return parse_json_payload(response.choices[0].message.content)


def expand_concept(concept: str, stack: Optional[str] = None) -> List[str]:
    client = get_openai_client()
    if client is None:
        logger.warning("Using MOCK concept expansion.")
        return [f"{concept} Fundamentals", f"{concept} Best Practices", f"{concept} Tooling"]

    data = _complete(client, expand_concept_prompt(concept, stack), temperature=0.7)
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of sub-concepts")
    return [str(item).strip() for item in data if str(item).strip()]


def related_topics(
    topic: str,
    stack_description: Optional[str] = None,
    existing_topics: Optional[List[str]] = None,
) -> List[RelatedTopic]:
    client = get_openai_client()
    if client is None:
        logger.warning("Using MOCK related topics.")
        return []

    prompt = related_topics_prompt(topic, stack_description, existing_topics)
    return _related_topics.validate_python(_complete(client, prompt, temperature=0.7))


def find_relations(topic: str, candidates: List[str]) -> List[TopicRelation]:
    """Relations from `topic` to candidates; ids the model invents are dropped."""
    if not candidates:
        return []
    client = get_openai_client()
    if client is None:
        logger.warning("Using MOCK relation finder.")
        return []

    relations = _relations.validate_python(
        _complete(client, find_relations_prompt(topic, candidates), temperature=0.1)
    )
    allowed = set(candidates)
    return [relation for relation in relations if relation.id in allowed]


def generate_question(
    topics: List[str],
    stack: Optional[str] = None,
    difficulty: int = 1,
    previous_questions: Optional[List[str]] = None,
    node_context: str = "",
    topic_weights: Optional[Dict[str, float]] = None,
) -> QuizQuestion:
    client = get_openai_client()
    if client is None:
        logger.warning("Using MOCK quiz question.")
        topic = topics[0]
        return QuizQuestion(
            question=f"Which statement best describes the main purpose of {topic} in test automation?",
            answers=[
                f"It helps make {topic}-based tests reliable and maintainable",
                "It replaces the need for any test assertions",
                "It is only used for manual exploratory testing",
                "It guarantees the application has no defects",
            ],
            correctIndex=0,
            explanation=f"{topic} is used to keep automated tests reliable; no tool removes the need for assertions.",
        )

    prompt = generate_question_prompt(
        topics,
        stack=stack,
        difficulty=difficulty,
        previous_questions=previous_questions,
        node_context=node_context,
        topic_weights=topic_weights,
    )
    question = QuizQuestion.model_validate(_complete(client, prompt, temperature=0.9))
    logger.info("Generated question: %s...", question.question[:60])
    return question


def extract_concepts(
    question: str,
    correct_answer: Optional[str] = None,
    explanation: Optional[str] = None,
) -> List[ExtractedConcept]:
    client = get_openai_client()
    if client is None:
        logger.warning("Using MOCK concept extraction.")
        return []

    prompt = extract_concepts_prompt(question, correct_answer, explanation)
    concepts = _concepts.validate_python(_complete(client, prompt, temperature=0.4))
    logger.info("Extracted %s concept(s): %s", len(concepts), ", ".join(c.topic for c in concepts))
    return concepts
