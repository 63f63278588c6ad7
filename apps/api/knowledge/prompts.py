"""Prompt builders for the QA automation knowledge graph and quiz."""

import json
from typing import Dict, List, Optional

MAX_DIFFICULTY = 15

JSON_ONLY = "Return ONLY valid JSON, no prose and no Markdown fences."


def clamp_difficulty(value) -> int:
    try:
        level = int(value)
    except (TypeError, ValueError):
        level = 1
    return max(1, min(level, MAX_DIFFICULTY))


def weak_topics(topic_weights: Optional[Dict[str, float]]) -> List[str]:
    """Topics the player keeps missing (weight above 1.0), formatted for the prompt."""
    weak = []
    for topic, weight in (topic_weights or {}).items():
        try:
            value = float(weight)
        except (TypeError, ValueError):
            continue
        if value > 1.0:
            weak.append(f"{topic} (needs practice, weight: {value:.2f})")
    return weak


def expand_concept_prompt(concept: str, stack: Optional[str] = None) -> str:
    stack_context = f"The learner works with this QA automation stack: {stack}." if stack else ""
    return f"""You are a QA automation knowledge expert. {stack_context}
List exactly 3-4 sub-concepts of "{concept}" that a QA engineer should learn next.
Keep them practical and specific to test automation and software quality{' within that stack' if stack else ''}.

{JSON_ONLY} Format: a JSON array of strings, e.g. ["Subconcept 1", "Subconcept 2", "Subconcept 3"]"""


def related_topics_prompt(
    topic: str,
    stack_description: Optional[str] = None,
    existing_topics: Optional[List[str]] = None,
) -> str:
    stack = stack_description or "General QA"
    existing = ", ".join(existing_topics or []) or "none yet"
    return f"""You are a QA automation expert for the stack: {stack}.
The user is building a knowledge map to prepare for a QA automation engineer interview.
Topics already in the graph: {existing}
New topic: "{topic}"

Task:
1. Suggest 5-7 varied topics closely related to "{topic}".
2. If "{topic}" relates to any topic already in the graph, include that existing topic using
   exactly the same name so the two get connected instead of duplicated.
3. Cover different angles: design patterns (Page Object, Screenplay, Factory, Builder, AAA),
   tools that belong to {stack} only, practices and methodologies, related technical concepts.
4. Never suggest tools from a different stack.

For every topic give:
- topic: 1-4 words
- description: at most 100 characters
- edgeType: "causal" (prerequisite or consequence), "multiway" (alternative) or "branchial" (same category)
- relation: 2-4 words describing the link
- category: one of Core, Tools, Patterns, Testing, Integration

{JSON_ONLY} Format:
[{{"topic": "...", "description": "...", "edgeType": "causal|multiway|branchial", "relation": "...", "category": "..."}}]"""


def find_relations_prompt(topic: str, candidates: List[str]) -> str:
    return f"""You are a knowledge graph expert.
Target topic: "{topic}"
Candidate topics: {json.dumps(candidates, ensure_ascii=False)}

Pick the candidates that are directly related to the target topic (parent/child, dependency,
alternative, part-of). Ignore weak or generic connections.

{JSON_ONLY} Format:
[{{"id": "exact candidate string", "edgeType": "causal|multiway|branchial", "relation": "2-4 words"}}]
Return [] when nothing is strongly related."""


def _difficulty_context(level: int) -> str:
    if level <= 5:
        return f"""DIFFICULTY: EASY (level {level}/{MAX_DIFFICULTY}).
- Ask about definitions, basic syntax and identification ("What is...?", "Which keyword...?").
- Keep it simple with clearly distinct answers."""
    if level <= 10:
        return f"""DIFFICULTY: MEDIUM (level {level}/{MAX_DIFFICULTY}).
- Ask about application, common scenarios and short code ("How do you handle...?", "What does this print?").
- Try to include a small, cleanly indented code snippet in a Markdown code block.
- Wrong answers must be plausible."""
    return f"""DIFFICULTY: HARD (level {level}/{MAX_DIFFICULTY}).
- Ask about architecture, performance, edge cases and internals ("Why would this fail?").
- The question MUST include a code snippet in a Markdown code block (triple backticks),
  properly indented, with a blank line before and after it, and without the language
  name repeated inside the block.
- Wrong answers should be subtle: right in other contexts, wrong here."""


def generate_question_prompt(
    topics: List[str],
    stack: Optional[str] = None,
    difficulty: int = 1,
    previous_questions: Optional[List[str]] = None,
    node_context: str = "",
    topic_weights: Optional[Dict[str, float]] = None,
) -> str:
    level = clamp_difficulty(difficulty)
    sections = [
        f'You are a QA automation expert writing a "Who Wants to Be a Millionaire" style question.'
        + (f" Tech stack: {stack}." if stack else ""),
        _difficulty_context(level),
        f"Topics: {', '.join(topics)}.",
    ]
    if node_context:
        sections.append(
            "Context from the user's knowledge graph:\n"
            f"{node_context}\n"
            "The user studied this material; prefer a question that tests it."
        )
    weak = weak_topics(topic_weights)
    if weak:
        sections.append(
            "Adaptive mode: the user needs extra practice on: "
            + ", ".join(weak)
            + ". Focus the question on these topics when possible."
        )
    if previous_questions:
        sections.append(
            "Do NOT repeat any of these questions:\n" + "\n".join(f"- {q}" for q in previous_questions)
        )
    sections.append(
        f"""Write one NEW multiple-choice question. Question #{level} must be harder than question #{level - 1}.
If several topics are given, connect them; if they are unrelated, pick one.
Answers that contain code must not start with the language name ("driver.get(url)", not "python driver.get(url)").

{JSON_ONLY} Format:
{{"question": "text, Markdown allowed", "answers": ["A", "B", "C", "D"], "correctIndex": 0, "explanation": "1-2 sentences"}}
correctIndex is 0, 1, 2 or 3."""
    )
    return "\n\n".join(sections)


def extract_concepts_prompt(
    question: str,
    correct_answer: Optional[str] = None,
    explanation: Optional[str] = None,
) -> str:
    return f"""You are a QA automation expert. Extract 1-3 key technical concepts from this quiz
question that are worth adding to a knowledge graph.

Question: "{question}"
Correct answer: "{correct_answer or 'N/A'}"
Explanation: "{explanation or 'N/A'}"

For each concept give:
- topic: 2-5 words (e.g. "Page Object Model", "Implicit Wait")
- description: at most 100 characters
- category: one of Core, Patterns, Tools, Testing, Integration

Prefer specific concepts: design patterns, exceptions and technical terms, testing approaches, frameworks.

{JSON_ONLY} Format:
[{{"topic": "...", "description": "...", "category": "..."}}]"""
