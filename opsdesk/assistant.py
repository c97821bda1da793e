"""
Generation-backed assistance for the desk:
  - executive summary of an entity's projects and tasks
  - SOP drafting (Purpose / Scope / Step-by-Step)
  - task suggestions for a project, parsed from a JSON array

Failures are caught here, logged, and turned into the fixed user-facing
fallbacks below. Nothing is retried.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from .generator import GenerationError, TextGenerator
from .schema import Entity, Priority, Project, Task

logger = logging.getLogger(__name__)

NO_INSIGHTS = "No insights available at this time."
ANALYSIS_FAILED = "Error fetching AI analysis. Please check your API key."

ANALYSIS_PROMPT = (
    "Based on the following company data, provide a brief executive summary and "
    "3 key recommendations for growth and risk mitigation: {context}"
)

SOP_PROMPT = (
    'Write a professional, structured Standard Operating Procedure (SOP) for "{title}". '
    'Description: "{description}". Break it down into Purpose, Scope, and Step-by-Step '
    "Instructions. Use clear, bulleted points."
)

SUGGESTION_PROMPT = (
    'Act as a senior project manager. Suggest 5 critical tasks for a project named '
    '"{name}" described as "{description}". Return only the list of tasks.'
)

SUGGESTION_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
            "priority": {"type": "STRING"},
        },
        "required": ["title", "description", "priority"],
    },
}


def build_context(entity: Entity, projects: List[Project], tasks: List[Task]) -> str:
    return (
        f"\nCompany: {entity.name}"
        f"\nProjects: {json.dumps([p.to_dict() for p in projects])}"
        f"\nTasks: {json.dumps([t.to_dict() for t in tasks])}\n"
    )


def parse_suggestions(response: str) -> List[Dict[str, str]]:
    """
    Parse a generated JSON array of {title, description, priority}.

    Raises ValueError when no array can be recovered.
    """
    response = (response or "").strip()
    if response.startswith("```"):
        response = re.sub(r'^```(?:json)?\s*', '', response)
        response = re.sub(r'\s*```$', '', response)

    try:
        result = json.loads(response)
    except json.JSONDecodeError:
        match = re.search(r'\[.*\]', response, re.DOTALL)
        if not match:
            raise ValueError("No JSON array in response")
        result = json.loads(match.group())

    if not isinstance(result, list):
        raise ValueError(f"Expected a JSON array, got {type(result).__name__}")

    suggestions = []
    for item in result:
        if not isinstance(item, dict) or not str(item.get("title") or "").strip():
            continue
        suggestions.append({
            "title": str(item["title"]).strip(),
            "description": str(item.get("description") or ""),
            "priority": Priority.from_str(item.get("priority")).value,
        })
    return suggestions


class DeskAssistant:
    """Wraps a TextGenerator with the desk's prompts and fallbacks."""

    def __init__(self, generator: Optional[TextGenerator]):
        self.generator = generator

    def _generate(self, prompt: str, **options) -> str:
        if self.generator is None:
            raise GenerationError("No text generator configured")
        return self.generator.generate(prompt, **options)

    def analyze(self, entity: Entity, projects: List[Project], tasks: List[Task]) -> str:
        prompt = ANALYSIS_PROMPT.format(context=build_context(entity, projects, tasks))
        try:
            text = self._generate(prompt, temperature=0.7, top_p=0.8)
        except GenerationError as e:
            logger.error(f"Analysis for {entity.id} failed: {e}")
            return ANALYSIS_FAILED
        return text or NO_INSIGHTS

    def draft_sop(self, title: str, description: str) -> Optional[str]:
        """Generated procedure text, or None if generation failed."""
        try:
            return self._generate(SOP_PROMPT.format(title=title, description=description),
                                  temperature=0.5) or ""
        except GenerationError as e:
            logger.error(f"SOP draft for {title!r} failed: {e}")
            return None

    def suggest_tasks(self, project_name: str, project_description: str) -> List[Dict[str, Any]]:
        """Suggested tasks for a project; empty list on any failure."""
        prompt = SUGGESTION_PROMPT.format(name=project_name, description=project_description)
        try:
            response = self._generate(
                prompt,
                response_mime_type="application/json",
                response_schema=SUGGESTION_SCHEMA,
            )
            return parse_suggestions(response)
        except GenerationError as e:
            logger.error(f"Task suggestions for {project_name!r} failed: {e}")
        except ValueError as e:
            logger.error(f"Failed to parse task suggestions for {project_name!r}: {e}")
        return []
