"""Jinja2-based prompt template loader for the AI note flows.

Templates live in backend/prompts/ and are rendered with context variables.
They are reloaded on every call so prompts can be tuned without restarting the
server. Inline copies of each prompt are used when the directory is missing.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jinja2

logger = logging.getLogger(__name__)

# backend/noteify/services/prompt_loader.py -> backend/prompts/
DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent.parent.parent / "prompts"

INLINE_PROMPTS: Dict[str, str] = {
    "ai/categorize.md": """You are a helpful AI assistant that categorizes notes based on their content.

Given the following note, suggest a few relevant categories that would help the user organize their notes.

Note Title: {{ title }}
Note Content: {{ content }}

Format your response as a JSON object with a "categories" array of short labels and a "reasoning" field explaining why you chose these categories.
""",
    "ai/brainstorm.md": """You are an expert research assistant and writer. Your goal is to take a user's raw notes and transform them into a more detailed, well-structured, and insightful piece of content.

Analyze the user's note title and content.
- Expand on the ideas with more detail, examples, and related concepts.
- If the note is a list, add more context and explanation for each item.
- Refine the language, improve the structure, and correct any grammatical errors.
- Use markdown for formatting: double asterisks for bold text (**example**), underscores for italic text (_example_), and a hyphen for list items (- example).
- Maintain the original intent of the note, but elevate it to be more useful.

Respond with a JSON object with a single "rewritten_content" field holding ONLY the rewritten note, ready to be pasted back into the editor. No introductions or conclusions.

User's Note Title: {{ title }}
User's Note Content:
{{ content }}
""",
    "ai/find_notes.md": """You are a semantic search engine for a user's notes. Analyze the user's search description and the provided list of notes, and identify the IDs of all notes that are relevant to the query.

User's search description: "{{ description }}"

Here are the notes available (in JSON format):
{{ notes_json }}

Return a JSON object containing a "note_ids" array with the IDs of the most relevant notes. If no notes are relevant, return an empty array.
""",
    "ai/research.md": """You are an expert research assistant. Generate a new, comprehensive note on the user's topic.

1. Analyze the user's research topic.
2. Review the user's selected notes for any relevant context.
3. Combine that context with your own knowledge into a detailed, well-structured note.
4. Use markdown for all formatting: **bold**, _italic_, # Heading 1, ## Heading 2, and - list items.
5. Generate a concise, descriptive title for the new note.

User's research topic: "{{ topic }}"

User's selected notes for context (in JSON format):
{{ notes_json }}

Respond ONLY with a JSON object with "title" and "content" fields.
""",
}


class PromptLoaderError(Exception):
    """Raised when a prompt cannot be loaded."""

    pass


class PromptLoader:
    """Load and render Jinja2 prompt templates.

    Example:
        >>> loader = PromptLoader()
        >>> prompt = loader.load("ai/brainstorm.md", {"title": "Ideas", "content": "- one"})
    """

    def __init__(self, prompts_dir: Optional[Path] = None) -> None:
        self.prompts_dir = prompts_dir or DEFAULT_PROMPTS_DIR

        if self.prompts_dir.is_dir():
            self.env = jinja2.Environment(
                loader=jinja2.FileSystemLoader(str(self.prompts_dir)),
                autoescape=False,  # Prompts are markdown, not HTML
                auto_reload=True,
                keep_trailing_newline=True,
            )
            logger.debug(
                "PromptLoader initialized with filesystem templates",
                extra={"prompts_dir": str(self.prompts_dir)},
            )
        else:
            self.env = None
            logger.warning(
                "Prompts directory not found, using inline fallbacks",
                extra={"prompts_dir": str(self.prompts_dir)},
            )

    def load(self, path: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Render the template at ``path`` (e.g. "ai/research.md").

        Raises:
            PromptLoaderError: If the template cannot be loaded or rendered.
        """
        context = context or {}

        if self.env is not None:
            try:
                rendered = self.env.get_template(path).render(**context)
                logger.debug(
                    "Loaded prompt from filesystem",
                    extra={"path": path, "context_keys": list(context.keys())},
                )
                return rendered
            except jinja2.TemplateNotFound:
                logger.debug("Template not on disk, trying inline fallback", extra={"path": path})
            except jinja2.TemplateError as e:
                logger.error("Failed to render template", extra={"path": path, "error": str(e)})
                raise PromptLoaderError(f"Failed to render template {path}: {e}") from e

        return self._load_inline(path, context)

    def _load_inline(self, path: str, context: Dict[str, Any]) -> str:
        template_str = INLINE_PROMPTS.get(path)
        if template_str is None:
            logger.warning(
                "No inline fallback for prompt path",
                extra={"path": path, "available": list(INLINE_PROMPTS.keys())},
            )
            raise PromptLoaderError(
                f"Prompt not found: {path}. "
                f"Available inline prompts: {list(INLINE_PROMPTS.keys())}"
            )
        try:
            return jinja2.Template(template_str).render(**context)
        except jinja2.TemplateError as e:
            logger.error("Failed to render inline template", extra={"path": path, "error": str(e)})
            raise PromptLoaderError(f"Failed to render inline template {path}: {e}") from e


__all__ = ["PromptLoader", "PromptLoaderError", "DEFAULT_PROMPTS_DIR", "INLINE_PROMPTS"]
