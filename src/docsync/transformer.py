"""Content transformers turning raw material into finished documents."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol

from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings
import yaml

from docsync.config import DEFAULT_SYSTEM_PROMPT
from docsync.exceptions import TransformError
from docsync.log import get_logger


if TYPE_CHECKING:
    from pydantic_ai.models import Model

    from docsync.models import ReferenceDocument, StagedImage


logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"^\s*```(?:markdown|md)?[ \t]*\n(.*?)\n```\s*$", re.DOTALL)
_HEADING_PATTERN = re.compile(r"^##?\s+(.+)$", re.MULTILINE)
DEFAULT_MODEL_SETTINGS = ModelSettings(temperature=0.7, top_p=0.95, max_tokens=16384)


class ContentTransformer(Protocol):
    """Maps raw material and context to finished document text."""

    async def transform(
        self,
        raw_text: str,
        images: list[StagedImage],
        existing_body: str | None,
        reference_docs: list[ReferenceDocument],
        *,
        title: str | None = None,
    ) -> str:
        """Produce the new document body.

        Args:
            raw_text: Assembled sections of the unit's items
            images: Images staged for the unit
            existing_body: Current document body without watermark
            reference_docs: Context documents shared by all units of the run
            title: Display name of the unit the document belongs to
        """
        ...


def resolve_model(model: str | Model, api_key: str | None = None) -> str | Model:
    """Bind an explicit API key to Gemini model names.

    Other model names are passed through for pydantic-ai to infer.
    """
    if isinstance(model, str) and api_key and model.startswith("google-gla:"):
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        model_name = model.removeprefix("google-gla:")
        return GoogleModel(model_name, provider=GoogleProvider(api_key=api_key))
    return model


def build_prompt(
    raw_text: str,
    images: list[StagedImage],
    existing_body: str | None,
    reference_docs: list[ReferenceDocument],
    title: str | None = None,
) -> str:
    """Build the transformation prompt from the unit's material."""
    parts: list[str] = []
    if title:
        parts.append(f"Page: {title}\n")

    if reference_docs:
        parts.append("## Additional instructions and context")
        parts.append("Take the following documents into account when writing the content:\n")
        for doc in reference_docs:
            parts.append(f"### {doc.name}\n\n```\n{doc.content}\n```\n")

    if existing_body:
        parts.append(f"Current content of the file:\n```\n{existing_body}\n```\n")

    parts.append(f"New/additional content:\n```\n{raw_text.strip()}\n```")

    if images:
        image_list = "\n".join(f"- {img.name} (path: {img.path})" for img in images)
        parts.append(f"\nAvailable images:\n{image_list}")

    return "\n".join(parts)


def unwrap_code_fence(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole document."""
    if match := _FENCE_PATTERN.match(text):
        return match.group(1)
    return text


class AgentTransformer:
    """Transformer backed by a pydantic-ai agent."""

    def __init__(
        self,
        model: str | Model,
        *,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        model_settings: ModelSettings | None = None,
    ):
        """Initialize the transformer.

        Args:
            model: Model name or pydantic-ai model instance
            system_prompt: Editorial instructions for the model
            model_settings: Sampling settings (defaults to a moderately creative setup)
        """
        self.system_prompt = system_prompt
        self._agent = Agent(
            model,
            system_prompt=system_prompt,
            model_settings=model_settings or DEFAULT_MODEL_SETTINGS,
        )

    async def transform(
        self,
        raw_text: str,
        images: list[StagedImage],
        existing_body: str | None,
        reference_docs: list[ReferenceDocument],
        *,
        title: str | None = None,
    ) -> str:
        prompt = build_prompt(raw_text, images, existing_body, reference_docs, title)
        logger.debug(
            "Starting transformation",
            prompt_length=len(prompt),
            reference_docs=len(reference_docs),
            images=len(images),
        )
        result = await self._agent.run(prompt)
        content = unwrap_code_fence(result.output).strip()
        if not content:
            msg = "Model returned an empty document"
            raise TransformError(msg)
        logger.info("Transformation finished", length=len(content))
        return content


def render_fallback(raw_text: str, images: list[StagedImage], title: str | None = None) -> str:
    """Render a deterministic document: front matter, raw text and an image gallery.

    Without a title, the first heading of the raw text names the document.
    """
    if not title:
        heading = _HEADING_PATTERN.search(raw_text)
        title = heading.group(1).strip() if heading else "Content"
    front_matter = yaml.safe_dump({"title": title}, allow_unicode=True, sort_keys=False)
    parts = [f"---\n{front_matter}---", raw_text.strip()]
    if images:
        gallery = "\n".join(f"![{img.name}]({img.path})" for img in images)
        parts.append(f"## Images\n\n{gallery}")
    return "\n\n".join(part for part in parts if part)


class FallbackTransformer:
    """Wraps a transformer and renders a deterministic document if it fails."""

    def __init__(self, transformer: ContentTransformer):
        self.transformer = transformer

    async def transform(
        self,
        raw_text: str,
        images: list[StagedImage],
        existing_body: str | None,
        reference_docs: list[ReferenceDocument],
        *,
        title: str | None = None,
    ) -> str:
        try:
            return await self.transformer.transform(
                raw_text, images, existing_body, reference_docs, title=title
            )
        except Exception:
            logger.exception("Transformation failed, rendering fallback document", title=title)
            return render_fallback(raw_text, images, title)
