"""Tests for content transformers."""

from __future__ import annotations

from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel
import pytest

from docsync import (
    AgentTransformer,
    FallbackTransformer,
    ReferenceDocument,
    StagedImage,
    TransformError,
)
from docsync.transformer import build_prompt, render_fallback, resolve_model, unwrap_code_fence


IMAGES = [StagedImage("Logo", "/assets/guide/Logo.png")]
REFS = [ReferenceDocument("Glossary", "Tea: a drink")]


def replying(text: str, prompts: list[str] | None = None) -> FunctionModel:
    def reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        if prompts is not None:
            prompts.append(str(messages[-1].parts[-1].content))
        return ModelResponse(parts=[TextPart(text)])

    return FunctionModel(reply)


def test_build_prompt_contains_all_material():
    prompt = build_prompt("  ## Intro\n\nHello  ", IMAGES, "# Old page", REFS)

    assert "## Additional instructions and context" in prompt
    assert "### Glossary\n\n```\nTea: a drink\n```" in prompt
    assert "Current content of the file:\n```\n# Old page\n```" in prompt
    assert "New/additional content:\n```\n## Intro\n\nHello\n```" in prompt
    assert "- Logo (path: /assets/guide/Logo.png)" in prompt


def test_build_prompt_names_the_page():
    prompt = build_prompt("Text", [], None, [], title="Getting Started")

    assert prompt.startswith("Page: Getting Started\n")


def test_build_prompt_omits_empty_sections():
    prompt = build_prompt("Text", [], None, [])

    assert "Page:" not in prompt
    assert "Additional instructions" not in prompt
    assert "Current content" not in prompt
    assert "Available images" not in prompt


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("```markdown\n# Title\n\nBody\n```", "# Title\n\nBody"),
        ("```md\n# Title\n```\n", "# Title"),
        ("```\n# Title\n```", "# Title"),
        ("# Title\n\n```python\ncode\n```", "# Title\n\n```python\ncode\n```"),
    ],
)
def test_unwrap_code_fence(text, expected):
    assert unwrap_code_fence(text) == expected


async def test_agent_transformer_sends_prompt_and_unwraps_output():
    prompts: list[str] = []
    model = replying("```markdown\n# Guide\n\nWelcome\n```", prompts)
    transformer = AgentTransformer(model, system_prompt="Be brief")

    body = await transformer.transform("## Intro\n\nHi", IMAGES, None, REFS)

    assert body == "# Guide\n\nWelcome"
    assert "New/additional content" in prompts[0]
    assert "Glossary" in prompts[0]


async def test_agent_transformer_with_test_model():
    transformer = AgentTransformer(TestModel(custom_output_text="# Generated"))

    assert await transformer.transform("text", [], None, []) == "# Generated"


async def test_empty_output_raises_transform_error():
    transformer = AgentTransformer(replying("```markdown\n  \n```"))

    with pytest.raises(TransformError):
        await transformer.transform("text", [], None, [])


def test_render_fallback_uses_first_heading():
    text = render_fallback("\n\n## Intro\n\nHello", IMAGES)

    assert text.startswith("---\ntitle: Intro\n---")
    assert "## Intro\n\nHello" in text
    assert text.endswith("## Images\n\n![Logo](/assets/guide/Logo.png)")


def test_render_fallback_default_title():
    assert render_fallback("plain text", []).startswith("---\ntitle: Content\n---")


def test_render_fallback_prefers_given_title():
    text = render_fallback("## Intro\n\nHello", [], "Getting Started")

    assert text.startswith("---\ntitle: Getting Started\n---")


async def test_fallback_transformer_recovers_from_failure():
    def fail(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        msg = "quota exceeded"
        raise RuntimeError(msg)

    transformer = FallbackTransformer(AgentTransformer(FunctionModel(fail)))

    body = await transformer.transform("## Intro\n\nHello", [], None, [])

    assert body.startswith("---\ntitle: Intro\n---")


async def test_fallback_transformer_passes_through_success():
    transformer = FallbackTransformer(AgentTransformer(replying("# Fine")))

    assert await transformer.transform("text", [], None, []) == "# Fine"


def test_resolve_model():
    assert resolve_model("openai:gpt-4o", "key") == "openai:gpt-4o"
    assert resolve_model("google-gla:gemini-2.5-pro") == "google-gla:gemini-2.5-pro"

    model = resolve_model("google-gla:gemini-2.5-pro", "key")

    assert not isinstance(model, str)
    assert model.model_name == "gemini-2.5-pro"


async def test_fallback_document_is_titled_after_unit():
    def fail(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        msg = "quota exceeded"
        raise RuntimeError(msg)

    transformer = FallbackTransformer(AgentTransformer(FunctionModel(fail)))

    body = await transformer.transform("## Intro\n\nHello", [], None, [], title="Guide")

    assert body.startswith("---\ntitle: Guide\n---")
    assert "## Intro\n\nHello" in body
