"""Meta-prompt builder: idea + subject + model class → system/user instructions."""

from __future__ import annotations

from dataclasses import dataclass

from quickprompt.prompt_engine.scaffolds import (
    DEFAULT_MODEL_TYPE,
    MODEL_CONSTRAINTS,
    SUBJECT_SCAFFOLDS,
)

SYSTEM_INSTRUCTION = """You are an expert prompt engineer. Your task is to transform a simple idea into a high-quality, production-ready prompt.

You must return a valid JSON object with exactly these keys:

- "prompt_plain": A complete, copy-paste-ready prompt written as natural plain text. NO markdown syntax, NO hashtags, NO bullet symbols (*, -), NO bold/italic markers (**, __), NO code fences. Use regular paragraphs, numbered lists with "1." format, and line breaks for separation. This should read like a clean document someone would paste into any chat interface.

- "prompt_structured": The same prompt but formatted with clear markdown sections (## headings, **bold**, bullet points, numbered steps, code fences where appropriate). Make it scannable and well-organized for display in a markdown renderer.

- "prompt_json": A JSON object with keys like "system", "user", "constraints", "output_format", "evaluation_criteria" that could be used programmatically by an agent or API.

- "optimization_notes": A brief explanation of what optimizations were applied and why.

- "token_estimate": An integer estimating the token count of the plain prompt.

Return ONLY the JSON object. No markdown fences, no explanation outside the JSON."""

IMPROVEMENT_CHECKLIST = (
    "Clarify the objective explicitly",
    "Define expected deliverables",
    "Specify the output format",
    "Add relevant constraints",
    "Include evaluation criteria or success conditions",
    "Address potential edge cases",
    "Include failure handling instructions where appropriate",
    "Add step-by-step reasoning directives if the model class supports it",
)


@dataclass(frozen=True)
class MetaPrompt:
    system: str
    user: str


def _bullets(items) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_meta_prompt(subject_type: str, idea: str, model_type: str = DEFAULT_MODEL_TYPE) -> MetaPrompt:
    """Build the instructions sent to the provider.

    Unknown model classes fall back to the general "llm" class.

    Raises:
        ValueError: if ``subject_type`` is not a known scaffold.
    """
    subject = SUBJECT_SCAFFOLDS.get(subject_type)
    if subject is None:
        raise ValueError(f"Unknown subject type: {subject_type}")
    model = MODEL_CONSTRAINTS.get(model_type) or MODEL_CONSTRAINTS[DEFAULT_MODEL_TYPE]

    checklist = "\n".join(f"{i}. {item}" for i, item in enumerate(IMPROVEMENT_CHECKLIST, start=1))

    user = f"""Transform this idea into a high-quality prompt:

**Subject Type:** {subject.label}
**Base Idea:** {idea}
**Target Model Class:** {model.label}

**Subject-Specific Dimensions to Address:**
{_bullets(subject.dimensions)}

**Output Hints:** {subject.output_hints}

**Model-Specific Optimization Rules:**
{_bullets(model.instructions)}

**Verbosity Level:** {model.verbosity}
**Prompt Length Guidance:** {model.length_guidance}

**Prompt Improvement Checklist: the generated prompt MUST:**
{checklist}

Generate the optimized prompt now. Return only the JSON object."""

    return MetaPrompt(system=SYSTEM_INSTRUCTION, user=user)


def get_subject_types() -> list[dict[str, str]]:
    return [{"value": key, "label": s.label} for key, s in SUBJECT_SCAFFOLDS.items()]


def get_model_types() -> list[dict[str, str]]:
    return [{"value": key, "label": m.label} for key, m in MODEL_CONSTRAINTS.items()]
