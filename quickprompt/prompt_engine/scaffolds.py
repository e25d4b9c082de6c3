"""Static configuration tables for meta-prompt construction.

Subject scaffolds list the dimensions a good prompt for that subject
should cover; model constraints tune verbosity and structure for the
target model class. Treated as read-only data.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class SubjectScaffold:
    label: str
    dimensions: tuple[str, ...]
    output_hints: str


@dataclass(frozen=True)
class ModelConstraint:
    label: str
    instructions: tuple[str, ...]
    verbosity: str  # low | medium | high
    length_guidance: str


SUBJECT_SCAFFOLDS: Mapping[str, SubjectScaffold] = MappingProxyType(
    {
        "development": SubjectScaffold(
            label="Development",
            dimensions=(
                "Technical architecture and design patterns",
                "Input/output specifications",
                "Error handling and edge cases",
                "Testing strategy",
                "Performance considerations",
                "Security implications",
                "Code quality and maintainability",
            ),
            output_hints="Include code examples, file structure, and implementation steps.",
        ),
        "writing": SubjectScaffold(
            label="Writing",
            dimensions=(
                "Audience and tone",
                "Structure and flow",
                "Key messages and themes",
                "Voice and style guidelines",
                "Length and format constraints",
                "Call to action or conclusion goal",
            ),
            output_hints="Specify tone, word count range, and structural format.",
        ),
        "strategy": SubjectScaffold(
            label="Strategy",
            dimensions=(
                "Current state assessment",
                "Goals and success metrics",
                "Stakeholder analysis",
                "Risk assessment and mitigation",
                "Timeline and milestones",
                "Resource requirements",
                "Competitive landscape",
            ),
            output_hints="Include frameworks, decision matrices, and actionable recommendations.",
        ),
        "product": SubjectScaffold(
            label="Product",
            dimensions=(
                "User personas and needs",
                "Problem statement",
                "Feature requirements (MoSCoW)",
                "Success metrics and KPIs",
                "Technical feasibility",
                "Go-to-market considerations",
                "Iteration and feedback loops",
            ),
            output_hints="Include user stories, acceptance criteria, and prioritization.",
        ),
        "design": SubjectScaffold(
            label="Design",
            dimensions=(
                "User research and personas",
                "Information architecture",
                "Visual hierarchy and layout",
                "Interaction patterns",
                "Accessibility requirements",
                "Brand alignment",
                "Responsive considerations",
            ),
            output_hints="Describe visual specs, interaction flows, and component structure.",
        ),
        "marketing": SubjectScaffold(
            label="Marketing",
            dimensions=(
                "Target audience segments",
                "Channel strategy",
                "Budget tiers and allocation",
                "Timeline and campaign phases",
                "KPIs and measurement plan",
                "Messaging and positioning",
                "A/B testing and experimentation plan",
            ),
            output_hints="Include audience profiles, channel recommendations, and metrics.",
        ),
        "research": SubjectScaffold(
            label="Research",
            dimensions=(
                "Research question and hypothesis",
                "Methodology and approach",
                "Data sources and collection",
                "Analysis framework",
                "Limitations and bias considerations",
                "Expected deliverables",
                "Literature and prior work context",
            ),
            output_hints="Specify methodology, data requirements, and analysis approach.",
        ),
        "data-analysis": SubjectScaffold(
            label="Data Analysis",
            dimensions=(
                "Data sources and formats",
                "Cleaning and preprocessing needs",
                "Analysis techniques and models",
                "Visualization requirements",
                "Statistical rigor and validation",
                "Insights and recommendations format",
                "Reproducibility and documentation",
            ),
            output_hints="Include data specs, analysis steps, and visualization descriptions.",
        ),
    }
)


MODEL_CONSTRAINTS: Mapping[str, ModelConstraint] = MappingProxyType(
    {
        "frontier": ModelConstraint(
            label="Frontier Model",
            instructions=(
                "Use extended context and multi-step reasoning chains.",
                "Include tool-use instructions where relevant.",
                "Allow higher abstraction and nuanced directives.",
                "Leverage system, developer, and user message segments.",
                "Include meta-reasoning and self-evaluation steps.",
            ),
            verbosity="high",
            length_guidance="Prompts can be detailed and lengthy (2000+ tokens). Use layered instructions.",
        ),
        "llm": ModelConstraint(
            label="LLM (General)",
            instructions=(
                "Use balanced verbosity with clear structure.",
                "Prefer structured outputs (headings, lists, sections).",
                "Moderate reasoning depth, explain key steps.",
                "Avoid overly abstract or ambiguous phrasing.",
            ),
            verbosity="medium",
            length_guidance="Prompts should be well-structured, moderate length (800-1500 tokens).",
        ),
        "slm": ModelConstraint(
            label="SLM (Small Model)",
            instructions=(
                "Keep prompts short and explicit.",
                "Use simple, direct language.",
                "Provide clear step-by-step sequences.",
                "Minimize branching logic and conditionals.",
                "Avoid ambiguity, be very literal.",
            ),
            verbosity="low",
            length_guidance="Prompts should be concise (under 600 tokens). Every word must count.",
        ),
        "paid": ModelConstraint(
            label="Paid / Premium Model",
            instructions=(
                "Maximize token utilization with rich context.",
                "Include advanced instruction layering.",
                "Add contextual framing and background.",
                "Use sophisticated reasoning directives.",
                "Include evaluation and self-correction steps.",
            ),
            verbosity="high",
            length_guidance="Prompts can be extensive. Leverage premium capabilities fully.",
        ),
        "open-source": ModelConstraint(
            label="Open-source Model",
            instructions=(
                "Use simpler syntax and direct instructions.",
                "Keep token footprint low.",
                "Include explicit formatting instructions.",
                "Avoid complex nested reasoning.",
                "Be very specific about expected output format.",
            ),
            verbosity="low",
            length_guidance="Prompts should be straightforward (under 800 tokens). Explicit formatting.",
        ),
    }
)

DEFAULT_MODEL_TYPE = "llm"
