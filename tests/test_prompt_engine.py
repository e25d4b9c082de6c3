"""Tests for meta-prompt construction."""

from __future__ import annotations

import pytest

from quickprompt.prompt_engine.builder import (
    IMPROVEMENT_CHECKLIST,
    SYSTEM_INSTRUCTION,
    build_meta_prompt,
    get_model_types,
    get_subject_types,
)
from quickprompt.prompt_engine.scaffolds import MODEL_CONSTRAINTS, SUBJECT_SCAFFOLDS


class TestScaffolds:
    def test_subject_keys(self):
        assert list(SUBJECT_SCAFFOLDS) == [
            "development",
            "writing",
            "strategy",
            "product",
            "design",
            "marketing",
            "research",
            "data-analysis",
        ]

    def test_model_keys(self):
        assert list(MODEL_CONSTRAINTS) == ["frontier", "llm", "slm", "paid", "open-source"]

    def test_tables_read_only(self):
        with pytest.raises(TypeError):
            SUBJECT_SCAFFOLDS["new"] = SUBJECT_SCAFFOLDS["writing"]

    def test_every_scaffold_has_dimensions(self):
        for scaffold in SUBJECT_SCAFFOLDS.values():
            assert scaffold.dimensions
            assert scaffold.output_hints

    def test_verbosity_levels(self):
        assert {m.verbosity for m in MODEL_CONSTRAINTS.values()} == {"low", "medium", "high"}


class TestBuildMetaPrompt:
    def test_system_instruction_names_all_keys(self):
        meta = build_meta_prompt("development", "A CLI that renames photos by EXIF date")
        assert meta.system == SYSTEM_INSTRUCTION
        for key in ("prompt_plain", "prompt_structured", "prompt_json", "optimization_notes", "token_estimate"):
            assert f'"{key}"' in meta.system

    def test_user_instruction_contents(self):
        meta = build_meta_prompt("data-analysis", "Churn analysis for a SaaS product", "slm")
        assert "**Subject Type:** Data Analysis" in meta.user
        assert "**Base Idea:** Churn analysis for a SaaS product" in meta.user
        assert "**Target Model Class:** SLM (Small Model)" in meta.user
        assert "- Cleaning and preprocessing needs" in meta.user
        assert "- Keep prompts short and explicit." in meta.user
        assert "**Verbosity Level:** low" in meta.user
        assert "under 600 tokens" in meta.user

    def test_checklist_numbered(self):
        meta = build_meta_prompt("writing", "Newsletter intro")
        for i, item in enumerate(IMPROVEMENT_CHECKLIST, start=1):
            assert f"{i}. {item}" in meta.user

    def test_unknown_model_type_falls_back_to_llm(self):
        meta = build_meta_prompt("writing", "Newsletter intro", "quantum")
        assert "**Target Model Class:** LLM (General)" in meta.user
        assert "**Verbosity Level:** medium" in meta.user

    def test_unknown_subject_rejected(self):
        with pytest.raises(ValueError):
            build_meta_prompt("cooking", "Pasta")


class TestOptions:
    def test_subject_types(self):
        options = get_subject_types()
        assert options[0] == {"value": "development", "label": "Development"}
        assert {"value": "data-analysis", "label": "Data Analysis"} in options

    def test_model_types(self):
        options = get_model_types()
        assert len(options) == 5
        assert {"value": "open-source", "label": "Open-source Model"} in options
