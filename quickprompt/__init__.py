"""QuickPrompt: idea to model-ready prompt via external LLM providers."""
