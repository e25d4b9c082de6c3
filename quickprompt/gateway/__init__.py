"""Provider Gateway and Response Normalizer.

Turns a provider-agnostic generation request into exactly one call to an
external LLM provider and recovers a structured prompt from the reply:
  - Provider profiles (static, read-only table)
  - Wire-format adapters (chat-completions, responses, messages,
    generate-content, sdk-call)
  - Transport + error classification
  - Preflight checks for local/custom endpoints
  - Response Normalizer (five-strategy parse cascade)
"""
