"""Meta-prompt construction.

Turns a short idea, a subject type and a target model class into the
system/user instructions sent to a provider:
  1. Subject scaffolds (dimensions + output hints)
  2. Model-class constraints (rules, verbosity, length guidance)
  3. Improvement checklist
"""
