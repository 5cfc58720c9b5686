"""Action kinds, their value types and per-kind request adapters.

The adapter registry lives in ``openai_extension.actions.registry``.
"""
