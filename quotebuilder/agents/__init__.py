"""External service integrations.

Modules:
    autofill    — LLM-assisted quotation fill from a free-text prompt
"""
