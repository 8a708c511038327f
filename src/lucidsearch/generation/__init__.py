"""lucidsearch.generation

Answer-generation layer.

Modules
-------
context_builder
    Labelled context blocks under a word budget.
prompt_builder
    Named Jinja2 prompt templates, including the bundled ``prompts/default.json``.
llm_interface
    LLM wrappers and factory.
"""
