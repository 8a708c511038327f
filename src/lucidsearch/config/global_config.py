"""lucidsearch.config.global_config

Global configuration loader and accessors.

This module defines a lightweight wrapper around a raw YAML configuration
dictionary, providing validated, cached access to the configuration sections
used across the pipeline.

Environment variables of the form ``${VAR}`` are expanded recursively in all
string values at load time.

Classes
-------
GlobalConfig
    Loader and accessor for global project configuration.
"""

import os
import yaml
from pathlib import Path
from functools import cached_property
from typing import Any

from lucidsearch.common.errors import ConfigurationError

DEFAULT_SEARCH_ENDPOINT = "https://www.googleapis.com/customsearch/v1"

def _expand_env(obj):
    """Recursively expand environment variables in a nested structure.

    Parameters
    ----------
    obj : Any
        Object to expand. Supported types are dictionaries, lists, and strings.
        Other types are returned unchanged.

    Returns
    -------
    Any
        A structure of the same shape as ``obj`` with environment variables
        expanded in all string values.
    """
    if isinstance(obj, dict):
        return {k: _expand_env(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env(v) for v in obj]
    if isinstance(obj, str):
        return os.path.expandvars(obj)
    return obj

def _is_unset(value: Any) -> bool:
    # os.path.expandvars leaves unknown variables untouched, e.g. "${GOOGLE_API_KEY}".
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or (stripped.startswith("${") and stripped.endswith("}"))
    return False

def _section(raw: dict, name: str) -> dict:
    section = raw.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise TypeError(f"'{name}' must be a mapping, got {type(section)}.")
    return section

class GlobalConfig:
    """Loader and accessor for global project configuration.

    Parameters
    ----------
    raw : dict
        Raw configuration data as loaded from a YAML file.
    config_path : Path or None, optional
        Absolute path of the loaded file, used to resolve relative paths
        (reference dataset, prompt files).
    """

    def __init__(
            self,
            raw: dict,
            config_path: Path | None = None,
        ):
        self.raw = raw or {}
        self.config_path = config_path

    @classmethod
    def load(
            cls,
            path: str | Path,
        ) -> "GlobalConfig":
        """Load configuration from a YAML file.

        Parameters
        ----------
        path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        GlobalConfig
            An instance initialised with the loaded and environment-expanded data.

        Raises
        ------
        ConfigurationError
            If the file does not exist or does not contain a mapping.
        """
        cfg_path = Path(path).expanduser().resolve()
        if not cfg_path.exists():
            raise ConfigurationError(f"Configuration file not found: {cfg_path}")
        with cfg_path.open("r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {cfg_path}")
        data = _expand_env(data)
        return cls(data, config_path=cfg_path)

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve ``value`` relative to the config file directory when it is relative."""
        p = Path(value).expanduser()
        if p.is_absolute() or self.config_path is None:
            return p
        return (self.config_path.parent / p).resolve()

    @cached_property
    def search(self) -> dict:
        """Return the search section with credentials checked.

        Returns
        -------
        dict
            The ``search`` section. ``sources`` defaults to a general ``web``
            source (8 results) and a specialised ``ted`` source (3 results).

        Raises
        ------
        KeyError
            If ``api_key`` or ``cx`` is missing or left as an unexpanded
            ``${VAR}`` placeholder.
        TypeError
            If ``sources`` is not a list of mappings.
        """
        section = dict(_section(self.raw, "search"))
        for key in ("api_key", "cx"):
            if _is_unset(section.get(key)):
                raise KeyError(f"Missing 'search.{key}' in configuration.")

        section.setdefault("endpoint", DEFAULT_SEARCH_ENDPOINT)
        section.setdefault("timeout", 10)
        section.setdefault("deduplicate_links", True)

        sources = section.get("sources")
        if sources is None:
            sources = [
                {"name": "web", "max_results": 8},
                {"name": "ted", "specialized": True, "max_results": 3, "query_template": "TED Talk {query}"},
            ]
        if not isinstance(sources, list) or not sources:
            raise TypeError("'search.sources' must be a non-empty list of mappings.")
        for i, item in enumerate(sources):
            if not isinstance(item, dict):
                raise TypeError(f"Search source #{i} must be a mapping.")
            if not isinstance(item.get("name"), str) or not item["name"].strip():
                raise TypeError(f"Search source #{i} must have a non-empty 'name'.")
        section["sources"] = sources
        return section

    @cached_property
    def fetch(self) -> dict:
        """Return the content-fetch section (timeouts, attempts, selectors)."""
        return dict(_section(self.raw, "fetch"))

    @cached_property
    def talks(self) -> dict:
        """Return the talk-dataset section.

        Raises
        ------
        KeyError
            If ``talks.path`` is missing.
        """
        section = dict(_section(self.raw, "talks"))
        if _is_unset(section.get("path")):
            raise KeyError("Missing 'talks.path' in configuration.")
        section.setdefault("threshold", 70.0)
        section.setdefault("strategy", "first")
        if section["strategy"] not in {"first", "best"}:
            raise ValueError(f"'talks.strategy' must be 'first' or 'best', got {section['strategy']!r}.")
        return section

    @cached_property
    def talks_path(self) -> Path:
        return self.resolve_path(self.talks["path"])

    @cached_property
    def embedder(self) -> dict:
        """Return the embedder configuration section.

        Raises
        ------
        KeyError
            If the section or its ``model_name`` is missing.
        """
        section = self.raw.get("embedder")
        if not isinstance(section, dict):
            raise KeyError("Missing 'embedder' section in configuration.")
        if _is_unset(section.get("model_name")):
            raise KeyError("Missing 'embedder.model_name' in configuration.")
        return section

    @cached_property
    def generator_llm(self) -> dict:
        """Return the answer-generation LLM configuration section.

        Raises
        ------
        KeyError
            If the section is missing.
        """
        section = self.raw.get("generator_llm")
        if not isinstance(section, dict):
            raise KeyError("Missing 'generator_llm' section in configuration.")
        return section

    @cached_property
    def vector_store(self) -> dict:
        """Return the vector-store section.

        Raises
        ------
        KeyError
            If ``dimension`` is missing.
        ValueError
            If ``dimension`` is not a positive integer.
        """
        section = dict(_section(self.raw, "vector_store"))
        if section.get("dimension") is None:
            raise KeyError("Missing 'vector_store.dimension' in configuration.")
        try:
            dimension = int(section["dimension"])
        except (TypeError, ValueError) as e:
            raise ValueError("'vector_store.dimension' must be an integer.") from e
        if dimension <= 0:
            raise ValueError("'vector_store.dimension' must be positive.")
        section["dimension"] = dimension
        section.setdefault("collection_name", "embeddings")
        return section

    @cached_property
    def ingestion(self) -> dict:
        """Return chunking and per-document limits."""
        section = dict(_section(self.raw, "ingestion"))
        section.setdefault("max_bytes", 9000)
        section.setdefault("max_chunks", 5)
        section.setdefault("flush_limit", 9990)
        return section

    @cached_property
    def retriever(self) -> dict:
        """Return similarity-search settings."""
        section = dict(_section(self.raw, "retriever"))
        section.setdefault("limit", 10)
        section.setdefault("score_threshold", 0.6)
        section.setdefault("noise_markers", ["::", "{", "}"])
        section.setdefault("scope_to_run", True)
        return section

    @cached_property
    def pipeline(self) -> dict:
        """Return orchestrator settings (worker pool, context budget, prompt)."""
        section = dict(_section(self.raw, "pipeline"))
        section.setdefault("max_workers", 8)
        section.setdefault("max_context_words", 8192)
        section.setdefault("prompt_name", "lucid_answer")
        if int(section["max_workers"]) < 1:
            raise ValueError("'pipeline.max_workers' must be >= 1.")
        return section

    @cached_property
    def prompts(self):
        """Return the prompts source entry.

        Returns
        -------
        str or list[str]
            A single source spec or a list of them. Defaults to the bundled
            package template.
        """
        return self.raw.get("prompts") or "pkg:lucidsearch.generation:prompts/default.json"

    @cached_property
    def logging(self) -> dict:
        section = dict(_section(self.raw, "logging"))
        section.setdefault("level", "INFO")
        return section

    def validate(self) -> None:
        """Touch every required section so configuration errors surface at startup.

        Raises
        ------
        ConfigurationError
            Wrapping the first ``KeyError``/``TypeError``/``ValueError`` raised
            by a section accessor.
        """
        for name in ("search", "fetch", "talks", "embedder", "generator_llm",
                     "vector_store", "ingestion", "retriever", "pipeline"):
            try:
                getattr(self, name)
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid configuration section '{name}': {e}") from e
