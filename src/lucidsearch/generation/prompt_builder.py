"""lucidsearch.generation.prompt_builder

Prompt template definitions and rendering utilities.

This module provides lightweight abstractions for defining, registering and
rendering the named prompt templates sent to the answer LLM. A template
carries a fixed instruction block and a Jinja2 body that places the
instruction, the user query and the assembled context.

Classes
-------
PromptTemplate
    Represents a single named prompt template.
PromptBuilder
    Registry and factory for prompt templates.
"""
import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Template

logger = logging.getLogger(__name__)

DEFAULT_BODY = "INSTRUCTION : {{ instruction }}. QUERY : {{ query }}. CONTEXT : {{ context }}."


class PromptTemplate:
    """Represents a single named prompt template.

    Parameters
    ----------
    name : str
        Name of the template.
    instruction : str
        Task instruction given to the model.
    body : str, optional
        Jinja2 template. It receives ``instruction``, ``query``, ``context``
        and any extra keyword passed to :meth:`render`.
    """

    def __init__(
            self,
            name: str,
            instruction: str,
            body: Optional[str] = None,
        ):
        self.name = name
        self.instruction = instruction
        self.body = body or DEFAULT_BODY
        self._template = Template(self.body)

    def render(self, *, query: str, context: str, **kwargs: Any) -> str:
        """Render the prompt for ``query`` grounded on ``context``."""
        return self._template.render(
            instruction=self.instruction,
            query=query,
            context=context,
            **kwargs,
        )


class PromptBuilder:
    """Registry and factory for prompt templates.

    Templates are registered from dictionaries, JSON files or JSON resources
    bundled with a package, then rendered by name.
    """

    def __init__(self):
        self.templates: Dict[str, PromptTemplate] = {}

    def register_from_dict(self, data: Dict[str, Any]) -> str:
        """Register a new template from a dictionary.

        Parameters
        ----------
        data : dict[str, Any]
            Mapping with keys ``"name"``, ``"instruction"`` and optionally
            ``"body"``.

        Returns
        -------
        str
            The registered template name.

        Raises
        ------
        KeyError
            If ``"name"`` or ``"instruction"`` is missing.
        TypeError
            If a field has the wrong type.
        ValueError
            If ``"name"`` is empty.
        """
        for key in ("name", "instruction"):
            if key not in data:
                raise KeyError(f"Template definition missing required key: '{key}'")

        name = data["name"]
        if not isinstance(name, str):
            raise TypeError(f"Template 'name' must be a str, got {type(name)!r}")
        if not name.strip():
            raise ValueError("Template 'name' must be a non-empty string")

        instruction = data["instruction"]
        if isinstance(instruction, list):
            instruction = " ".join(str(line) for line in instruction)
        if not isinstance(instruction, str):
            raise TypeError(f"Template 'instruction' must be a str or list of str, got {type(instruction)!r}")

        body = data.get("body")
        if body is not None and not isinstance(body, str):
            raise TypeError(f"Template 'body' must be a str or None, got {type(body)!r}")

        if name in self.templates:
            logger.warning("Overwriting existing prompt template: %s", name)
        self.templates[name] = PromptTemplate(name=name, instruction=instruction, body=body)
        return name

    def _register_payload(self, data: Any, origin: str) -> List[str]:
        if isinstance(data, dict):
            return [self.register_from_dict(data)]
        if isinstance(data, list):
            registered: List[str] = []
            for item in data:
                if not isinstance(item, dict):
                    raise TypeError(f"Template list items must be dicts, got {type(item)!r} in {origin}")
                registered.append(self.register_from_dict(item))
            return registered
        raise TypeError(f"{origin} must contain an object or list of objects, got {type(data)!r}")

    def register_from_file(self, path: Union[Path, str], base_dir: Optional[Path] = None) -> List[str]:
        """Load and register templates from a JSON file.

        Parameters
        ----------
        path : Path | str
            JSON file holding one template object or a list of them.
        base_dir : Path | None, optional
            Directory used to resolve a relative ``path``.

        Returns
        -------
        list[str]
            Names of templates registered from this file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        ValueError
            If the file is not ``.json``.
        """
        p = Path(path)
        if not p.is_absolute() and base_dir is not None:
            p = base_dir / p
        p = p.resolve()
        if not p.exists():
            raise FileNotFoundError(f"Prompt file not found: {p}")
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported file type: {p.suffix}")

        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return self._register_payload(data, str(p))

    def register_from_package(self, package: str, resource_path: str) -> List[str]:
        """Load and register templates from a JSON resource bundled in ``package``.

        Raises
        ------
        FileNotFoundError
            If the resource does not exist.
        ValueError
            If the resource is not ``.json``.
        """
        if not resource_path.lower().endswith(".json"):
            raise ValueError(f"Unsupported resource type: {resource_path}")

        res = resources.files(package).joinpath(resource_path)
        if not res.is_file():
            raise FileNotFoundError(f"Prompt resource not found: pkg:{package}:{resource_path}")

        data = json.loads(res.read_text(encoding="utf-8"))
        return self._register_payload(data, f"pkg:{package}:{resource_path}")

    def register_from_source(self, source: str, base_dir: Optional[Path] = None) -> List[str]:
        """Register templates from a source spec.

        Supported formats
        -----------------
        - ``pkg:<package>:<resource_path>``
        - ``file:<path>``
        - ``<path>`` (plain filesystem path)
        """
        if not isinstance(source, str):
            raise TypeError(f"source must be a str, got {type(source)!r}")

        if source.startswith("pkg:"):
            rest = source[len("pkg:"):]
            if ":" not in rest:
                raise ValueError("pkg: sources must be of the form 'pkg:<package>:<resource_path>'")
            package, resource_path = rest.split(":", 1)
            return self.register_from_package(package.strip(), resource_path.strip())

        if source.startswith("file:"):
            return self.register_from_file(Path(source[len("file:"):].strip()), base_dir=base_dir)

        return self.register_from_file(Path(source), base_dir=base_dir)

    def list_prompts(self) -> List[str]:
        return sorted(self.templates.keys())

    def get_template(self, name: str) -> PromptTemplate:
        """Get a registered template by name.

        Raises
        ------
        KeyError
            If no template is registered under ``name``.
        """
        if name not in self.templates:
            available = ", ".join(self.list_prompts())
            raise KeyError(f"No template registered under name: {name}. Available: [{available}]")
        return self.templates[name]

    def build(self, name: str, *, query: str, context: str, **kwargs: Any) -> str:
        """Render the template registered under ``name``."""
        return self.get_template(name).render(query=query, context=context, **kwargs)


__all__ = ["PromptTemplate", "PromptBuilder", "DEFAULT_BODY"]
