import json

import pytest

from lucidsearch.generation.prompt_builder import PromptBuilder, PromptTemplate


def test_bundled_template_renders_instruction_query_and_context():
    builder = PromptBuilder()

    names = builder.register_from_source("pkg:lucidsearch.generation:prompts/default.json")
    prompt = builder.build("lucid_answer", query="solar energy", context="CTX BLOCKS")

    assert names == ["lucid_answer"]
    assert prompt.startswith("INSTRUCTION : You are a helpful AI assistant")
    assert "in-text citations" in prompt
    assert prompt.endswith(". QUERY : solar energy. CONTEXT : CTX BLOCKS.")


def test_instruction_lists_are_joined_with_spaces():
    builder = PromptBuilder()
    builder.register_from_dict({"name": "t", "instruction": ["Be brief.", "Cite sources."]})

    assert builder.get_template("t").instruction == "Be brief. Cite sources."


def test_custom_body_receives_extra_variables():
    template = PromptTemplate("t", "Answer.", body="{{ instruction }} | {{ query }} | {{ context }} | {{ lang }}")

    assert template.render(query="q", context="c", lang="en") == "Answer. | q | c | en"


def test_register_from_file_resolves_relative_to_base_dir(tmp_path):
    (tmp_path / "prompts.json").write_text(
        json.dumps({"name": "file_prompt", "instruction": "Use the context."}), encoding="utf-8"
    )
    builder = PromptBuilder()

    assert builder.register_from_source("file:prompts.json", base_dir=tmp_path) == ["file_prompt"]
    assert builder.list_prompts() == ["file_prompt"]


@pytest.mark.parametrize(
    "data, error",
    [
        ({"instruction": "x"}, KeyError),
        ({"name": "x"}, KeyError),
        ({"name": " ", "instruction": "x"}, ValueError),
        ({"name": "x", "instruction": 3}, TypeError),
    ],
)
def test_invalid_definitions_are_rejected(data, error):
    with pytest.raises(error):
        PromptBuilder().register_from_dict(data)


def test_unknown_template_lists_available_names():
    builder = PromptBuilder()
    builder.register_from_dict({"name": "a", "instruction": "x"})

    with pytest.raises(KeyError, match=r"\[a\]"):
        builder.build("missing", query="q", context="c")


def test_missing_files_raise(tmp_path):
    builder = PromptBuilder()

    with pytest.raises(FileNotFoundError):
        builder.register_from_file(tmp_path / "none.json")
    with pytest.raises(FileNotFoundError):
        builder.register_from_source("pkg:lucidsearch.generation:prompts/none.json")
