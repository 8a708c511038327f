import textwrap

import pytest

from lucidsearch.common.errors import ConfigurationError
from lucidsearch.config import GlobalConfig

BASE_YAML = """
search:
  api_key: ${LUCID_TEST_GOOGLE_KEY}
  cx: cx-123
talks:
  path: talks.json
embedder:
  model_name: text-embedding-004
  api_base: http://localhost:8080/v1
generator_llm:
  model_name: gemini-2.0-flash
vector_store:
  dimension: 768
"""


def _write(tmp_path, content=BASE_YAML):
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def test_load_expands_environment_variables(tmp_path, monkeypatch):
    monkeypatch.setenv("LUCID_TEST_GOOGLE_KEY", "secret")

    cfg = GlobalConfig.load(_write(tmp_path))

    assert cfg.search["api_key"] == "secret"
    cfg.validate()


def test_unset_credentials_fail_validation(tmp_path, monkeypatch):
    """
    An unexpanded ``${VAR}`` placeholder counts as missing.
    """
    monkeypatch.delenv("LUCID_TEST_GOOGLE_KEY", raising=False)
    cfg = GlobalConfig.load(_write(tmp_path))

    with pytest.raises(KeyError):
        cfg.search
    with pytest.raises(ConfigurationError, match="search"):
        cfg.validate()


def test_defaults_are_filled_in(tmp_path, monkeypatch):
    monkeypatch.setenv("LUCID_TEST_GOOGLE_KEY", "secret")
    cfg = GlobalConfig.load(_write(tmp_path))

    assert [s["name"] for s in cfg.search["sources"]] == ["web", "ted"]
    assert cfg.search["sources"][1]["specialized"] is True
    assert cfg.ingestion == {"max_bytes": 9000, "max_chunks": 5, "flush_limit": 9990}
    assert cfg.retriever["score_threshold"] == 0.6
    assert cfg.pipeline["max_workers"] == 8
    assert cfg.talks["threshold"] == 70.0
    assert cfg.vector_store["collection_name"] == "embeddings"
    assert cfg.prompts == "pkg:lucidsearch.generation:prompts/default.json"


def test_talks_path_is_relative_to_the_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("LUCID_TEST_GOOGLE_KEY", "secret")
    cfg = GlobalConfig.load(_write(tmp_path))

    assert cfg.talks_path == (tmp_path / "talks.json").resolve()


@pytest.mark.parametrize(
    "extra",
    [
        "pipeline:\n  max_workers: 0\n",
        "talks:\n  path: talks.json\n  strategy: random\n",
    ],
)
def test_invalid_values_fail_validation(tmp_path, monkeypatch, extra):
    monkeypatch.setenv("LUCID_TEST_GOOGLE_KEY", "secret")
    cfg = GlobalConfig.load(_write(tmp_path, BASE_YAML + extra))

    with pytest.raises(ConfigurationError):
        cfg.validate()


def test_bad_dimension_fails_validation(tmp_path, monkeypatch):
    monkeypatch.setenv("LUCID_TEST_GOOGLE_KEY", "secret")
    content = BASE_YAML.replace("dimension: 768", "dimension: lots")

    with pytest.raises(ConfigurationError, match="vector_store"):
        GlobalConfig.load(_write(tmp_path, content)).validate()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        GlobalConfig.load(tmp_path / "nope.yaml")


def test_non_mapping_root(tmp_path):
    with pytest.raises(ConfigurationError):
        GlobalConfig.load(_write(tmp_path, "- just\n- a list\n"))
