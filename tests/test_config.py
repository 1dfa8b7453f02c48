import pytest
from pydantic import ValidationError

from provider_advisor.config.models import AdvisorConfig, BackendSettings, DEFAULT_TASKS
from provider_advisor.config.parser import Config, ConfigValidationError, load_config


def test_defaults_without_config_file(tmp_path):
    settings = Config(str(tmp_path / "advisor.yaml")).load(environ={})

    assert settings.state_file == "terraform.tfstate"
    assert settings.docs_dir == "website"
    assert settings.tasks == DEFAULT_TASKS
    assert settings.concurrent is True
    assert settings.call_timeout == 120.0
    assert settings.diff_direction == "additive"
    assert settings.report_separator == "\n"
    assert settings.backend.page_size == 100


def test_yaml_under_advisor_key(tmp_path):
    path = tmp_path / "advisor.yaml"
    path.write_text(
        "advisor:\n"
        "  execution_dir: /srv/infra\n"
        "  concurrent: false\n"
        "  tasks: [general-best-practices]\n"
        "  agent:\n"
        "    provider: anthropic\n"
        "  backend:\n"
        "    base_url: https://api.example.com/v1/\n"
    )

    settings = Config(str(path)).load(environ={})

    assert settings.execution_dir == "/srv/infra"
    assert settings.concurrent is False
    assert settings.tasks == ["general-best-practices"]
    assert settings.agent.provider == "anthropic"
    assert settings.backend.base_url == "https://api.example.com/v1"


def test_environment_overrides(tmp_path):
    settings = Config(str(tmp_path / "advisor.yaml")).load(environ={
        "ADVISOR_API_ID": "1234",
        "ADVISOR_API_KEY": "secret",
        "ADVISOR_EXECUTION_DIR": "/srv/infra",
        "ADVISOR_LLM_PROVIDER": "bedrock",
    })

    assert settings.backend.has_credentials()
    assert settings.execution_dir == "/srv/infra"
    assert settings.agent.provider == "bedrock"


def test_invalid_values_are_reported(tmp_path):
    path = tmp_path / "advisor.yaml"
    path.write_text("call_timeout: -1\ndiff_direction: sideways\n")

    with pytest.raises(ConfigValidationError) as excinfo:
        Config(str(path)).load(environ={})

    locations = [error["loc"] for error in excinfo.value.errors]
    assert ["call_timeout"] in locations
    assert ["diff_direction"] in locations
    assert "call_timeout" in str(excinfo.value)


def test_unparseable_yaml(tmp_path):
    path = tmp_path / "advisor.yaml"
    path.write_text("advisor: [unclosed\n")

    with pytest.raises(ConfigValidationError, match="YAML"):
        Config(str(path)).load(environ={})


def test_to_dict_masks_api_key(tmp_path):
    config = Config(str(tmp_path / "advisor.yaml"))
    config.load(environ={"ADVISOR_API_ID": "1234", "ADVISOR_API_KEY": "secret"})

    assert config.to_dict()["backend"]["api_key"] == "****"


def test_api_key_not_in_repr():
    assert "secret" not in repr(BackendSettings(api_id="1", api_key="secret"))


def test_config_is_immutable():
    settings = AdvisorConfig()

    with pytest.raises(ValidationError):
        settings.concurrent = False


@pytest.mark.parametrize("tasks", [[], ["inventory-diff", "inventory-diff"]])
def test_invalid_task_lists(tasks):
    with pytest.raises(ValidationError):
        AdvisorConfig(tasks=tasks)


def test_blank_new_features_are_dropped():
    assert AdvisorConfig(new_features=[" waf rules ", "", "  "]).new_features == ["waf rules"]


def test_load_config_overrides(tmp_path, monkeypatch):
    monkeypatch.delenv("ADVISOR_EXECUTION_DIR", raising=False)

    settings = load_config(str(tmp_path / "advisor.yaml"), execution_dir="/srv", concurrent=None)

    assert settings.execution_dir == "/srv"
    assert settings.concurrent is True


def test_empty_advisor_section_uses_defaults(tmp_path):
    path = tmp_path / "advisor.yaml"
    path.write_text("advisor:\n")

    settings = Config(str(path)).load(environ={})

    assert settings.tasks == DEFAULT_TASKS
    assert settings.state_file == "terraform.tfstate"


@pytest.mark.parametrize("content", ["advisor: [1, 2]\n", "advisor: text\n"])
def test_advisor_section_must_be_a_mapping(tmp_path, content):
    path = tmp_path / "advisor.yaml"
    path.write_text(content)

    with pytest.raises(ConfigValidationError):
        Config(str(path)).load(environ={})
