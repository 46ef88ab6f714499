import pytest

from utils.config import DEFAULT_CONFIDENCE_THRESHOLD, Settings


def test_defaults_apply_when_env_is_empty():
    settings = Settings.from_env({})

    assert settings.openai_api_key is None
    assert settings.scout_model == "gpt-5-mini"
    assert settings.sniper_model == "gpt-5"
    assert settings.confidence_threshold == DEFAULT_CONFIDENCE_THRESHOLD == 85
    assert settings.enable_code_execution is True
    assert settings.storage_bucket == "vehicle_images"
    assert settings.affiliate_tag == "visualfitment-20"


def test_values_are_read_from_env():
    settings = Settings.from_env(
        {
            "OPENAI_API_KEY": " sk-test ",
            "CONFIDENCE_THRESHOLD": "70",
            "ENABLE_CODE_EXECUTION": "false",
            "FETCH_TIMEOUT_SECONDS": "2.5",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.openai_api_key == "sk-test"
    assert settings.confidence_threshold == 70
    assert settings.enable_code_execution is False
    assert settings.fetch_timeout == 2.5
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"CONFIDENCE_THRESHOLD": "high"},
        {"INFERENCE_TIMEOUT_SECONDS": "-1"},
        {"FETCH_TIMEOUT_SECONDS": "soon"},
    ],
)
def test_invalid_numbers_raise_runtime_error(env):
    with pytest.raises(RuntimeError):
        Settings.from_env(env)
