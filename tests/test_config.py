from config import AppConfig, load_config


def test_defaults_without_environment():
    config = load_config({})
    assert config == AppConfig()
    assert config.api_key is None
    assert config.model == "gemini-2.5-flash-image"


def test_reads_environment():
    config = load_config({
        "GEMINI_API_KEY": "secret",
        "SKETCH_MODEL": "gemini-3-pro-image-preview",
        "SKETCH_ASPECT_RATIO": "16:9",
        "SKETCH_LOG_LEVEL": "debug",
    })
    assert config.api_key == "secret"
    assert config.model == "gemini-3-pro-image-preview"
    assert config.default_aspect_ratio == "16:9"
    assert config.log_level == "DEBUG"


def test_falls_back_to_generic_api_key():
    assert load_config({"API_KEY": "other"}).api_key == "other"
    assert load_config({"GEMINI_API_KEY": "primary", "API_KEY": "other"}).api_key == "primary"


def test_invalid_aspect_ratio_falls_back(caplog):
    config = load_config({"SKETCH_ASPECT_RATIO": "2:1"})
    assert config.default_aspect_ratio == "1:1"
    assert "SKETCH_ASPECT_RATIO" in caplog.text
