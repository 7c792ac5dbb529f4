"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, parse_source_arg, validate_config
from models.config import Config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["model", "filter", "pipeline", "log_path", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        """Each required section is reported by name when missing."""
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error.lower()

    def test_unknown_model_backend(self, valid_config):
        """Only the ultralytics backend is supported."""
        valid_config["model"]["backend"] = "magic"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error.lower()

    def test_model_path_required(self, valid_config):
        """An empty model path fails."""
        valid_config["model"]["model"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model.model" in error

    def test_min_confidence_out_of_range(self, valid_config):
        """filter.min_confidence outside [0, 1] fails."""
        valid_config["filter"]["min_confidence"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "min_confidence" in error

    def test_active_categories_must_be_list(self, valid_config):
        """A bare string is not a category list."""
        valid_config["filter"]["active_categories"] = "person"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "active_categories" in error

    def test_empty_active_categories_valid(self, valid_config):
        """An empty category set is allowed (nothing is drawn or counted)."""
        valid_config["filter"]["active_categories"] = []

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_negative_frame_delay(self, valid_config):
        """Negative frame delay fails."""
        valid_config["pipeline"]["frame_delay_s"] = -0.1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "frame_delay_s" in error

    def test_zero_history_capacity(self, valid_config):
        """History capacity must be positive."""
        valid_config["pipeline"]["history_capacity"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "history_capacity" in error

    def test_extra_buckets_need_class_lists(self, valid_config):
        """Each extra bucket maps to a list of class names."""
        valid_config["counting"]["extra_buckets"] = {"bikes": "bicycle"}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "bikes" in error

    def test_unknown_source_kind(self, valid_config):
        """Unknown source kind fails."""
        valid_config["source"]["kind"] = "webcam"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "source.kind" in error

    def test_negative_device_id(self, valid_config):
        """Negative integer device_id fails."""
        valid_config["source"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_string_device_id_valid(self, valid_config):
        """String device_id (stream URL) is valid."""
        valid_config["source"]["device_id"] = "rtsp://192.168.1.1/stream"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_resolution_length(self, valid_config):
        """Resolution with wrong length fails."""
        valid_config["source"]["resolution"] = [1920]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error.lower()

    def test_invalid_log_level(self, valid_config):
        """Invalid log level fails."""
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        config = load_config(config_path)

        assert config["source"]["kind"] == "live"
        assert config["source"]["resolution"] == [640, 480]
        assert config["filter"]["min_confidence"] == 0.5

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml, keeping other keys."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
filter:
  min_confidence: 0.7
pipeline:
  history_capacity: 60
""")

        config = load_config(str(config_yaml))

        assert config["filter"]["min_confidence"] == 0.7
        assert config["pipeline"]["history_capacity"] == 60
        assert config["filter"]["active_categories"] == ["person", "car", "truck", "bus"]
        assert config["pipeline"]["frame_delay_s"] == 0.3

    def test_explicit_path_applied_last(self, temp_config_dir):
        """An explicit --config file overrides both layers."""
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "site.yaml"
        explicit.write_text("log_level: DEBUG\n")

        config = load_config(str(explicit))

        assert config["log_level"] == "DEBUG"
        assert config["model"]["model"] == "yolov8n.pt"


class TestTypedConfig:
    """Tests for Config.from_dict / to_dict."""

    def test_from_dict(self, valid_config):
        config = Config.from_dict(valid_config)

        assert config.model.model == "yolov8n.pt"
        assert config.filter.min_confidence == 0.5
        assert config.pipeline.history_capacity == 30
        assert config.web.host == "127.0.0.1"

    def test_defaults_for_missing_sections(self):
        """Missing sections fall back to defaults."""
        config = Config.from_dict({})

        assert config.filter.min_confidence == 0.5
        assert config.filter.active_categories == ["person", "car", "truck", "bus"]
        assert config.pipeline.frame_delay_s == 0.3
        assert config.counting.extra_buckets == {}

    def test_round_trip(self, valid_config):
        config = Config.from_dict(valid_config)

        assert Config.from_dict(config.to_dict()) == config


class TestParseSourceArg:
    """Tests for the --source / --kind CLI mapping."""

    def test_camera_index(self):
        descriptor = parse_source_arg("0", None)

        assert descriptor.kind == "live"
        assert descriptor.device_id == 0

    def test_stream_url(self):
        descriptor = parse_source_arg("rtsp://cam/stream", None)

        assert descriptor.kind == "live"
        assert descriptor.device_id == "rtsp://cam/stream"

    def test_file_path_guessed(self):
        descriptor = parse_source_arg("media/street.mp4", None)

        assert descriptor.kind == "file"
        assert descriptor.path == "media/street.mp4"

    def test_explicit_kind(self):
        descriptor = parse_source_arg("still.png", "image")

        assert descriptor.kind == "image"
        assert descriptor.path == "still.png"

    def test_defaults_from_configured_source(self, valid_config):
        defaults = Config.from_dict(valid_config).source.to_descriptor()

        descriptor = parse_source_arg("1", None, defaults)

        assert descriptor.device_id == 1
        assert descriptor.resolution == (1280, 720)

    def test_file_keeps_configured_realtime(self, valid_config):
        valid_config["source"]["realtime"] = False
        defaults = Config.from_dict(valid_config).source.to_descriptor()

        descriptor = parse_source_arg("clip.mp4", "video", defaults)

        assert descriptor.path == "clip.mp4"
        assert descriptor.realtime is False


class TestSourceConfig:
    def test_to_descriptor(self, valid_config):
        descriptor = Config.from_dict(valid_config).source.to_descriptor()

        assert descriptor.kind == "live"
        assert descriptor.device_id == 0
        assert descriptor.path is None
        assert descriptor.resolution == (1280, 720)
        assert descriptor.realtime is True
