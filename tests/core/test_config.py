"""Tests for the configuration loader."""

import json
from pathlib import Path

import pytest

from s3aescp.core import ConfigError, Configuration, load_config
from s3aescp.core.config import DEFAULT_REGION


def write_config(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestConfiguration:
    """Tests for Configuration dataclass."""

    def test_from_dict_original_field_names(self) -> None:
        """Should accept the AwsXxx / AesKey field names."""
        config = Configuration.from_dict(
            {
                "AwsAccessKeyID": "AKIDEXAMPLE",
                "AwsSecretAccessKey": "secret",
                "AwsBucketRegion": "eu-west-3",
                "AesKey": "00112233445566778899aabbccddeeff",
            }
        )

        assert config.access_key_id == "AKIDEXAMPLE"
        assert config.secret_access_key == "secret"
        assert config.region == "eu-west-3"
        assert config.endpoint_url is None
        assert config.key == bytes.fromhex("00112233445566778899aabbccddeeff")

    def test_from_dict_snake_case_names(self) -> None:
        config = Configuration.from_dict(
            {
                "aes_key": "00112233445566778899aabbccddeeff",
                "endpoint_url": "http://localhost:9000",
            }
        )

        assert config.endpoint_url == "http://localhost:9000"
        assert config.access_key_id is None
        assert config.region == DEFAULT_REGION

    def test_unknown_fields_ignored(self) -> None:
        config = Configuration.from_dict(
            {"AesKey": "00112233445566778899aabbccddeeff", "Comment": "ignored"}
        )
        assert not hasattr(config, "Comment")

    def test_empty_region_uses_default(self) -> None:
        config = Configuration.from_dict(
            {"AesKey": "00112233445566778899aabbccddeeff", "AwsBucketRegion": ""}
        )
        assert config.region == DEFAULT_REGION

    def test_missing_key_rejected(self) -> None:
        with pytest.raises(ConfigError, match="Missing AesKey"):
            Configuration.from_dict({"AwsBucketRegion": "eu-west-1"})

    def test_non_string_field_rejected(self) -> None:
        with pytest.raises(ConfigError, match="must be a string"):
            Configuration.from_dict({"AesKey": 1234})

    def test_access_key_without_secret_rejected(self) -> None:
        with pytest.raises(ConfigError, match="Bad credentials"):
            Configuration(aes_key="00" * 16, access_key_id="AKIDEXAMPLE")

    def test_bad_key_reported_on_access(self) -> None:
        """A malformed key is a configuration error."""
        config = Configuration(aes_key="00112233")
        with pytest.raises(ConfigError):
            _ = config.key

    def test_log_summary_masks_secrets(self, caplog: pytest.LogCaptureFixture) -> None:
        config = Configuration(
            aes_key="00112233445566778899aabbccddeeff",
            access_key_id="AKIDEXAMPLE",
            secret_access_key="very-secret",
        )
        with caplog.at_level("DEBUG", logger="s3aescp"):
            config.log_summary()

        assert "AKIDEXAMPLE" in caplog.text
        assert "very-secret" not in caplog.text
        assert "00112233445566778899aabbccddeeff" not in caplog.text


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_valid_file(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path / "s3aescp.json",
            {"AesKey": "00112233445566778899aabbccddeeff", "AwsBucketRegion": "us-west-2"},
        )

        config = load_config(path)

        assert config.region == "us-west-2"
        assert len(config.key) == 16

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Failed to read configuration"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Failed to parse configuration"):
            load_config(path)

    def test_json_array_rejected(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "list.json", ["AesKey"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_config(path)
