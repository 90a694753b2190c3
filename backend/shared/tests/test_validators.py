import pytest
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list


class TestParseStringList:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("http://a.test", ["http://a.test"]),
            ("http://a.test,http://b.test", ["http://a.test", "http://b.test"]),
            (" http://a.test ,  http://b.test ,", ["http://a.test", "http://b.test"]),
            ('["http://a.test", "http://b.test"]', ["http://a.test", "http://b.test"]),
            ('  ["http://a.test"]', ["http://a.test"]),
        ],
    )
    def test_string_forms(self, raw, expected):
        assert parse_string_list(raw) == expected

    def test_list_passes_through(self):
        assert parse_string_list(["http://a.test"]) == ["http://a.test"]

    @pytest.mark.parametrize("raw", ["", "   ", ",,", "[]"])
    def test_empty_rejected(self, raw):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(raw)

    def test_malformed_json_rejected(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list('["http://a.test"')

    def test_non_string_items_rejected(self):
        with pytest.raises(ValueError, match="array of strings"):
            parse_string_list("[1, 2]")


class _OriginSettings(BaseSettings):
    model_config = {"env_prefix": "TEST_"}

    cors_origins: list[str] = []
    tags: list[str] = []

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,  # noqa: ARG003
        dotenv_settings,  # noqa: ARG003
        file_secret_settings,  # noqa: ARG003
    ):
        return init_settings, StringListEnvSettingsSource(settings_cls)


class TestStringListEnvSettingsSource:
    def test_string_list_field_left_raw(self, monkeypatch):
        monkeypatch.setenv("TEST_CORS_ORIGINS", "http://a.test")
        source = StringListEnvSettingsSource(_OriginSettings)
        assert source()["cors_origins"] == "http://a.test"

    def test_other_list_fields_json_decoded(self, monkeypatch):
        monkeypatch.setenv("TEST_TAGS", '["a", "b"]')
        assert _OriginSettings().tags == ["a", "b"]
