import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from auxos_worker.core.config import DEFAULT_EXTRACTION_CONFIG_PATH, ApiSettings, Settings
from auxos_worker.core.exceptions import (
    ConfigNotFoundError,
    ConfigParseError,
    ConfigUnavailableError,
    ConfigurationError,
)
from auxos_worker.services.config_provider import (
    ApiConfigProvider,
    JsonFileConfigProvider,
    create_config_provider,
    parse_extraction_config,
)


class TestParseExtractionConfig:

    def test_preserves_source_order(self, sample_config_payload):
        config = parse_extraction_config(json.dumps(sample_config_payload), "test")

        assert list(config.document_types) == ["acord_form", "loss_run"]
        assert list(config.field_extraction_instructions) == [
            "businessName",
            "revenue",
            "coinsurancePercent",
            "totalClaimsCount",
        ]

    def test_payload_round_trip_keeps_wire_keys(self, sample_config_payload):
        config = parse_extraction_config(sample_config_payload, "test")
        payload = config.to_payload()

        assert set(payload) == {"documentTypes", "fieldExtractionInstructions"}
        assert payload["fieldExtractionInstructions"]["revenue"]["documentTypes"] == ["acord_form"]
        assert parse_extraction_config(payload, "payload") == config

    def test_invalid_json(self):
        with pytest.raises(ConfigParseError):
            parse_extraction_config("{not json", "test")

    def test_non_object(self):
        with pytest.raises(ConfigParseError):
            parse_extraction_config("[]", "test")

    def test_unknown_document_type_reference(self, sample_config_payload):
        sample_config_payload["fieldExtractionInstructions"]["revenue"]["documentTypes"] = ["tax_return"]

        with pytest.raises(ConfigParseError, match="tax_return"):
            parse_extraction_config(sample_config_payload, "test")

    def test_fields_for_document_type(self, extraction_config):
        names = [name for name, _ in extraction_config.fields_for_document_type("loss_run")]
        assert names == ["businessName", "totalClaimsCount"]

        all_names = [name for name, _ in extraction_config.fields_for_document_type(None)]
        assert len(all_names) == 4


class TestJsonFileConfigProvider:

    @pytest.mark.asyncio
    async def test_loads_file(self, tmp_path, sample_config_payload):
        path = tmp_path / "extraction-config.json"
        path.write_text(json.dumps(sample_config_payload), encoding="utf-8")

        config = await JsonFileConfigProvider(path).load()

        assert "acord_form" in config.document_types

    @pytest.mark.asyncio
    async def test_file_read_runs_in_thread(self, tmp_path, sample_config_payload):
        path = tmp_path / "extraction-config.json"
        content = json.dumps(sample_config_payload)

        with patch(
            "auxos_worker.services.config_provider.asyncio.to_thread",
            new_callable=AsyncMock,
            return_value=content,
        ) as mock_to_thread:
            config = await JsonFileConfigProvider(path).load()

        mock_to_thread.assert_awaited_once_with(path.read_text, encoding="utf-8")
        assert "loss_run" in config.document_types

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            await JsonFileConfigProvider(tmp_path / "missing.json").load()

    @pytest.mark.asyncio
    async def test_malformed_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(ConfigParseError):
            await JsonFileConfigProvider(path).load()

    @pytest.mark.asyncio
    async def test_bundled_config_is_valid(self):
        config = await JsonFileConfigProvider(DEFAULT_EXTRACTION_CONFIG_PATH).load()

        assert "loss_run" in config.document_types
        coinsurance = config.field_extraction_instructions["coinsurancePercent"]
        assert coinsurance.patterns == ["Coinsurance[:\\s]+(\\d+)%"]


class TestApiConfigProvider:

    @pytest.fixture
    def provider(self):
        return ApiConfigProvider(ApiSettings(API_URL="http://api.test/", API_KEY="secret"))

    @pytest.mark.asyncio
    async def test_fetches_config(self, provider, mock_httpx_response, sample_config_payload):
        response = mock_httpx_response(200, sample_config_payload)

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=response) as mock_get:
            config = await provider.load()

        assert list(config.document_types) == ["acord_form", "loss_run"]
        args, kwargs = mock_get.call_args
        assert args[0] == "http://api.test/extraction-config"
        assert kwargs["headers"] == {"x-api-key": "secret"}

    @pytest.mark.asyncio
    async def test_not_found(self, provider, mock_httpx_response):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_httpx_response(404)):
            with pytest.raises(ConfigNotFoundError):
                await provider.load()

    @pytest.mark.asyncio
    async def test_server_error(self, provider, mock_httpx_response):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_httpx_response(500)):
            with pytest.raises(ConfigUnavailableError) as exc_info:
                await provider.load()

        assert not isinstance(exc_info.value, ConfigParseError)

    @pytest.mark.asyncio
    async def test_network_error(self, provider):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, side_effect=httpx.ConnectError("refused")):
            with pytest.raises(ConfigUnavailableError):
                await provider.load()


class TestCreateConfigProvider:

    def test_file_source(self):
        app_settings = Settings()
        app_settings.extraction.config_source = "file"

        assert isinstance(create_config_provider(app_settings), JsonFileConfigProvider)

    def test_api_source(self):
        app_settings = Settings()
        app_settings.extraction.config_source = "API"

        assert isinstance(create_config_provider(app_settings), ApiConfigProvider)

    def test_unknown_source(self):
        app_settings = Settings()
        app_settings.extraction.config_source = "s3"

        with pytest.raises(ConfigurationError):
            create_config_provider(app_settings)
