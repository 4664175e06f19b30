import json
from unittest.mock import MagicMock

import pytest

from auxos_worker.services.extraction.llm_extractor import MIN_LLM_CONFIDENCE, LLMFieldExtractor


class TestLLMFieldExtractor:

    @pytest.mark.asyncio
    async def test_extracts_canonical_fields(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={
            "extractedFields": {"legalBusinessName": "Acme Widgets LLC", "annualRevenue": 1250000},
            "confidence": {"legalBusinessName": 0.95, "annualRevenue": 0.8},
            "reasoning": {"legalBusinessName": "Named insured on page 1", "annualRevenue": "Revenue line"},
        })
        extractor = LLMFieldExtractor(client)

        fields = await extractor.extract("Named Insured: Acme Widgets LLC", extraction_config, "acord_form")

        by_name = {f.field_name: f for f in fields}
        assert set(by_name) == {"legalBusinessName", "annualRevenue"}
        assert by_name["legalBusinessName"].field_value == "Acme Widgets LLC"
        assert by_name["legalBusinessName"].confidence == 0.95
        assert by_name["legalBusinessName"].source == "LLM extraction: Named insured on page 1"
        assert by_name["legalBusinessName"].extracted_text == "Named insured on page 1"
        assert by_name["annualRevenue"].field_value == "1250000"

    @pytest.mark.asyncio
    async def test_prompt_uses_canonical_schema(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={"extractedFields": {}})
        extractor = LLMFieldExtractor(client)

        await extractor.extract("some text", extraction_config, "loss_run")

        call = client.calls[0]
        assert "loss_run" in call["system_instruction"]
        assert '"legalBusinessName"' in call["system_instruction"]
        assert '"originalFieldName": "businessName"' in call["system_instruction"]
        assert '"totalClaimsCount"' in call["system_instruction"]
        # Not applicable to loss runs
        assert '"coinsurancePercent"' not in call["system_instruction"]
        assert call["generation_config"]["response_mime_type"] == "application/json"

    @pytest.mark.asyncio
    async def test_text_is_truncated(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={"extractedFields": {}})
        extractor = LLMFieldExtractor(client, max_text_chars=50)

        await extractor.extract("A" * 50 + "B" * 500, extraction_config, None)

        assert "A" * 50 in client.calls[0]["contents"]
        assert "B" not in client.calls[0]["contents"]

    @pytest.mark.asyncio
    async def test_low_confidence_and_empty_values_dropped(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={
            "extractedFields": {
                "legalBusinessName": "Acme",
                "annualRevenue": "100",
                "coinsurancePercent": "",
                "totalClaimsCount": None,
            },
            "confidence": {"legalBusinessName": 0.49, "annualRevenue": 0.5},
        })
        extractor = LLMFieldExtractor(client)

        fields = await extractor.extract("text", extraction_config, None)

        assert [f.field_name for f in fields] == ["annualRevenue"]
        assert all(f.confidence >= MIN_LLM_CONFIDENCE for f in fields)

    @pytest.mark.asyncio
    async def test_missing_confidence_and_reasoning_defaults(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={"extractedFields": {"annualRevenue": "100"}})
        extractor = LLMFieldExtractor(client)

        fields = await extractor.extract("text", extraction_config, None)

        assert fields[0].confidence == 0.7
        assert fields[0].source == "LLM extraction: Extracted from document"

    @pytest.mark.asyncio
    async def test_authoring_keys_are_mapped_and_unrequested_dropped(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={
            "extractedFields": {"businessName": "Acme", "favouriteColour": "blue"},
        })
        extractor = LLMFieldExtractor(client)

        fields = await extractor.extract("text", extraction_config, None)

        assert [f.field_name for f in fields] == ["legalBusinessName"]

    @pytest.mark.asyncio
    async def test_side_values_found_under_field_aliases(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={
            "extractedFields": {"legalBusinessName": "Acme", "annualRevenue": "100"},
            "confidence": {"businessName": 0.3, "annualRevenue": 0.9},
            "reasoning": {"revenue": "Revenue line"},
        })
        extractor = LLMFieldExtractor(client)

        fields = await extractor.extract("text", extraction_config, "acord_form")

        assert [f.field_name for f in fields] == ["annualRevenue"]
        assert fields[0].source == "LLM extraction: Revenue line"

    @pytest.mark.asyncio
    async def test_code_fenced_response(self, fake_llm_client, extraction_config):
        body = json.dumps({"extractedFields": {"annualRevenue": "100"}, "confidence": {"annualRevenue": 0.9}})
        client = fake_llm_client(response=f"```json\n{body}\n```")
        extractor = LLMFieldExtractor(client)

        fields = await extractor.extract("text", extraction_config, None)

        assert fields[0].field_value == "100"

    @pytest.mark.asyncio
    async def test_list_values_serialized_as_json(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={"extractedFields": {"legalBusinessName": ["Acme", "Acme Holdings"]}})
        extractor = LLMFieldExtractor(client)

        fields = await extractor.extract("text", extraction_config, None)

        assert fields[0].field_value == '["Acme", "Acme Holdings"]'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", ["not json at all", "", None, {"unexpected": True}])
    async def test_unusable_response_returns_empty(self, fake_llm_client, extraction_config, response):
        extractor = LLMFieldExtractor(fake_llm_client(response=response))

        assert await extractor.extract("text", extraction_config, None) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("confidence", ["NaN", '"nan"'])
    async def test_nan_confidence_is_dropped(self, fake_llm_client, extraction_config, confidence):
        response = (
            '{"extractedFields": {"legalBusinessName": "Acme", "annualRevenue": "100"}, '
            f'"confidence": {{"legalBusinessName": {confidence}, "annualRevenue": 0.9}}}}'
        )
        extractor = LLMFieldExtractor(fake_llm_client(response=response))

        fields = await extractor.extract("text", extraction_config, "acord_form")

        assert [f.field_name for f in fields] == ["annualRevenue"]

    @pytest.mark.asyncio
    async def test_nan_only_response_returns_empty(self, fake_llm_client, extraction_config):
        response = '{"extractedFields": {"legalBusinessName": "Acme"}, "confidence": {"legalBusinessName": NaN}}'
        extractor = LLMFieldExtractor(fake_llm_client(response=response))

        assert await extractor.extract("text", extraction_config, None) == []

    @pytest.mark.asyncio
    async def test_invalid_record_returns_empty(self, fake_llm_client, extraction_config):
        extractor = LLMFieldExtractor(fake_llm_client(response={"extractedFields": {"annualRevenue": "1"}}))
        extractor.parse_response = MagicMock(side_effect=ValueError("confidence out of range"))

        assert await extractor.extract("text", extraction_config, None) == []

    @pytest.mark.asyncio
    async def test_client_error_returns_empty(self, fake_llm_client, extraction_config):
        extractor = LLMFieldExtractor(fake_llm_client(error=RuntimeError("provider down")))

        assert await extractor.extract("text", extraction_config, None) == []

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self, fake_llm_client, extraction_config):
        client = fake_llm_client(response={"extractedFields": {"annualRevenue": "1"}}, delay=1.0)
        extractor = LLMFieldExtractor(client, timeout_seconds=0.01)

        assert await extractor.extract("text", extraction_config, None) == []

    @pytest.mark.asyncio
    async def test_no_applicable_fields_skips_model(self, fake_llm_client, sample_config_payload):
        from auxos_worker.schemas.extraction_config import ExtractionConfig

        sample_config_payload["fieldExtractionInstructions"] = {
            "totalClaimsCount": sample_config_payload["fieldExtractionInstructions"]["totalClaimsCount"]
        }
        config = ExtractionConfig.model_validate(sample_config_payload)
        client = fake_llm_client(response={"extractedFields": {}})

        fields = await LLMFieldExtractor(client).extract("text", config, "acord_form")

        assert fields == []
        assert client.calls == []
