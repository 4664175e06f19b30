import pytest

from auxos_worker.schemas.extraction_config import ExtractionConfig
from auxos_worker.services.document_classifier import MIN_CLASSIFICATION_SCORE, DocumentClassifier


class TestDocumentClassifier:

    @pytest.fixture
    def classifier(self):
        return DocumentClassifier()

    def test_highest_score_wins(self, classifier, extraction_config):
        text = "Loss Run report\nClaim Number 1\nClaim Number 2\nNamed Insured: Acme"
        assert classifier.classify(text, extraction_config) == "loss_run"

    def test_score_counts_every_occurrence(self, classifier, extraction_config):
        text = "ACORD 125 ... acord ... ACORD 140"
        scores = classifier.score(text, extraction_config)
        assert scores == {"acord_form": 3, "loss_run": 0}

    def test_score_of_one_is_unclassified(self, classifier, extraction_config):
        assert MIN_CLASSIFICATION_SCORE == 2
        assert classifier.classify("This is an ACORD form", extraction_config) is None

    def test_no_keywords_found(self, classifier, extraction_config):
        assert classifier.classify("Nothing relevant here", extraction_config) is None

    def test_tie_goes_to_first_configured_type(self, classifier, extraction_config):
        text = "acord named insured loss run claim number"
        assert classifier.score(text, extraction_config) == {"acord_form": 2, "loss_run": 2}
        assert classifier.classify(text, extraction_config) == "acord_form"

    def test_tie_follows_config_order(self, classifier, sample_config_payload):
        types = sample_config_payload["documentTypes"]
        sample_config_payload["documentTypes"] = {
            "loss_run": types["loss_run"],
            "acord_form": types["acord_form"],
        }
        config = ExtractionConfig.model_validate(sample_config_payload)
        text = "acord named insured loss run claim number"
        assert classifier.classify(text, config) == "loss_run"

    def test_empty_config(self, classifier):
        assert classifier.classify("acord acord acord", ExtractionConfig()) is None
