"""
Unit tests for deep-moment remediation questions.
"""

import pytest

from src.engine.remediation import (
    FILLER_EXPLANATION,
    GENERIC_WRONG,
    WRONG_BY_PART_OF_SPEECH,
    DeepRemediationGenerator,
)


@pytest.fixture
def generator(rng):
    return DeepRemediationGenerator(rng)


class TestGenerate:
    def test_four_options_one_correct(self, generator, sample_item):
        question = generator.generate(sample_item)

        assert [option.option_id for option in question.options] == ["a", "b", "c", "d"]
        correct = [option for option in question.options if option.is_correct]
        assert len(correct) == 1
        assert correct[0].text == question.correct_explanation
        assert "Laconic" in question.prompt

    def test_correct_explanation_includes_mnemonic(self, sample_item):
        explanation = DeepRemediationGenerator.correct_explanation(sample_item)
        assert explanation == f"{sample_item.definition} (Think: {sample_item.mnemonic_hint})"

    def test_correct_explanation_without_mnemonic(self, make_item):
        item = make_item("Lucid")
        assert DeepRemediationGenerator.correct_explanation(item) == item.definition

    def test_get_option(self, generator, sample_item):
        question = generator.generate(sample_item)
        assert question.get_option("c") is question.options[2]
        assert question.get_option("e") is None


class TestWrongExplanations:
    def test_antonym_leads(self, sample_item):
        wrong = DeepRemediationGenerator.wrong_explanations(sample_item)

        assert wrong[0] == 'Similar in meaning to "verbose"'
        assert wrong[1:] == list(WRONG_BY_PART_OF_SPEECH["adjective"])

    def test_padded_with_filler(self, make_item):
        wrong = DeepRemediationGenerator.wrong_explanations(make_item(part_of_speech="noun"))
        assert wrong == [*WRONG_BY_PART_OF_SPEECH["noun"], FILLER_EXPLANATION]

    def test_unknown_part_of_speech(self, make_item):
        wrong = DeepRemediationGenerator.wrong_explanations(make_item(part_of_speech="phrase"))
        assert wrong[:2] == list(GENERIC_WRONG)

    def test_part_of_speech_is_case_insensitive(self, make_item):
        wrong = DeepRemediationGenerator.wrong_explanations(make_item(part_of_speech=" Verb "))
        assert wrong[:2] == list(WRONG_BY_PART_OF_SPEECH["verb"])
