"""
Deep Moment remediation questions.

A struggling word gets one simplified multiple-choice question: pick the
explanation that captures its meaning. Wrong explanations are synthesised
from the word's antonyms and from canned statements that describe the
wrong part of speech.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from .items import Item

WRONG_OPTION_COUNT = 3
FILLER_EXPLANATION = "A word with an unrelated meaning"

# Plausible-but-wrong category descriptions per part of speech
WRONG_BY_PART_OF_SPEECH: dict[str, tuple[str, str]] = {
    "noun": ("A type of action or behavior", "A descriptive quality or characteristic"),
    "verb": ("A person, place, or thing", "A quality used to describe something"),
    "adjective": ("An action word describing movement", "A specific person or location"),
    "adverb": ("A physical object or item", "A state of being or existence"),
}
GENERIC_WRONG = (
    "The opposite meaning of what it actually is",
    "A common misconception about this word",
)


@dataclass(frozen=True)
class DeepMomentOption:
    option_id: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class DeepMomentQuestion:
    item: Item
    prompt: str
    options: tuple[DeepMomentOption, ...]
    correct_explanation: str

    def get_option(self, option_id: str) -> DeepMomentOption | None:
        for option in self.options:
            if option.option_id == option_id:
                return option
        return None


class DeepRemediationGenerator:
    """Builds deep-moment questions for struggling items."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def generate(self, item: Item) -> DeepMomentQuestion:
        correct = self.correct_explanation(item)
        entries = [(text, False) for text in self.wrong_explanations(item)]
        entries.append((correct, True))
        self.rng.shuffle(entries)

        options = tuple(
            DeepMomentOption(option_id="abcd"[i], text=text, is_correct=is_correct)
            for i, (text, is_correct) in enumerate(entries)
        )
        return DeepMomentQuestion(
            item=item,
            prompt=f'Which explanation best captures the meaning of "{item.term}"?',
            options=options,
            correct_explanation=correct,
        )

    @staticmethod
    def correct_explanation(item: Item) -> str:
        if item.mnemonic_hint:
            return f"{item.definition} (Think: {item.mnemonic_hint})"
        return item.definition

    @staticmethod
    def wrong_explanations(item: Item) -> list[str]:
        wrong: list[str] = []

        if item.antonyms:
            wrong.append(f'Similar in meaning to "{item.antonyms[0]}"')

        pos = item.part_of_speech.strip().lower()
        wrong.extend(WRONG_BY_PART_OF_SPEECH.get(pos, GENERIC_WRONG))

        while len(wrong) < WRONG_OPTION_COUNT:
            wrong.append(FILLER_EXPLANATION)

        return wrong[:WRONG_OPTION_COUNT]
