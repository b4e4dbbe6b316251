from __future__ import annotations
import random
import re
from typing import Optional, Sequence

from VocaQuiz import config
from VocaQuiz.models.state import QuizMode, VocabularyEntry

_ANNOTATION_RE = re.compile(r"\s*\(.*?\)")


def strip_annotation(word: str) -> str:
    """'feel/felt (v.)' -> 'feel/felt'"""
    return _ANNOTATION_RE.sub("", word or "", count=1).strip()


def speakable_text(word: str) -> str:
    return _ANNOTATION_RE.sub("", word or "").strip()


def accepted_answers(word: str) -> list[str]:
    out = []
    for alt in strip_annotation(word).lower().split("/"):
        alt = alt.strip()
        if alt and alt not in out:
            out.append(alt)
    return out


def is_typed_match(user_input: str, word: str) -> bool:
    cleaned = (user_input or "").strip().lower()
    if not cleaned:
        return False
    return cleaned in accepted_answers(word)


def is_spoken_match(transcript: str, word: str) -> bool:
    heard = " ".join((transcript or "").lower().split())
    if not heard:
        return False
    return any(alt == heard or alt in heard for alt in accepted_answers(word))


def choice_target(entry: VocabularyEntry, mode: QuizMode) -> str:
    return entry.meaning if mode == QuizMode.ENGLISH_TO_KOREAN else entry.word


def is_choice_match(selected: str, entry: VocabularyEntry, mode: QuizMode) -> bool:
    return selected == choice_target(entry, mode)


def question_text(entry: VocabularyEntry, mode: QuizMode) -> str:
    if mode in (QuizMode.KOREAN_TO_ENGLISH, QuizMode.SPELLING):
        return entry.meaning
    return entry.word


def is_typing_mode(entry: VocabularyEntry, mode: QuizMode) -> bool:
    if mode == QuizMode.SPELLING:
        return True
    if mode == QuizMode.KOREAN_TO_ENGLISH:
        # Phrasen werden per Auswahl abgefragt
        return " " not in strip_annotation(entry.word)
    return False


def build_options(
    entry: VocabularyEntry,
    questions: Sequence[VocabularyEntry],
    mode: QuizMode,
    rng: Optional[random.Random] = None,
) -> list[str]:
    """Correct target plus up to three distractors from the other questions, shuffled."""
    rng = rng or random
    target = choice_target(entry, mode)
    pool, seen = [], {target}
    for q in questions:
        if q.word == entry.word:
            continue
        value = choice_target(q, mode)
        if value not in seen:
            seen.add(value)
            pool.append(value)
    k = min(config.OPTION_COUNT - 1, len(pool))
    options = rng.sample(pool, k) + [target]
    rng.shuffle(options)
    return options
