"""
Single conversion boundary between raw MCQ payloads and the letter-keyed form.

Accepted input conventions (from the model or from quiz imports):
  - text-keyed:   {"options": [...], "correct_answer": "<exact option text>"}
  - letter-keyed: {"options": [...] | "optionA".."optionD", "correct_answer" | "correctAnswer": "A".."D"}
Options may also arrive as [{"label": "A", "text": "..."}].

Everything downstream (persistence, quiz player) only ever sees
GeneratedQuestion with correct_answer in A–D.
"""

import re
from typing import Any, List, Optional

from generation.schemas import GeneratedQuestion, LETTERS, OPTION_MAX_CHARS

_LETTER_MARKER = re.compile(r"^(?:option\s+)?\(?([A-D])[\).:]?$", re.IGNORECASE)


def _first(item: dict, *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _option_text(opt: Any) -> str:
    if isinstance(opt, dict):
        return _clean(opt.get("text"))
    return _clean(opt)


def _extract_options(item: dict) -> List[str]:
    raw = item.get("options")
    if isinstance(raw, list):
        options = [_option_text(o) for o in raw]
    else:
        options = [
            _clean(_first(item, f"option{letter}", f"option_{letter.lower()}"))
            for letter in LETTERS
        ]
    # optional trailing options (C, D) may be blank; blanks in the middle would shift letters
    while options and not options[-1]:
        options.pop()
    return options


def _extract_urdu_options(item: dict, count: int) -> Optional[List[str]]:
    raw = _first(item, "options_urdu", "optionsUrdu")
    if isinstance(raw, list):
        options = [_option_text(o) for o in raw]
    else:
        options = [
            _clean(_first(item, f"option{letter}Urdu", f"option_{letter.lower()}_urdu"))
            for letter in LETTERS[:count]
        ]
    options = options[:count]
    if len(options) != count or not all(options):
        return None
    return options


def resolve_answer(marker: Any, options: List[str]) -> Optional[str]:
    """
    Map a correct-answer marker to a letter.
    Exact option text wins over a letter reading; ambiguous or out-of-range markers give None.
    """
    value = _clean(marker)
    if not value:
        return None

    matches = [i for i, opt in enumerate(options) if opt == value]
    if len(matches) == 1:
        return LETTERS[matches[0]]
    if len(matches) > 1:
        return None

    m = _LETTER_MARKER.match(value)
    if m:
        idx = LETTERS.index(m.group(1).upper())
        if idx < len(options):
            return LETTERS[idx]
    return None


def normalize_question(item: Any) -> Optional[GeneratedQuestion]:
    """
    Validate one raw item and return it letter-keyed, or None when it must be dropped.

    Accepted only with non-empty question text, 2–4 non-empty options that fit
    the option columns (OPTION_MAX_CHARS, Urdu included) and an answer marker
    that resolves to exactly one of them.
    """
    if not isinstance(item, dict):
        return None

    question = _clean(_first(item, "question", "question_text"))
    if not question:
        return None

    options = _extract_options(item)
    if not (2 <= len(options) <= len(LETTERS)) or not all(options):
        return None
    if any(len(opt) > OPTION_MAX_CHARS for opt in options):
        return None

    letter = resolve_answer(_first(item, "correct_answer", "correctAnswer", "answer_key"), options)
    if letter is None:
        return None

    options_urdu = _extract_urdu_options(item, len(options))
    if options_urdu and any(len(opt) > OPTION_MAX_CHARS for opt in options_urdu):
        return None

    return GeneratedQuestion(
        question=question,
        options=options,
        correct_answer=letter,
        explanation=_clean(item.get("explanation")),
        question_urdu=_clean(_first(item, "question_urdu", "questionUrdu")) or None,
        options_urdu=options_urdu,
        explanation_urdu=_clean(_first(item, "explanation_urdu", "explanationUrdu")) or None,
    )


def to_mcq_row(q: GeneratedQuestion, material_id: int, order: int) -> dict:
    """Column values for a McqQuestion row."""
    row = {
        "material_id": material_id,
        "question": q.question,
        "question_urdu": q.question_urdu,
        "correct_answer": q.correct_answer,
        "explanation": q.explanation or None,
        "explanation_urdu": q.explanation_urdu,
        "order": order,
    }
    urdu = q.options_urdu or []
    for i, letter in enumerate(LETTERS):
        key = f"option_{letter.lower()}"
        row[key] = q.options[i] if i < len(q.options) else None
        row[f"{key}_urdu"] = urdu[i] if i < len(urdu) else None
    return row
