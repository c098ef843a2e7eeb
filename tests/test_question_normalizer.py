# tests/test_question_normalizer.py
from generation.question_normalizer import normalize_question, resolve_answer, to_mcq_row
from generation.schemas import OPTION_MAX_CHARS


class TestNormalizeQuestion:
    def test_text_answer_becomes_letter(self):
        """correct_answer 'Paris' with Paris as first option → 'A'."""
        q = normalize_question({
            "question": "Capital of France?",
            "options": ["Paris", "London", "Rome", "Berlin"],
            "correct_answer": "Paris",
            "explanation": "Paris is the capital.",
        })
        assert q is not None
        assert q.correct_answer == "A"
        assert q.options[0] == "Paris"

        row = to_mcq_row(q, material_id=7, order=0)
        assert row["correct_answer"] == "A"
        assert row["option_a"] == "Paris"
        assert row["option_d"] == "Berlin"
        assert row["material_id"] == 7

    def test_letter_keyed_import_format(self):
        q = normalize_question({
            "question": "Who moved the Lahore Resolution?",
            "optionA": "A. K. Fazlul Huq",
            "optionB": "Liaquat Ali Khan",
            "optionC": "Allama Iqbal",
            "optionD": "Sir Syed",
            "correctAnswer": "A",
        })
        assert q is not None
        assert q.correct_answer == "A"
        assert q.options[0] == "A. K. Fazlul Huq"

    def test_lowercase_and_decorated_letters(self):
        options = ["one", "two", "three"]
        assert resolve_answer("b", options) == "B"
        assert resolve_answer("(C)", options) == "C"
        assert resolve_answer("Option A", options) == "A"

    def test_letter_out_of_range_is_rejected(self):
        assert resolve_answer("D", ["one", "two", "three"]) is None

    def test_exact_text_wins_over_letter_reading(self):
        # an option literally named "B" sits at position C
        assert resolve_answer("B", ["x", "y", "B"]) == "C"

    def test_duplicate_option_text_is_ambiguous(self):
        assert resolve_answer("same", ["same", "same", "other"]) is None

    def test_unmatched_answer_drops_item(self):
        assert normalize_question({
            "question": "Q?",
            "options": ["a1", "b1", "c1", "d1"],
            "correct_answer": "e1",
        }) is None

    def test_missing_question_or_options_drops_item(self):
        assert normalize_question({"question": "", "options": ["a", "b"], "correct_answer": "a"}) is None
        assert normalize_question({"question": "Q?", "options": ["only"], "correct_answer": "only"}) is None
        assert normalize_question({"question": "Q?", "options": ["a", "", "c"], "correct_answer": "a"}) is None
        assert normalize_question("not a dict") is None

    def test_too_many_options_drops_item(self):
        assert normalize_question({
            "question": "Q?",
            "options": ["a", "b", "c", "d", "e"],
            "correct_answer": "a",
        }) is None

    def test_option_longer_than_column_drops_item(self):
        long_option = "x" * (OPTION_MAX_CHARS + 1)
        assert normalize_question({
            "question": "Q?",
            "options": ["a", long_option],
            "correct_answer": "a",
        }) is None
        assert normalize_question({
            "question": "Q?",
            "options": ["a", "x" * OPTION_MAX_CHARS],
            "correct_answer": "a",
        }) is not None

    def test_overlong_urdu_option_drops_item(self):
        assert normalize_question({
            "question": "Q?",
            "options": ["a", "b"],
            "options_urdu": ["الف", "ب" * (OPTION_MAX_CHARS + 1)],
            "correct_answer": "a",
        }) is None

    def test_urdu_fields_carried_through(self):
        q = normalize_question({
            "question": "Q?",
            "question_urdu": "سوال؟",
            "options": ["a", "b"],
            "options_urdu": ["الف", "ب"],
            "correct_answer": "b",
            "explanation_urdu": "وضاحت",
        })
        row = to_mcq_row(q, material_id=1, order=3)
        assert row["correct_answer"] == "B"
        assert row["option_b_urdu"] == "ب"
        assert row["option_c"] is None
        assert row["question_urdu"] == "سوال؟"
        assert row["order"] == 3

    def test_partial_urdu_options_are_ignored(self):
        q = normalize_question({
            "question": "Q?",
            "options": ["a", "b", "c"],
            "options_urdu": ["الف", ""],
            "correct_answer": "a",
        })
        assert q.options_urdu is None
