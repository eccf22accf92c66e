import pytest

from generation.errors import MalformedResponseError
from generation.response_parser import (
    PLACEHOLDER_EXPLANATION,
    PLACEHOLDER_OPTION,
    extract_json_obj,
    normalise_answer,
    parse_candidate,
)
from tests.conftest import mcq_json


def test_parses_fenced_json_with_surrounding_chatter():
    raw = "Sure! Here it is:\n```json\n" + mcq_json("What is 2 + 2?", answer="c") + "\n```\nGood luck."
    cand = parse_candidate(raw, "math", "Arithmetic", 1)
    assert cand.text == "What is 2 + 2?"
    assert cand.correct_option == "C"
    assert [o.label for o in cand.options] == ["A", "B", "C", "D"]
    assert cand.subject == "math"
    assert cand.objective == "Arithmetic"
    assert cand.difficulty_level == 1


def test_repairs_bare_keys_and_single_quotes():
    cand = parse_candidate("{question_text: 'x', correct_answer: 'b'}", "math")
    assert cand.text == "x"
    assert cand.correct_option == "B"
    assert cand.option_text("B") == PLACEHOLDER_OPTION.format(label="B")
    assert cand.explanation == PLACEHOLDER_EXPLANATION


def test_repair_strips_trailing_commas():
    assert extract_json_obj('{"a": [1, 2,], "b": "c",}') == {"a": [1, 2], "b": "c"}
    assert extract_json_obj("{'k': 'v'}") == {"k": "v"}


def test_options_as_list_of_labelled_objects():
    raw = """{"question": "Pick the noble gas",
              "options": [{"label": "A", "text": "Oxygen"}, {"label": "B", "text": "Neon"},
                          {"label": "C", "text": "Nitrogen"}, {"label": "D", "text": "Hydrogen"}],
              "answer": "Neon", "explanation": "Group 18."}"""
    cand = parse_candidate(raw, "chemistry")
    assert cand.option_text("B") == "Neon"
    assert cand.correct_option == "B"


def test_options_as_dict():
    raw = '{"text": "Largest planet?", "options": {"A": "Mars", "B": "Venus", "C": "Jupiter", "D": "Earth"}, "correct": "C)"}'
    cand = parse_candidate(raw, "geography")
    assert cand.option_text("C") == "Jupiter"
    assert cand.correct_option == "C"


@pytest.mark.parametrize("answer", ["C", "c", "C)", "c.", "(C)", "Option C", "Answer: C",
                                    "The correct answer is (c)", "Correct: C", "gamma"])
def test_answer_letter_survives_punctuation_and_prefixes(answer):
    cand = parse_candidate(mcq_json("Which Greek letter comes third?", answer=answer), "math")
    assert cand.correct_option == "C"


def test_missing_answer_is_back_filled_as_a():
    assert normalise_answer("", ["w", "x", "y", "z"]) == "A"
    cand = parse_candidate('{"question_text": "Pick one", "option_a": "w"}', "math")
    assert cand.correct_option == "A"


@pytest.mark.parametrize("answer", ["unknown", "E", "Option F", "None of these"])
def test_answer_naming_no_option_is_rejected(answer):
    with pytest.raises(MalformedResponseError):
        normalise_answer(answer, ["w", "x", "y", "z"])
    with pytest.raises(MalformedResponseError):
        parse_candidate(mcq_json("Which Greek letter comes third?", answer=answer), "math")


@pytest.mark.parametrize("raw", ["no json here", "[1, 2, 3]", "} nothing here {"])
def test_unrecoverable_output_raises(raw):
    with pytest.raises(MalformedResponseError):
        parse_candidate(raw, "math")