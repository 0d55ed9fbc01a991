"""Tests for shape coercion of coach updates."""

import copy

import pytest

from src.services.coach import coerce_update


def test_wraps_single_prompt_object_for_replace():
    update = {
        "field": "promptAnswers",
        "action": "replace",
        "data": {"promptText": "My simple pleasures", "answerText": "Coffee"},
    }
    result = coerce_update(update)
    assert result.was_coerced is True
    assert result.update["data"] == [{"promptText": "My simple pleasures", "answerText": "Coffee"}]


def test_takes_first_element_for_prompt_add():
    first = {"promptText": "A", "answerText": "B"}
    update = {"field": "promptAnswers", "action": "add", "data": [first, {"promptText": "C", "answerText": "D"}]}
    result = coerce_update(update)
    assert result.was_coerced is True
    assert result.update["data"] == first


@pytest.mark.parametrize("key", ["text", "content"])
def test_extracts_bio_text_from_object(key):
    update = {"field": "bio", "action": "replace", "data": {key: "New bio"}}
    result = coerce_update(update)
    assert result.was_coerced is True
    assert result.update["data"] == "New bio"


def test_bio_object_with_bio_key_left_alone():
    update = {"field": "bio", "action": "replace", "data": {"bio": "Kept", "text": "Ignored"}}
    result = coerce_update(update)
    assert result.was_coerced is False
    assert result.update is update


def test_wraps_single_fun_fact_for_replace():
    update = {"field": "funFacts", "action": "replace", "data": {"label": "Pets", "value": "Dog"}}
    result = coerce_update(update)
    assert result.was_coerced is True
    assert result.update["data"] == [{"label": "Pets", "value": "Dog"}]


def test_unknown_shape_not_coerced():
    update = {"field": "promptAnswers", "action": "replace", "data": {"not": "an array or known shape"}}
    result = coerce_update(update)
    assert result.was_coerced is False
    assert result.update == update


@pytest.mark.parametrize(
    "update",
    [
        None,
        "bio",
        [],
        {"action": "replace", "data": "x"},
        {"field": "bio", "data": "x"},
        {"field": "photos", "action": "replace", "data": {"text": "x"}},
        {"field": "promptAnswers", "action": "add", "data": []},
    ],
)
def test_passes_through_untouched(update):
    result = coerce_update(update)
    assert result.was_coerced is False
    assert result.update == update


def test_input_never_mutated():
    update = {"field": "funFacts", "action": "replace", "data": {"label": "L", "value": "V"}}
    before = copy.deepcopy(update)
    result = coerce_update(update)
    assert update == before
    assert result.original == before
    result.update["data"][0]["label"] = "changed"
    assert update["data"]["label"] == "L"
