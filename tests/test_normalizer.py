import json

import pytest

from krushi_sathi.core.errors import AIParseError
from krushi_sathi.utils.normalizer import (
    coerce_steps, extract_text_field, first_object_span, normalize_advisory, parse_direct,
    parse_fenced, parse_first_object, strip_structure,
)

ADVICE = {
    "title": "Yellow Leaves on Tomato",
    "text": "Yellowing usually points to **nitrogen deficiency** or early blight.",
    "steps": ["Remove affected leaves", "Apply compost tea", "Water at the base", "Mulch around plants"],
    "lang": "xx",
    "source": "template",
}
CLEAN = json.dumps(ADVICE)


def test_clean_fenced_and_prose_prefixed_inputs_normalize_identically():
    variants = [
        CLEAN,
        f"```json\n{CLEAN}\n```",
        f"Sure! Here is the advisory you asked for:\n{CLEAN}\nHope this helps.",
    ]
    results = [normalize_advisory(v, "en") for v in variants]
    shapes = {(r.title, r.text, tuple(r.steps)) for r in results}
    assert len(shapes) == 1
    assert results[0].title == ADVICE["title"]
    assert results[0].steps == ADVICE["steps"]


def test_lang_and_source_are_never_taken_from_model():
    result = normalize_advisory(CLEAN, "hi")
    assert result.lang == "hi"
    assert result.source == "ai"


def test_missing_fields_are_backfilled_per_language():
    result = normalize_advisory(json.dumps({"text": "Spray neem oil every evening for a week."}), "hi")
    assert result.title == "कृषि सलाह"
    assert result.steps == ["पत्तों की जाँच करें", "संक्रमित भाग अलग करें", "जैविक कीटनाशक लगाएँ", "सिंचाई नियंत्रित करें"]


def test_empty_or_malformed_steps_get_defaults():
    for steps in ([], None, 42, ["", "   "]):
        data = dict(ADVICE, steps=steps)
        result = normalize_advisory(json.dumps(data), "en")
        assert result.steps == ["Inspect leaves", "Isolate affected area", "Apply organic pesticide", "Control irrigation"]


def test_missing_text_uses_intro_with_question():
    result = normalize_advisory(json.dumps({"title": "Advice"}), "en", question="Why are leaves yellow")
    assert result.text == "Question: Why are leaves yellow. Here are personalized steps for your crop."


def test_steps_string_is_split_into_lines():
    assert coerce_steps("1. Prune\n2) Spray neem\n- Mulch\n\nStep 4: Monitor") == ["Prune", "Spray neem", "Mulch", "Monitor"]


def test_leading_quantities_are_not_mistaken_for_markers():
    data = dict(ADVICE, steps=["2.5 kg neem cake per acre", "1) Water lightly", "3.Mulch", "Step 2.5ml per litre"])
    assert normalize_advisory(json.dumps(data), "en").steps == [
        "2.5 kg neem cake per acre", "Water lightly", "3.Mulch", "Step 2.5ml per litre",
    ]
    assert coerce_steps("10) Irrigate\n-5°C frost expected") == ["Irrigate", "-5°C frost expected"]


def test_steps_objects_and_numbers_are_coerced():
    assert coerce_steps([{"step": "Prune"}, 7, None, "Mulch"]) == ["Prune", "7", "Mulch"]


def test_parse_direct_rejects_non_objects():
    assert parse_direct('["a", "b"]') is None
    assert parse_direct("not json") is None


def test_parse_fenced_requires_braces():
    assert parse_fenced("```json\nnothing here\n```") is None


def test_first_object_span_ignores_braces_in_strings():
    text = 'noise {"text": "use {half} dose", "steps": []} trailing {"other": 1}'
    assert first_object_span(text) == '{"text": "use {half} dose", "steps": []}'


def test_first_object_strategy_handles_two_objects():
    two = f"{CLEAN}\n{CLEAN}"
    assert parse_fenced(two) is None
    assert parse_first_object(two)["title"] == ADVICE["title"]


def test_text_field_salvaged_from_broken_json():
    broken = '{"title": "Leaf Spot", "text": "Remove spotted leaves and spray \\"Bordeaux\\" mix.", "steps": ["a",'
    assert extract_text_field(broken) == {"title": "Leaf Spot", "text": 'Remove spotted leaves and spray "Bordeaux" mix.'}
    result = normalize_advisory(broken, "en")
    assert result.source == "ai"
    assert result.title == "Leaf Spot"
    assert result.steps == ["Inspect leaves", "Isolate affected area", "Apply organic pesticide", "Control irrigation"]


def test_plain_prose_reply_is_kept_as_text():
    prose = "Your tomato leaves are yellow because of overwatering. Let the soil dry between irrigations."
    result = normalize_advisory(prose, "en")
    assert result.text == prose
    assert result.title == "Crop Advisory"


def test_strip_structure_removes_json_punctuation():
    assert strip_structure('{"title": [ ] }') is None
    assert strip_structure('{"text": "Neem oil, twice a week",\n"steps": [') == {"text": "Neem oil, twice a week"}


def test_empty_object_is_not_an_advisory():
    with pytest.raises(AIParseError):
        normalize_advisory("{}", "en")


@pytest.mark.parametrize("raw", ["", "   ", "{}}{", "```json\n{\n```", "ok"])
def test_unusable_output_raises_parse_error(raw):
    with pytest.raises(AIParseError) as exc_info:
        normalize_advisory(raw, "en")
    assert exc_info.value.code == "AI_PARSE_ERROR"
    assert exc_info.value.status_code == 503
