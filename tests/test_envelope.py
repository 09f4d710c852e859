"""Unit tests for the incremental envelope encoder."""
import json
import pytest

from csvquery.domain.exceptions import EncodingError
from csvquery.services.envelope import EnvelopeEncoder


def test_fragments_form_the_envelope():
    enc = EnvelopeEncoder()
    text = "".join([
        enc.open(),
        enc.begin_result(["a"], ["x", "y"]),
        enc.row(["a"], [1, "one"]),
        enc.row(["a"], [2, None]),
        enc.end_result(),
        enc.begin_result(["b"], ["x", "y"]),
        enc.end_result(),
        enc.close(),
    ])
    assert text.endswith("]\n")
    assert json.loads(text) == [
        {"in": ["a"], "headers": ["x", "y"], "out": [[1, "one"], [2, None]]},
        {"in": ["b"], "headers": ["x", "y"], "out": []},
    ]
    assert enc.results == 2


def test_separators_reset_per_result():
    enc = EnvelopeEncoder()
    enc.open()
    assert enc.begin_result([], []) == '{"in":[],"headers":[],"out":['
    assert enc.row([], [1]) == "[1]"
    assert enc.row([], [2]) == ",[2]"
    assert enc.begin_result([], []).startswith(",{")
    assert enc.row([], [3]) == "[3]"


def test_blobs_are_base64():
    enc = EnvelopeEncoder()
    assert enc.row(["k"], [b"\x00\xff", memoryview(b"hi")]) == '["AP8=","aGk="]'


def test_text_is_not_ascii_escaped():
    assert EnvelopeEncoder().row([], ["café"]) == '["café"]'


def test_unrepresentable_value_raises_encoding_error():
    with pytest.raises(EncodingError, match=r"params \['k'\]"):
        EnvelopeEncoder().row(["k"], [float("inf")])
