"""
Unit tests for signature field parsing and metadata merge policy
"""

import json

import pytest

from docsign.core.document_metadata import (
    filter_extra_fields,
    is_allowed_metadata_key,
    merge_extra_fields,
    normalize_form_metadata,
    parse_signature_fields,
)
from docsign.core.exceptions import InvalidFormat

SIGNATURE_FIELD = {"type": "signature", "x": 10, "y": 20, "width": 150, "height": 40, "page": 1}


def test_parse_signature_fields_from_json_string():
    """Test parsing fields submitted as a JSON string"""
    fields = parse_signature_fields(json.dumps([SIGNATURE_FIELD]))

    assert fields == [{
        "type": "signature",
        "x": 10.0,
        "y": 20.0,
        "width": 150.0,
        "height": 40.0,
        "page": 1,
        "required": True,
    }]


def test_parse_signature_fields_keeps_order():
    date_field = dict(SIGNATURE_FIELD, type="date", required=False)
    fields = parse_signature_fields([SIGNATURE_FIELD, date_field])

    assert [field["type"] for field in fields] == ["signature", "date"]
    assert fields[1]["required"] is False


@pytest.mark.parametrize("raw", [None, ""])
def test_parse_signature_fields_empty(raw):
    assert parse_signature_fields(raw) == []


@pytest.mark.parametrize("raw", [
    "not json",
    json.dumps({"type": "signature"}),
    [dict(SIGNATURE_FIELD, type="stamp")],
    [dict(SIGNATURE_FIELD, width=0)],
    [dict(SIGNATURE_FIELD, page=0)],
    [{key: value for key, value in SIGNATURE_FIELD.items() if key != "x"}],
    [dict(SIGNATURE_FIELD, color="red")],
])
def test_parse_signature_fields_rejects_malformed(raw):
    """Test that any malformed descriptor fails the whole parse"""
    with pytest.raises(InvalidFormat):
        parse_signature_fields(raw)


def test_one_bad_descriptor_fails_all():
    with pytest.raises(InvalidFormat) as exc_info:
        parse_signature_fields([SIGNATURE_FIELD, dict(SIGNATURE_FIELD, height=-1)])

    assert exc_info.value.details["errors"]


@pytest.mark.parametrize("key,allowed", [
    ("description", True),
    ("customFields", True),
    ("custom_foo", True),
    ("custom_", False),
    ("hacked", False),
    ("status", False),
    ("uploader_id", False),
])
def test_is_allowed_metadata_key(key, allowed):
    assert is_allowed_metadata_key(key) is allowed


def test_filter_extra_fields_drops_unlisted_keys():
    """Test that unlisted names are dropped and custom_ names kept"""
    filtered = filter_extra_fields({"hacked": True, "custom_foo": 1, "priority": "high"})

    assert filtered == {"custom_foo": 1, "priority": "high"}


def test_filter_extra_fields_rejects_unsupported_values():
    with pytest.raises(InvalidFormat):
        filter_extra_fields({"description": object()})


def test_merge_extra_fields_returns_new_mapping():
    existing = {"description": "Old", "category": "legal"}

    merged = merge_extra_fields(existing, {"description": "New", "hacked": "x"})

    assert merged == {"description": "New", "category": "legal"}
    assert existing == {"description": "Old", "category": "legal"}


def test_normalize_form_metadata():
    """Test decoding of multipart metadata strings"""
    normalized = normalize_form_metadata({
        "tags": "nda, legal, ,urgent",
        "customFields": '{"region": "EU"}',
        "priority": "high",
        "hacked": "true",
    })

    assert normalized == {
        "tags": ["nda", "legal", "urgent"],
        "customFields": {"region": "EU"},
        "priority": "high",
    }


@pytest.mark.parametrize("value", ["{broken", "[1, 2]"])
def test_normalize_form_metadata_rejects_bad_custom_fields(value):
    with pytest.raises(InvalidFormat):
        normalize_form_metadata({"customFields": value})
