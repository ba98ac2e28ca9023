"""
Document Metadata

Field-level validation and merge policy for the open-ended parts of a
document: the signature field layout and the allow-listed extra
metadata. Arbitrary input keys are never reflected onto the entity;
only allow-listed names and the ``custom_`` namespace survive.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from docsign.models.document import SignatureFieldType
from .exceptions import InvalidFormat


# Extra descriptive fields accepted at creation or update time
ALLOWED_METADATA_FIELDS = frozenset({
    "description",
    "category",
    "priority",
    "dueDate",
    "tags",
    "department",
    "project",
    "client",
    "reference",
    "type",
    "customFields",
})

CUSTOM_FIELD_PREFIX = "custom_"

MetadataValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]


class SignatureField(BaseModel):
    """Placement of a field the signer fills in"""
    model_config = ConfigDict(extra="forbid")

    type: SignatureFieldType
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    page: int = Field(ge=1)
    required: bool = True


def parse_signature_fields(raw: Union[str, List[Any], None]) -> List[Dict[str, Any]]:
    """
    Parse signature field descriptors from their serialized form.

    Args:
        raw: JSON string or already-decoded list

    Returns:
        List of normalized field dicts, in input order

    Raises:
        InvalidFormat: If any descriptor is malformed; nothing is partially parsed
    """
    if raw is None or raw == "":
        return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidFormat("Invalid signature fields format") from e

    if not isinstance(raw, list):
        raise InvalidFormat("Signature fields must be a list")

    try:
        fields = [SignatureField.model_validate(item) for item in raw]
    except PydanticValidationError as e:
        raise InvalidFormat(
            "Invalid signature fields format",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        ) from e

    return [field.model_dump(mode="json") for field in fields]


def is_allowed_metadata_key(key: str) -> bool:
    return key in ALLOWED_METADATA_FIELDS or (
        key.startswith(CUSTOM_FIELD_PREFIX) and len(key) > len(CUSTOM_FIELD_PREFIX)
    )


def _check_value(key: str, value: Any) -> MetadataValue:
    if isinstance(value, (str, int, float, bool, list, dict)) or value is None:
        return value
    raise InvalidFormat(f"Unsupported value for metadata field '{key}'")


def filter_extra_fields(fields: Optional[Mapping[str, Any]]) -> Dict[str, MetadataValue]:
    """Keep allow-listed and ``custom_`` keys; silently drop everything else."""
    if not fields:
        return {}
    return {
        key: _check_value(key, value)
        for key, value in fields.items()
        if is_allowed_metadata_key(key)
    }


def merge_extra_fields(existing: Optional[Mapping[str, Any]],
                       incoming: Optional[Mapping[str, Any]]) -> Dict[str, MetadataValue]:
    """Return a new mapping with filtered ``incoming`` laid over ``existing``."""
    merged = dict(existing or {})
    merged.update(filter_extra_fields(incoming))
    return merged


def normalize_form_metadata(form_fields: Mapping[str, str]) -> Dict[str, MetadataValue]:
    """
    Decode metadata submitted as multipart form strings.

    ``tags`` is comma-separated and ``customFields`` is a JSON object;
    every other value stays a string.
    """
    normalized: Dict[str, MetadataValue] = {}
    for key, value in form_fields.items():
        if not is_allowed_metadata_key(key):
            continue
        if key == "tags" and isinstance(value, str):
            normalized[key] = [tag.strip() for tag in value.split(",") if tag.strip()]
        elif key == "customFields" and isinstance(value, str):
            try:
                decoded = json.loads(value)
            except json.JSONDecodeError as e:
                raise InvalidFormat("Invalid customFields format") from e
            if not isinstance(decoded, dict):
                raise InvalidFormat("customFields must be a JSON object")
            normalized[key] = decoded
        else:
            normalized[key] = value
    return normalized
