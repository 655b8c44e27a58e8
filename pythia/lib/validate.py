"""
Schema validation for Pythia.

Work item records are checked against a JSON Schema before they are
written back to disk, so a bad record never reaches an item file.
"""

import json
from pathlib import Path

import jsonschema


class ValidationError(Exception):
    """Schema validation failed."""

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


# Compiled validators, one per schema name
_validator_cache: dict[str, jsonschema.Draft7Validator] = {}


def _get_schemas_dir() -> Path:
    """Schemas ship inside the package (pythia/schemas)."""
    return Path(__file__).parent.parent / "schemas"


def _get_validator(schema_name: str) -> jsonschema.Draft7Validator:
    if schema_name not in _validator_cache:
        schema_path = _get_schemas_dir() / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        schema = json.loads(schema_path.read_text())
        jsonschema.Draft7Validator.check_schema(schema)
        _validator_cache[schema_name] = jsonschema.Draft7Validator(schema)
    return _validator_cache[schema_name]


def _field_path(error: jsonschema.ValidationError) -> str:
    return ".".join(str(p) for p in error.absolute_path) or "(root)"


def validate(data: dict, schema_name: str) -> None:
    """
    Validate data against named schema.

    Every violation is reported, not just the first; the error's path is
    that of the first violation in field order.

    Args:
        data: Record to validate (e.g. WorkItem.to_dict())
        schema_name: Schema name (e.g., "work_item")

    Raises:
        ValidationError: If validation fails
    """
    errors = sorted(_get_validator(schema_name).iter_errors(data), key=_field_path)
    if not errors:
        return

    message = "; ".join(f"{_field_path(e)}: {e.message}" for e in errors)
    raise ValidationError(schema_name, message, _field_path(errors[0]))


def validate_before_write(data: dict, schema_name: str, filepath: Path) -> None:
    """
    Validate data before writing it to filepath.

    Raises:
        ValidationError: If data doesn't match schema
    """
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(
            schema_name,
            f"Refusing to write invalid data to {filepath}: {e}"
        ) from None
