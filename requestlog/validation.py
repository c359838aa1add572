"""JSON schema validation for client-submitted payloads."""

import jsonschema

ERROR_REPORT_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["error"],
    "properties": {
        "error": {
            "type": "object",
            "required": ["message"],
            "properties": {
                "message": {"type": "string", "minLength": 1},
                "stack": {"type": ["string", "null"]},
                "name": {"type": ["string", "null"]},
                "componentStack": {"type": ["string", "null"]},
            },
        },
        "context": {"type": ["object", "null"]},
        "userAgent": {"type": ["string", "null"]},
        "url": {"type": ["string", "null"]},
        "timestamp": {"type": ["string", "null"]},
    },
}


class PayloadValidator:
    """Validates payloads against a JSON schema."""

    def __init__(self, schema: dict):
        self._validator = jsonschema.Draft202012Validator(schema)

    def validate(self, payload):
        """Returns:
            tuple: (is_valid: bool, errors: list[str])
        """
        errors = [error.message for error in self._validator.iter_errors(payload)]
        return not errors, errors
