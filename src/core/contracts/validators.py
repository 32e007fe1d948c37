"""
JSON Schema Contract Validators

Validates persisted aggregate records against formal JSON Schema contracts
(Draft 2020-12) shipped with the package in ``contracts/schema/``.

Schemas:
- afe_record.json
- lease_operating_statement_record.json
- curative_item_record.json
- permit_record.json
- approval_record.json
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator, ValidationError


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    JSON Schema file loader.

    Schemas live in the ``schema`` directory next to this module.
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Loaded schema cache
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Load a JSON Schema file.

        Args:
            schema_name: schema name without extension (e.g. 'afe_record')

        Returns:
            Loaded schema as dict

        Raises:
            FileNotFoundError: if the schema file does not exist
            ValueError: if the file is not a valid Draft 2020-12 schema
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Meta-validation
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


# Global loader instance
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Validates data against one named JSON Schema."""

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: if data does not match the schema
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Iterate over every validation error (no exception)."""
        return self.validator.iter_errors(data)


class AfeRecordValidator(ContractValidator):
    def __init__(self):
        super().__init__("afe_record")


class LeaseOperatingStatementRecordValidator(ContractValidator):
    def __init__(self):
        super().__init__("lease_operating_statement_record")


class CurativeItemRecordValidator(ContractValidator):
    def __init__(self):
        super().__init__("curative_item_record")


class PermitRecordValidator(ContractValidator):
    def __init__(self):
        super().__init__("permit_record")


class ApprovalRecordValidator(ContractValidator):
    def __init__(self):
        super().__init__("approval_record")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_afe_record(data: Dict[str, Any]) -> None:
    """
    Validate a persisted AFE record.

    Raises:
        ValidationError: if data does not match the schema
    """
    AfeRecordValidator().validate(data)


def validate_lease_operating_statement_record(data: Dict[str, Any]) -> None:
    LeaseOperatingStatementRecordValidator().validate(data)


def validate_curative_item_record(data: Dict[str, Any]) -> None:
    CurativeItemRecordValidator().validate(data)


def validate_permit_record(data: Dict[str, Any]) -> None:
    PermitRecordValidator().validate(data)


def validate_approval_record(data: Dict[str, Any]) -> None:
    ApprovalRecordValidator().validate(data)


__all__ = [
    "ValidationError",
    "SchemaLoader",
    "ContractValidator",
    "AfeRecordValidator",
    "LeaseOperatingStatementRecordValidator",
    "CurativeItemRecordValidator",
    "PermitRecordValidator",
    "ApprovalRecordValidator",
    "validate_afe_record",
    "validate_lease_operating_statement_record",
    "validate_curative_item_record",
    "validate_permit_record",
    "validate_approval_record",
]
