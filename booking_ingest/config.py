"""
Configuration models and YAML I/O for booking-ingest.

The header alias table and the export settings are plain data, so they
live in Pydantic models that can be dumped to / loaded from YAML. The
built-in defaults describe the hotel PMS arrival export; a YAML file is
only needed when a source uses different header labels.

Key models:
- ColumnSpec: accepted header aliases + declared value type of one field.
- ColumnMapping: ordered canonical field -> ColumnSpec, plus the required field.
- OutputConfig: delimiter, line terminator, file naming and BOM toggle.
- IngestConfig: Top-level config (columns + output).

Key functions:
- default_config() -> IngestConfig
- load_config(path) -> IngestConfig: Load and validate from YAML.
- save_config(config, path) -> Path: Serialize to commented YAML.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from booking_ingest.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

# Fixed output schema, in export column order.
OUTPUT_COLUMNS: list[str] = [
    "Id",
    "BookingNumber",
    "OTANumber",
    "Name",
    "NumberOfAdults",
    "NumberOfTeens",
    "NumberOfChildren",
    "NumberOfBabys",
    "DateFrom",
    "DateTo",
]

# Output fields that are never read from the workbook.
SYNTHETIC_FIELDS: dict[str, int] = {"NumberOfTeens": 0, "NumberOfBabys": 0}


class ColumnSpec(BaseModel):
    """Accepted header labels and value type for one canonical field."""

    aliases: list[str] = Field(
        ..., min_length=1, description="Header labels, first match wins"
    )
    type: Literal["text", "integer", "date"] = Field(
        "text",
        description="'integer' fields are parsed as ints, 'date' fields are normalized to DD.MM.YYYY",
    )


def _default_columns() -> dict[str, ColumnSpec]:
    return {
        "BookingNumber": ColumnSpec(aliases=["Reservation Number", "Reservation Num"]),
        "OTANumber": ColumnSpec(aliases=["Voucher"]),
        "Name": ColumnSpec(aliases=["Main Guest"]),
        "NumberOfAdults": ColumnSpec(aliases=["AD", "Adults"], type="integer"),
        "NumberOfChildren": ColumnSpec(aliases=["CH", "Children"], type="integer"),
        "DateFrom": ColumnSpec(aliases=["Arrival", "Arrival Date"], type="date"),
        "DateTo": ColumnSpec(aliases=["Departure", "Departure Date"], type="date"),
    }


class ColumnMapping(BaseModel):
    """Header alias table.

    Field order is significant only for logging; resolution of one
    field never depends on another.
    """

    mapping: dict[str, ColumnSpec] = Field(default_factory=_default_columns)
    required_field: str = Field(
        "BookingNumber",
        description="Rows without a value in this field are dropped",
    )

    @model_validator(mode="after")
    def _check_fields(self) -> ColumnMapping:
        if self.required_field not in self.mapping:
            raise ValueError(
                f"required_field '{self.required_field}' is not one of the "
                f"mapped fields: {list(self.mapping)}"
            )
        unknown = [name for name in self.mapping if name not in OUTPUT_COLUMNS]
        if unknown:
            raise ValueError(
                f"Mapped fields {unknown} are not output columns. "
                f"Output columns: {OUTPUT_COLUMNS}"
            )
        synthetic = [name for name in self.mapping if name in SYNTHETIC_FIELDS]
        if synthetic:
            raise ValueError(f"Fields {synthetic} are always 0 and cannot be mapped")
        return self

    @property
    def required_aliases(self) -> list[str]:
        return self.mapping[self.required_field].aliases


class OutputConfig(BaseModel):
    """Export settings."""

    delimiter: str = Field(";", min_length=1, max_length=1)
    line_terminator: str = Field("\r\n", description="Joins the export lines")
    file_prefix: str = Field("Anreise_", description="Export file name prefix")
    date_stamp_format: str = Field(
        "%d.%m.%Y", description="strftime format of the export date in the file name"
    )
    extension: str = Field(".csv")
    write_bom: bool = Field(
        True, description="Prefix the file with a UTF-8 BOM so Excel detects the encoding"
    )


class IngestConfig(BaseModel):
    """Top-level configuration for booking-ingest."""

    columns: ColumnMapping = Field(default_factory=ColumnMapping)
    output: OutputConfig = Field(default_factory=OutputConfig)


def default_config() -> IngestConfig:
    """Return the built-in configuration (hotel PMS arrival export)."""
    return IngestConfig()


_CONFIG_HEADER = (
    "# booking-ingest configuration\n"
    "# columns.mapping: canonical field -> header aliases (first match wins)\n"
    "# and value type (text | integer | date).\n"
    "# output: CSV delimiter, line terminator and export file naming.\n\n"
)


def load_config(path: str | Path) -> IngestConfig:
    """Load an alias/export config from YAML.

    Keys left out of the file keep their built-in defaults, so a file
    holding only ``output.file_prefix`` is valid.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the file is empty, is not valid YAML, or
            describes an inconsistent mapping (the pydantic error is chained).
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Config file {path} is not valid YAML: {exc}") from exc
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")

    try:
        config = IngestConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid config in {path}:\n{exc}") from exc

    logger.info(
        "Loaded config from %s (%d mapped fields, required=%s)",
        path,
        len(config.columns.mapping),
        config.columns.required_field,
    )
    return config


def save_config(config: IngestConfig, path: str | Path) -> Path:
    """Write *config* as commented YAML, keeping the field order.

    Returns:
        The written path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    body = yaml.safe_dump(
        config.model_dump(mode="json"),
        allow_unicode=True,
        default_flow_style=False,
        sort_keys=False,
    )
    path.write_text(_CONFIG_HEADER + body, encoding="utf-8")
    logger.info("Saved config to %s", path)
    return path
