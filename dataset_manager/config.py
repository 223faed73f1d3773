"""
YAML dataset descriptions.

Example (dataset.yaml):

    subject_format: 'ID(?<subject>\\d+)'
    subject_type: int
    conditions:
      order: [session, stim]
      types: {session: int}
      labels:
        session: '\\d+'
        stim:
          - stim
          - placebo
          - {from: [PLAC, plc], to: placebo}
    subsets:
      - name: events
        source: csv
        dir: data/simple
        patterns: ['*.csv']
    ignore_files: []

Condition labels are either a regex string, a {pattern, ignore_case}
mapping, or a vocabulary list. Relative subset directories are resolved
against the directory holding the YAML file. `source` is a built-in source
name (see SOURCE_TYPES) or an import path "package.module:ClassName".
"""

from __future__ import annotations

import importlib
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .conditions.grammar import DEFAULT_SEPARATOR, TrialConditions
from .conditions.matcher import DEFAULT_SUBJECT_FORMAT
from .errors import ConfigurationError
from .sources.base import Source
from .sources.tabular import CSVSource, TSVSource
from .trials.models import DataSubset
from .trials.registry import TrialRegistry


SOURCE_TYPES: Dict[str, type] = {
    "source": Source,
    "csv": CSVSource,
    "tsv": TSVSource,
}

TYPE_NAMES: Dict[str, type] = {
    "str": str,
    "int": int,
    "float": float,
}


def resolve_source_type(name: str) -> type:
    """Look up a built-in source type, or import one given as "module:Class"."""
    if name in SOURCE_TYPES:
        return SOURCE_TYPES[name]
    if ":" not in name:
        available = ", ".join(sorted(SOURCE_TYPES))
        raise ConfigurationError(
            f"Unknown source type: {name}. Available: {available}, or 'module:Class'"
        )
    module_name, _, attr = name.partition(":")
    try:
        return getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import source type {name!r}: {e}") from e


class SubsetConfig(BaseModel):
    """One data subset."""
    name: str
    source: str = "source"
    dir: str
    patterns: List[str] = Field(default_factory=lambda: ["**/*"])
    ext: Optional[str] = None
    dependent: bool = False

    @field_validator("patterns", mode="before")
    @classmethod
    def _listify(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    def build(self, base_dir: Optional[Path] = None) -> DataSubset:
        directory = Path(self.dir).expanduser()
        if base_dir is not None and not directory.is_absolute():
            directory = base_dir / directory
        return DataSubset(
            name=self.name,
            source=resolve_source_type(self.source),
            dir=str(directory),
            patterns=self.patterns,
            ext=self.ext,
            dependent=self.dependent,
        )


class ConditionsConfig(BaseModel):
    """Condition names, label vocabularies, and options."""
    order: List[str]
    labels: Dict[str, Any]
    required: Optional[List[str]] = None
    types: Dict[str, Literal["str", "int", "float"]] = Field(default_factory=dict)
    defaults: Dict[str, Any] = Field(default_factory=dict)
    separator: str = DEFAULT_SEPARATOR

    def build(self) -> TrialConditions:
        labels = {cond: _label_spec(spec) for cond, spec in self.labels.items()}
        return TrialConditions(
            self.order,
            labels,
            required=self.required,
            types={cond: TYPE_NAMES[t] for cond, t in self.types.items()},
            defaults=self.defaults,
            sep=self.separator,
        )


class DatasetConfig(BaseModel):
    """Complete description of a dataset on disk."""
    subject_format: str = DEFAULT_SUBJECT_FORMAT
    subject_type: Literal["str", "int"] = "str"
    conditions: ConditionsConfig
    subsets: List[SubsetConfig]
    ignore_files: List[str] = Field(default_factory=list)
    strict: bool = False

    # Directory relative subset paths are resolved against
    base_dir: Optional[Path] = None

    def build_conditions(self) -> TrialConditions:
        return self.conditions.build()

    def build_subsets(self) -> List[DataSubset]:
        return [s.build(self.base_dir) for s in self.subsets]

    def build_registry(self) -> TrialRegistry:
        return TrialRegistry(
            self.build_conditions(),
            subject_format=self.subject_format,
            subject_type=TYPE_NAMES[self.subject_type],
        )


def _label_spec(spec: Any) -> Any:
    """Translate YAML label shorthand into TrialConditions label specs."""
    if isinstance(spec, dict) and "pattern" in spec and "from" not in spec:
        flags = re.IGNORECASE if spec.get("ignore_case") else 0
        return re.compile(spec["pattern"], flags)
    if isinstance(spec, list):
        return [_label_spec(entry) if isinstance(entry, dict) and "from" not in entry else entry
                for entry in spec]
    return spec


def parse_config(data: Dict[str, Any], base_dir: Optional[Union[str, Path]] = None) -> DatasetConfig:
    """
    Validate a dataset description.

    Raises:
        ConfigurationError: If the description is invalid
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Dataset description must be a mapping")
    try:
        config = DatasetConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid dataset description:\n{e}") from e
    if base_dir is not None:
        config.base_dir = Path(base_dir)
    return config


def load_config(path: Union[str, Path]) -> DatasetConfig:
    """Load and validate a YAML dataset description."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return parse_config(data, base_dir=path.parent)
