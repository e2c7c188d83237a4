"""Core types for describing parsed configuration blocks, checks and findings."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Severity(str, Enum):
    """How serious a finding is."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


class Provider(str, Enum):
    """Cloud provider a check belongs to."""

    AWS = "aws"
    AZURE = "azu"
    GCP = "gcp"
    GENERAL = "gen"


@dataclass(frozen=True)
class Range:
    """A span of lines in a source file."""

    filename: str = ""
    start_line: int = 0
    end_line: int = 0


@dataclass
class Attribute:
    """A named attribute of a block with its evaluated value."""

    name: str
    value: Any
    range: Range = field(default_factory=Range)


@dataclass
class Block:
    """A configuration block such as ``resource "aws_s3_bucket" "name" { ... }``."""

    type: str
    labels: list[str] = field(default_factory=list)
    attributes: dict[str, Attribute] = field(default_factory=dict)
    blocks: list[Block] = field(default_factory=list)
    range: Range = field(default_factory=Range)

    def get_attribute(self, name: str) -> Optional[Attribute]:
        """Return the attribute called ``name``, or None."""
        return self.attributes.get(name)

    def get_block(self, name: str) -> Optional[Block]:
        """Return the first nested block of type ``name``, or None."""
        return next((child for child in self.blocks if child.type == name), None)

    def get_blocks(self, name: str) -> list[Block]:
        """Return every nested block of type ``name`` in order."""
        return [child for child in self.blocks if child.type == name]

    def full_name(self) -> str:
        """Return the labels joined with dots, or the type for unlabelled blocks."""
        return ".".join(self.labels) if self.labels else self.type


@dataclass(frozen=True)
class CheckDocumentation:
    """Human-readable documentation for a check."""

    summary: str
    explanation: str = ""
    bad_example: str = ""
    good_example: str = ""
    links: tuple[str, ...] = ()


@dataclass(frozen=True)
class Result:
    """A single finding produced by a check."""

    rule_id: str
    description: str
    range: Range
    severity: Severity
    range_annotation: str = ""


@dataclass
class Context:
    """All blocks being scanned, available to checks that look beyond one block."""

    blocks: list[Block] = field(default_factory=list)

    def get_resources_by_type(self, resource_type: str) -> list[Block]:
        """Return resource blocks whose first label is ``resource_type``."""
        return [
            block
            for block in self.blocks
            if block.type == "resource" and block.labels and block.labels[0] == resource_type
        ]


CheckFunc = Callable[["Check", Block, Context], Optional[Iterable[Result]]]


def _annotate(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_annotate(item) for item in value) + "]"
    if value is None:
        return "null"
    return str(value)


@dataclass(frozen=True)
class Check:
    """A security rule applied to blocks of given types and labels."""

    code: str
    documentation: CheckDocumentation
    provider: Provider
    check_func: CheckFunc
    required_types: tuple[str, ...] = ()
    required_labels: tuple[str, ...] = ()

    def new_result(self, description: str, range: Range, severity: Severity) -> Result:
        """Create a finding for this check."""
        return Result(self.code, description, range, severity)

    def new_result_with_value_annotation(
        self,
        description: str,
        range: Range,
        attribute: Optional[Attribute],
        severity: Severity,
    ) -> Result:
        """Create a finding annotated with the offending attribute's value."""
        annotation = "" if attribute is None else _annotate(attribute.value)
        return Result(self.code, description, range, severity, annotation)

    def run(self, block: Block, context: Context) -> list[Result]:
        """Apply the check to ``block`` if the block's type and label match."""
        if self.required_types and block.type not in self.required_types:
            return []
        if self.required_labels and (not block.labels or block.labels[0] not in self.required_labels):
            return []
        return list(self.check_func(self, block, context) or [])


_registry: dict[str, Check] = {}


def register_check(check: Check) -> None:
    """Add a check to the global registry; codes must be unique."""
    if check.code in _registry:
        raise ValueError(f"check {check.code} is already registered")
    _registry[check.code] = check


def get_registered_checks() -> list[Check]:
    """Return all registered checks in registration order."""
    return list(_registry.values())