"""Checkpoint Validator - check a snapshot pair without raising.

This module reports problems as values instead of exceptions:
- File presence (both files of the pair)
- Stream integrity (truncation, record sizes)
- Cross-file consistency (theta topic width vs phi topic count)
- Normalization of every distribution
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.distribution import DEFAULT_TOLERANCE, DistributionTable
from ..exceptions import (
    CorruptCheckpointError,
    MissingCheckpointError,
    TruncatedStreamError,
)
from .store import FINAL_LABEL, CheckpointStore

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Severity level for validation issues."""
    ERROR = "error"      # Snapshot cannot be loaded or is inconsistent
    WARNING = "warning"  # Snapshot loads but may give odd answers
    INFO = "info"        # Informational note


@dataclass
class ValidationError:
    """A single validation error or warning."""
    code: str
    message: str
    severity: ValidationSeverity
    details: Optional[Dict[str, Any]] = None


@dataclass
class ValidationResult:
    """Result of validating a snapshot."""
    valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    stats: Optional[Dict[str, Any]] = None

    @property
    def error_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == ValidationSeverity.WARNING)

    def codes(self) -> List[str]:
        return [e.code for e in self.errors]


class CheckpointValidator:
    """Validator for checkpoint pairs.

    Example:
        validator = CheckpointValidator()
        result = validator.validate("lda-model", "final")
        if not result.valid:
            for error in result.errors:
                print(error)
    """

    # Report at most this many unnormalized rows per table
    MAX_REPORTED_ROWS = 5

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE, strict: bool = False):
        """Initialize validator.

        Args:
            tolerance: Allowed deviation of a distribution's sum from 1
            strict: If True, treat warnings as errors
        """
        self.tolerance = tolerance
        self.strict = strict

    def validate(self, directory: Union[str, Path], label: str = FINAL_LABEL) -> ValidationResult:
        """Validate the snapshot ``label`` in ``directory``.

        Returns:
            ValidationResult with validation status and any errors
        """
        store = CheckpointStore(directory)
        errors: List[ValidationError] = []

        try:
            pair = store.read(label)
        except MissingCheckpointError as e:
            errors.append(ValidationError(
                code="FILE_NOT_FOUND",
                message=str(e),
                severity=ValidationSeverity.ERROR,
                details={"paths": e.paths},
            ))
            return ValidationResult(valid=False, errors=errors)
        except TruncatedStreamError as e:
            errors.append(ValidationError(
                code="TRUNCATED",
                message=str(e),
                severity=ValidationSeverity.ERROR,
                details={"stream": e.stream_name},
            ))
            return ValidationResult(valid=False, errors=errors)
        except CorruptCheckpointError as e:
            errors.append(ValidationError(
                code="CORRUPT",
                message=str(e),
                severity=ValidationSeverity.ERROR,
            ))
            return ValidationResult(valid=False, errors=errors)

        stats = {
            "num_topics": pair.num_topics,
            "num_words": pair.num_words,
            "num_docs": pair.num_docs,
        }

        if pair.doc_topic.num_outcomes != pair.num_topics:
            errors.append(ValidationError(
                code="DIMENSION_MISMATCH",
                message=(
                    f"document topic table covers {pair.doc_topic.num_outcomes} topics, "
                    f"topic term table has {pair.num_topics}"
                ),
                severity=ValidationSeverity.ERROR,
            ))

        normalization_severity = (
            ValidationSeverity.ERROR if self.strict else ValidationSeverity.WARNING
        )
        errors.extend(self._check_normalized(pair.topic_term, normalization_severity))
        errors.extend(self._check_normalized(pair.doc_topic, normalization_severity))

        valid = not any(e.severity == ValidationSeverity.ERROR for e in errors)
        logger.debug("Validated %s/%s: %s", directory, label, "valid" if valid else "invalid")
        return ValidationResult(valid=valid, errors=errors, stats=stats)

    def _check_normalized(
        self, table: DistributionTable, severity: ValidationSeverity
    ) -> List[ValidationError]:
        if not len(table):
            return []
        sums = table.to_matrix().sum(axis=1)
        bad = [i for i, s in enumerate(sums.tolist()) if abs(s - 1.0) > self.tolerance]
        if not bad:
            return []
        shown = ", ".join(
            f"{table.kind} {i} sums to {sums[i]:.9g}" for i in bad[: self.MAX_REPORTED_ROWS]
        )
        return [ValidationError(
            code="NOT_NORMALIZED",
            message=f"{len(bad)} {table.kind} distribution(s) not normalized: {shown}",
            severity=severity,
            details={"kind": table.kind, "rows": bad},
        )]
