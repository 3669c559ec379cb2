"""Quality gate for the mapping/cross-reference join.

A low fraction of mapping rows resolving to a symbol usually means the two
reference files disagree on how entity identifiers are written (for example
"1" versus "1.0", or a different identifier namespace altogether).
"""

import logging
from dataclasses import dataclass, field

import polars as pl

from pubgene_pipeline.errors import JoinIntegrityError
from pubgene_pipeline.mapping.models import ENTITY_ID_COLUMN, SYMBOL_COLUMN

logger = logging.getLogger(__name__)


@dataclass
class JoinReport:
    """Summary of how many mapping rows resolve to a symbol.

    Attributes:
        total_rows: Mapping rows considered
        mapped_rows: Mapping rows whose entity has a symbol
        unmapped_ids: Distinct entity IDs with no symbol
        mapped_fraction: mapped_rows / total_rows (1.0 for an empty mapping)
    """
    total_rows: int
    mapped_rows: int
    unmapped_ids: list[str] = field(default_factory=list)
    mapped_fraction: float = 1.0

    def __post_init__(self):
        """Calculate mapped fraction after initialization."""
        if self.total_rows > 0:
            self.mapped_fraction = self.mapped_rows / self.total_rows


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes:
        passed: Whether validation passed
        messages: Validation messages (warnings, errors)
        mapped_fraction: Fraction of mapping rows with a symbol (0-1)
    """
    passed: bool
    messages: list[str] = field(default_factory=list)
    mapped_fraction: float = 0.0


def summarize_join(mapping: pl.DataFrame, crossref: pl.DataFrame) -> JoinReport:
    """Count mapping rows that resolve to a non-empty symbol."""
    symbol_ids = crossref.filter(
        pl.col(SYMBOL_COLUMN).is_not_null() & (pl.col(SYMBOL_COLUMN) != "")
    )[ENTITY_ID_COLUMN].unique()

    mapped = mapping[ENTITY_ID_COLUMN].is_in(symbol_ids)
    mapped_rows = int(mapped.sum())
    unmapped_ids = (
        mapping.filter(~mapped)[ENTITY_ID_COLUMN]
        .unique(maintain_order=True)
        .to_list()
    )

    return JoinReport(
        total_rows=mapping.height,
        mapped_rows=mapped_rows,
        unmapped_ids=unmapped_ids,
    )


class JoinValidator:
    """Validator for the mapping/cross-reference join.

    Enforces a configurable minimum mapped fraction and warns below a
    softer threshold.
    """

    def __init__(
        self,
        min_mapped_fraction: float = 0.0,
        warn_mapped_fraction: float = 0.5,
    ):
        """Initialize join validator.

        Args:
            min_mapped_fraction: Minimum fraction to pass (0 disables the gate)
            warn_mapped_fraction: Fraction below which a warning is issued
        """
        self.min_mapped_fraction = min_mapped_fraction
        self.warn_mapped_fraction = warn_mapped_fraction

    def validate(self, report: JoinReport) -> ValidationResult:
        """Check a JoinReport against the configured thresholds."""
        messages: list[str] = []
        rate = report.mapped_fraction

        if rate < self.min_mapped_fraction:
            messages.append(
                f"FAILED: {rate:.1%} of mapping rows resolved to a symbol, "
                f"below minimum {self.min_mapped_fraction:.1%}"
            )
            messages.append(
                f"Unmapped entity IDs: {len(report.unmapped_ids)} "
                f"(first 10: {report.unmapped_ids[:10]})"
            )
            passed = False
        elif rate < self.warn_mapped_fraction:
            messages.append(
                f"WARNING: {rate:.1%} of mapping rows resolved to a symbol, "
                f"below warning threshold {self.warn_mapped_fraction:.1%}"
            )
            messages.append(
                f"Mapped {report.mapped_rows}/{report.total_rows} rows; "
                "check that both files use the same entity identifiers"
            )
            passed = True
        else:
            messages.append(
                f"PASSED: {rate:.1%} of mapping rows resolved to a symbol "
                f"({report.mapped_rows}/{report.total_rows})"
            )
            passed = True

        log = logger.info if passed and rate >= self.warn_mapped_fraction else logger.warning
        log(f"Join validation: {'PASSED' if passed else 'FAILED'} (mapped: {rate:.1%})")

        return ValidationResult(
            passed=passed,
            messages=messages,
            mapped_fraction=rate,
        )

    def enforce(self, report: JoinReport) -> ValidationResult:
        """Validate and raise JoinIntegrityError on failure."""
        result = self.validate(report)
        if not result.passed:
            raise JoinIntegrityError("; ".join(result.messages))
        return result
