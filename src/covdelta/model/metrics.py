from __future__ import annotations

FULL_COVERAGE = 100


def pct(covered: int, total: int) -> float:
    """Return the coverage percentage, ``0.0`` when there is nothing to cover."""
    return 0.0 if total == 0 else (covered / total) * float(FULL_COVERAGE)


__all__ = ["FULL_COVERAGE", "pct"]
