"""Fix engine - validates, orders and applies text replacements."""
import logging
from typing import Iterable, Optional

from mdlint.core.errors import FixConflictError, PositionError
from mdlint.core.position import PositionIndex

from .models import Fix, FixResult, Violation

logger = logging.getLogger(__name__)


def collect_fixes(violations: Iterable[Violation]) -> list[Fix]:
    """Fixes embedded in fixable violations, in violation order."""
    return [v.fix for v in violations if v.fix is not None]


def _resolve(index: PositionIndex, fix: Fix) -> tuple[int, int]:
    start = index.position_to_offset(fix.start_line, fix.start_column)
    end = index.position_to_offset(fix.end_line, fix.end_column)
    if end < start:
        raise PositionError(
            f"Fix '{fix.description}' ends before it starts "
            f"({fix.start_line}:{fix.start_column} > {fix.end_line}:{fix.end_column})"
        )
    return start, end


def apply_fixes(
    text: str,
    fixes: Iterable[Fix],
    strict: bool = False,
    index: Optional[PositionIndex] = None,
) -> FixResult:
    """
    Apply fixes to ``text``.

    Every fix refers to coordinates in the original text. Fixes are sorted
    by start position, last first, and applied back to front on the UTF-8
    bytes so an applied replacement never shifts a pending one. Two fixes
    conflict when their ranges intersect or they start at the same offset;
    the one that sorts first is kept and the other dropped.

    Args:
        text: The original text
        fixes: Fixes against ``text``
        strict: Raise FixConflictError on the first conflict instead of dropping
        index: Position index of ``text`` (built when omitted)

    Returns:
        FixResult with the corrected text, applied and dropped fixes
    """
    index = index or PositionIndex.build(text)
    resolved = [(_resolve(index, fix), fix) for fix in fixes]
    # Stable: fixes at the same range keep their input order
    resolved.sort(key=lambda item: item[0], reverse=True)

    kept: list[tuple[tuple[int, int], Fix]] = []
    dropped: list[Fix] = []
    for (start, end), fix in resolved:
        if kept:
            (kept_start, _), kept_fix = kept[-1]
            if end > kept_start or start == kept_start:
                if strict:
                    raise FixConflictError(kept_fix, fix)
                logger.warning(
                    f"Dropping fix '{fix.description}' at {fix.start_line}:{fix.start_column}, "
                    f"it overlaps '{kept_fix.description}'"
                )
                dropped.append(fix)
                continue
        kept.append(((start, end), fix))

    data = index.data
    for (start, end), fix in kept:
        data = data[:start] + fix.replacement.encode("utf-8") + data[end:]

    applied = [fix for _, fix in reversed(kept)]
    return FixResult(text=data.decode("utf-8"), applied=applied, dropped=dropped)
