"""
Timeframe references (``contractor_kernel.domain.timeframe``).

Older rate cards identify a shift by a free-form label ("Mon–Fri Day",
"Sunday") or by one of the legacy shift codes (``WEEKDAY_DAY``,
``NIGHT``...).  Template-based cards identify it by the id of a template
timeframe definition.  Both are normalized into one ``TimeframeRef`` so the
resolver matches rates in exactly one way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ShiftType(str, Enum):
    """Legacy shift codes still found on older time logs."""

    WEEKDAY_DAY = "WEEKDAY_DAY"
    NIGHT = "NIGHT"
    SUNDAY = "SUNDAY"
    SHIFT = "SHIFT"
    DAILY = "DAILY"


LEGACY_SHIFT_LABELS: dict[str, str] = {
    ShiftType.WEEKDAY_DAY.value: "Mon–Fri Day",
    ShiftType.NIGHT.value: "Mon–Thurs Night",
    ShiftType.SUNDAY.value: "Sunday",
    ShiftType.SHIFT.value: "Shift",
    ShiftType.DAILY.value: "Daily",
}

_DASHES = ("–", "—", "‒", "−")


def normalize_label(label: str) -> str:
    """Canonical form of a shift label for comparison.

    Legacy codes expand to their label; en/em dashes compare equal to a
    hyphen; surrounding and repeated whitespace is collapsed.
    """
    text = label.strip()
    text = LEGACY_SHIFT_LABELS.get(text, text)
    for dash in _DASHES:
        text = text.replace(dash, "-")
    return " ".join(text.split())


class TimeframeRefKind(str, Enum):
    BY_ID = "by_id"
    BY_LABEL = "by_label"


@dataclass(frozen=True)
class TimeframeRef:
    """A shift reference: by template timeframe id, or by label.

    ``value`` is what matching uses; ``raw`` keeps the caller's text as
    given (stripped) and takes no part in equality.
    """

    kind: TimeframeRefKind
    value: str
    raw: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("TimeframeRef value must be non-empty")
        if not self.raw:
            object.__setattr__(self, "raw", self.value.strip())
        if self.kind == TimeframeRefKind.BY_LABEL:
            object.__setattr__(self, "value", normalize_label(self.value))
        else:
            object.__setattr__(self, "value", self.value.strip())

    @classmethod
    def by_id(cls, timeframe_id: str) -> TimeframeRef:
        return cls(TimeframeRefKind.BY_ID, timeframe_id)

    @classmethod
    def by_label(cls, label: str) -> TimeframeRef:
        return cls(TimeframeRefKind.BY_LABEL, label)

    @classmethod
    def from_fields(
        cls,
        timeframe_id: str | None = None,
        shift_type: str | None = None,
    ) -> TimeframeRef:
        """Build from stored record fields; a timeframe id takes precedence."""
        if timeframe_id:
            return cls.by_id(timeframe_id)
        if shift_type:
            return cls.by_label(shift_type)
        raise ValueError("Either timeframe_id or shift_type is required")

    @property
    def is_by_id(self) -> bool:
        return self.kind == TimeframeRefKind.BY_ID

    def __str__(self) -> str:
        return self.value
