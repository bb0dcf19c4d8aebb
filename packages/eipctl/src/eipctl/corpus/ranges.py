from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NumberRanges:
    """Inclusive numeric ranges such as ``1,5069`` or ``1-10,42``."""

    spans: tuple[tuple[int, int], ...] = ()

    def contains(self, number: int) -> bool:
        return any(lo <= number <= hi for lo, hi in self.spans)

    def __contains__(self, number: object) -> bool:
        return isinstance(number, int) and self.contains(number)

    def __bool__(self) -> bool:
        return bool(self.spans)

    def numbers(self) -> list[int]:
        out: set[int] = set()
        for lo, hi in self.spans:
            out.update(range(lo, hi + 1))
        return sorted(out)

    def render(self) -> str:
        return ",".join(str(lo) if lo == hi else f"{lo}-{hi}" for lo, hi in self.spans)


def parse_number_ranges(raw: str | int | list[object] | None) -> NumberRanges:
    if raw is None:
        return NumberRanges()
    if isinstance(raw, int):
        pieces = [str(raw)]
    elif isinstance(raw, list):
        pieces = [str(item) for item in raw]
    else:
        pieces = str(raw).split(",")
    spans: list[tuple[int, int]] = []
    for piece in pieces:
        token = piece.strip()
        if not token:
            continue
        lo_raw, sep, hi_raw = token.partition("-")
        try:
            lo = int(lo_raw.strip())
            hi = int(hi_raw.strip()) if sep else lo
        except ValueError as exc:
            raise ValueError(f"invalid number range `{token}`") from exc
        if lo < 0 or hi < lo:
            raise ValueError(f"invalid number range `{token}`")
        spans.append((lo, hi))
    return NumberRanges(spans=_merge(spans))


def _merge(spans: list[tuple[int, int]]) -> tuple[tuple[int, int], ...]:
    merged: list[tuple[int, int]] = []
    for lo, hi in sorted(spans):
        if merged and lo <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(hi, merged[-1][1]))
        else:
            merged.append((lo, hi))
    return tuple(merged)
