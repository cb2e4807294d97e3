"""Plain-text table layout.

Usage:
    lines = format_table([["URL", "Perf"], ["/", "97"]], spacing=2, right_cols={1})
"""

from collections.abc import Collection, Sequence


def format_table(
    rows: Sequence[Sequence[str]],
    spacing: int = 0,
    right_cols: Collection[int] = (),
    max_lines: int | None = None,
) -> list[str]:
    """Lay out *rows* as aligned text lines.

    Widths are counted in code points. Rows may have different lengths: a
    missing cell adds nothing to its column's width and is not rendered.
    Columns whose cells are all empty are dropped. Cells in *right_cols*
    are right-aligned, others left-aligned, and *spacing* spaces separate
    adjacent columns. Nothing is appended after the last cell of a row.

    If *max_lines* is positive and there are more rows than that, the last
    permitted line is replaced by ``"[N more]"``.
    """
    widths: list[int] = []
    for row in rows:
        for i, val in enumerate(row):
            if i == len(widths):
                widths.append(0)
            widths[i] = max(widths[i], len(val))

    gap = " " * spacing
    lines: list[str] = []
    for row in rows:
        cells = [(i, val) for i, val in enumerate(row) if widths[i] > 0]
        parts: list[str] = []
        for n, (i, val) in enumerate(cells):
            if i in right_cols:
                parts.append(val.rjust(widths[i]))
            elif n < len(cells) - 1:
                parts.append(val.ljust(widths[i]))
            else:
                parts.append(val)
        lines.append(gap.join(parts))

    if max_lines is not None and 0 < max_lines < len(lines):
        lines[max_lines - 1] = f"[{len(lines) - max_lines + 1} more]"
        del lines[max_lines:]

    return lines
