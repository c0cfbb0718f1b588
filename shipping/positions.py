# -*- coding: utf-8 -*-
"""
Paper layout selection for label PDFs.

A "sheet" (A4) holds four labels:
    1. top-left      2. top-right
    3. bottom-left   4. bottom-right

Positioning only applies to the first page; MyParcel fills every following
page with the default positions 1;2;3;4.
"""

PAPER_SINGLE = 'single'
PAPER_SHEET = 'sheet'

FIRST_POSITION = 1
LAST_POSITION = 4


def compute_sheet_positions(start):
    """
    Returns the positions from `start` up to and including the last position
    on the sheet, e.g. 2 -> [2, 3, 4]. A start outside 1..4 gives an empty list.
    """
    if isinstance(start, bool) or not isinstance(start, int):
        return []
    if start < FIRST_POSITION or start > LAST_POSITION:
        return []
    return list(range(start, LAST_POSITION + 1))


def select_layout(positions=False):
    """
    Translates the `positions` argument of a label request into a paper size
    and a label position string.

    Args:
        positions (bool, int, list or None): False/None for one label per page.
            An int (or a numeric string) fills the sheet in ascending order
            starting at that position. A list or tuple is used as given,
            e.g. [2, 4].

    Returns:
        tuple: (paper_size, label_position) where label_position is None for
               the single layout.
    """
    # True selects the single layout as well
    if positions is None or isinstance(positions, bool):
        return PAPER_SINGLE, None

    if isinstance(positions, str) and positions.strip().isdigit():
        positions = int(positions)

    if isinstance(positions, int):
        return PAPER_SHEET, ';'.join(str(p) for p in compute_sheet_positions(positions))

    if isinstance(positions, (list, tuple)):
        return PAPER_SHEET, ';'.join(str(p) for p in positions)

    raise TypeError(f"positions must be False, None, an int or a list of ints, got {type(positions).__name__}")
