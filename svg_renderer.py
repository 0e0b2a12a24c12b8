from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import List, Optional

# Import shapes for type hints only
from puzzle_engine import GenerationResult


# -----------------------------------------------------------------------------
# Simple logger hook (optional; mirrors puzzle_engine)
# -----------------------------------------------------------------------------
_LOGGER = None  # type: Optional[callable]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    if _LOGGER:
        _LOGGER(msg)
        return
    print(msg)


DEFAULT_PUZZLE_TITLE = "Word Search Puzzle"
DEFAULT_SOLUTION_TITLE = "Word Search Solution"


@dataclass
class Appearance:
    """
    Visual settings used by the SVG renderer.
    Keep this in sync with your UI fields.
    """
    # Grid
    cell_size: int = 40
    cell_bg_color: str = "#FFFFFF"
    cell_line_color: str = "#333333"
    cell_line_thickness: float = 1.0

    # Letters
    grid_font_family: str = "Arial"
    grid_font_size: int = 20
    grid_font_bold: bool = True
    grid_font_color: str = "#000000"

    # Title
    title_font_family: str = "Arial"
    title_font_size: int = 32
    title_font_color: str = "#000000"

    # Word list under the grid
    list_font_family: str = "Arial"
    list_font_size: int = 18
    list_font_color: str = "#000000"
    list_align: str = "Left"  # "Left", "Center", "Right"
    list_heading_font_size: int = 24
    puzzle_list_heading: str = "Find these words:"
    solution_list_heading: str = "Words found:"
    legend_columns: int = 3
    show_legend: bool = True

    # --- Solution marking options ---
    solution_mark_style: str = "highlight"     # "highlight" | "circle"
    solution_mark_color: str = "#ffeb3b"
    solution_circle_width: float = 3.0
    solution_circle_band_frac: float = 0.75    # fraction of cell height
    solution_circle_pad_len: float = 2.0       # extra length at each end (px)

    # Page
    margin: int = 50
    page_bg_color: str = "#FFFFFF"


# -----------------------------------------------------------------------------
# Tiny helper to build safe SVG text (no external lib, very basic)
# -----------------------------------------------------------------------------
def _esc(s: str) -> str:
    return (
        str(s).replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _text_anchor(align: str) -> str:
    if align.lower().startswith("c"):
        return "middle"
    if align.lower().startswith("r"):
        return "end"
    return "start"


def puzzle_title(name: str) -> str:
    name = (name or "").strip()
    return name or DEFAULT_PUZZLE_TITLE


def solution_title(name: str) -> str:
    name = (name or "").strip()
    return f"{name} - Solution" if name else DEFAULT_SOLUTION_TITLE


def export_basename(name: str, kind: str) -> str:
    """
    File name stem for downloads, e.g. ('Zoo Animals', 'puzzle') -> 'Zoo_Animals_puzzle'.
    Non-alphanumerics become underscores.
    """
    title = puzzle_title(name) if kind == "puzzle" else solution_title(name)
    return f"{re.sub(r'[^A-Za-z0-9]', '_', title)}_{kind}"


# -----------------------------------------------------------------------------
# Layout shared by puzzle and solution
# -----------------------------------------------------------------------------
@dataclass
class _Layout:
    rows: int
    cols: int
    cell: int
    total_w: int
    total_h: int
    title_y: int
    grid_x: int
    grid_y: int
    list_y: int
    per_col: int
    col_w: float
    line_h: int


def _layout(result: GenerationResult, appearance: Appearance, words: List[str]) -> _Layout:
    rows = result.size
    cols = len(result.grid[0]) if rows else 0
    cell = max(12, int(appearance.cell_size))
    margin = int(appearance.margin)
    grid_w = cols * cell
    grid_h = rows * cell

    title_y = margin
    grid_y = title_y + margin
    list_y = grid_y + grid_h + margin + appearance.list_heading_font_size

    col_count = max(1, int(appearance.legend_columns))
    per_col = max(1, math.ceil(len(words) / col_count))
    line_h = max(12, int(appearance.list_font_size * 1.6))
    list_h = (per_col * line_h + margin) if appearance.show_legend else 0

    total_w = max(grid_w + 2 * margin, 400)
    total_h = list_y + list_h if appearance.show_legend else grid_y + grid_h + margin
    grid_x = (total_w - grid_w) // 2
    col_w = (total_w - 2 * margin) / col_count
    return _Layout(rows, cols, cell, total_w, total_h, title_y, grid_x, grid_y, list_y, per_col, col_w, line_h)


def _svg_open(lay: _Layout, appearance: Appearance) -> List[str]:
    return [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{lay.total_w}" height="{lay.total_h}" '
        f'viewBox="0 0 {lay.total_w} {lay.total_h}">',
        f'<rect x="0" y="0" width="{lay.total_w}" height="{lay.total_h}" '
        f'fill="{appearance.page_bg_color}" stroke="none" />',
    ]


def _title(lay: _Layout, appearance: Appearance, title: str) -> str:
    return (
        f'<text x="{lay.total_w // 2}" y="{lay.title_y}" text-anchor="middle" '
        f'font-family="{_esc(appearance.title_font_family)}" font-size="{appearance.title_font_size}" '
        f'font-weight="bold" fill="{appearance.title_font_color}">{_esc(title)}</text>'
    )


def _grid_lines(lay: _Layout, appearance: Appearance) -> List[str]:
    out = []
    stroke = appearance.cell_line_color
    sw = appearance.cell_line_thickness
    x0, y0 = lay.grid_x, lay.grid_y
    grid_w = lay.cols * lay.cell
    grid_h = lay.rows * lay.cell
    # Vertical lines
    for c in range(lay.cols + 1):
        x = x0 + c * lay.cell
        out.append(f'<line x1="{x}" y1="{y0}" x2="{x}" y2="{y0 + grid_h}" stroke="{stroke}" stroke-width="{sw}" />')
    # Horizontal lines
    for r in range(lay.rows + 1):
        y = y0 + r * lay.cell
        out.append(f'<line x1="{x0}" y1="{y}" x2="{x0 + grid_w}" y2="{y}" stroke="{stroke}" stroke-width="{sw}" />')
    return out


def _letters(result: GenerationResult, lay: _Layout, appearance: Appearance) -> List[str]:
    font_weight = "bold" if appearance.grid_font_bold else "normal"
    out = [
        f'<g font-family="{_esc(appearance.grid_font_family)}" font-size="{appearance.grid_font_size}" '
        f'font-weight="{font_weight}" fill="{appearance.grid_font_color}">'
    ]
    # Center letters in cells
    txt_dy = int(appearance.grid_font_size * 0.35)
    for r in range(lay.rows):
        for c in range(lay.cols):
            ch = result.letter_at(r, c)
            x = lay.grid_x + c * lay.cell + lay.cell // 2
            y = lay.grid_y + r * lay.cell + lay.cell // 2 + txt_dy
            out.append(f'<text x="{x}" y="{y}" text-anchor="middle">{_esc(ch)}</text>')
    out.append('</g>')
    return out


def _legend(words: List[str], lay: _Layout, appearance: Appearance, heading: str) -> List[str]:
    if not appearance.show_legend:
        return []
    margin = int(appearance.margin)
    out = [
        f'<text x="{margin}" y="{lay.list_y - lay.line_h}" text-anchor="start" '
        f'font-family="{_esc(appearance.list_font_family)}" font-size="{appearance.list_heading_font_size}" '
        f'font-weight="bold" fill="{appearance.list_font_color}">{_esc(heading)}</text>'
    ]
    if not words:
        return out

    anchor = _text_anchor(appearance.list_align)
    out.append(
        f'<g font-family="{_esc(appearance.list_font_family)}" font-size="{appearance.list_font_size}" '
        f'fill="{appearance.list_font_color}">'
    )
    # Column-major layout
    for i, word in enumerate(words):
        col_idx = i // lay.per_col
        row_idx = i % lay.per_col
        tx = margin + col_idx * lay.col_w
        if anchor == "middle":
            tx += lay.col_w / 2
        elif anchor == "end":
            tx += lay.col_w - 4
        ty = lay.list_y + row_idx * lay.line_h
        out.append(f'<text x="{tx:.2f}" y="{ty}" text-anchor="{anchor}">{_esc(word)}</text>')
    out.append('</g>')
    return out


# -----------------------------------------------------------------------------
# Core renderers
# -----------------------------------------------------------------------------
def render_puzzle_svg(result: GenerationResult, appearance: Optional[Appearance] = None, title: str = "") -> str:
    """
    Title, grid with letters, and the words to find under it.
    Only placed priority words are listed.
    """
    appearance = appearance or Appearance()
    words = result.words_to_find()
    lay = _layout(result, appearance, words)

    out = _svg_open(lay, appearance)
    out.append(_title(lay, appearance, puzzle_title(title)))
    out.append(
        f'<rect x="{lay.grid_x}" y="{lay.grid_y}" width="{lay.cols * lay.cell}" height="{lay.rows * lay.cell}" '
        f'fill="{appearance.cell_bg_color}" stroke="none" />'
    )
    out.extend(_grid_lines(lay, appearance))
    out.extend(_letters(result, lay, appearance))
    out.extend(_legend(words, lay, appearance, appearance.puzzle_list_heading))
    out.append('</svg>')
    return "\n".join(out)


def _pill(cells, lay: _Layout, appearance: Appearance) -> str:
    """Rotated rounded rect around one word, extended to cover first and last cells."""
    cell = lay.cell
    band_frac = float(appearance.solution_circle_band_frac or 0.75)
    rect_h = max(1.0, band_frac * cell)
    rx = ry = rect_h * 0.5

    (r0, c0) = cells[0]
    (r1, c1) = cells[-1]
    x0 = lay.grid_x + c0 * cell + 0.5 * cell
    y0 = lay.grid_y + r0 * cell + 0.5 * cell
    x1 = lay.grid_x + c1 * cell + 0.5 * cell
    y1 = lay.grid_y + r1 * cell + 0.5 * cell

    dx = x1 - x0
    dy = y1 - y0
    D = math.hypot(dx, dy)
    if D > 1e-6:
        ux, uy = dx / D, dy / D
    else:
        ux, uy = 1.0, 0.0

    # 0.5*cell for axis-aligned; ~0.707*cell for 45 degrees
    ext_each = 0.5 * cell * (abs(ux) + abs(uy)) + float(appearance.solution_circle_pad_len)
    rect_w = D + 2.0 * ext_each
    cx = (x0 + x1) * 0.5
    cy = (y0 + y1) * 0.5
    ang = math.degrees(math.atan2(dy, dx)) if D > 1e-6 else 0.0
    return (
        f'<rect x="{cx - rect_w * 0.5:.2f}" y="{cy - rect_h * 0.5:.2f}" width="{rect_w:.2f}" height="{rect_h:.2f}" '
        f'fill="none" stroke="{appearance.solution_mark_color}" stroke-width="{appearance.solution_circle_width:.2f}" '
        f'rx="{rx:.2f}" ry="{ry:.2f}" transform="rotate({ang:.2f} {cx:.2f} {cy:.2f})" />'
    )


def render_solution_svg(result: GenerationResult, appearance: Optional[Appearance] = None, title: str = "") -> str:
    """
    Solution SVG:
      - Draw grid + letters like the puzzle.
      - Mark priority words with either:
          * "highlight": per-cell rects behind letters
          * "circle": rotated pill per placed word
    Secondary words stay unmarked; they are filler as far as the reader knows.
    """
    appearance = appearance or Appearance()
    words = result.words_to_find()
    lay = _layout(result, appearance, words)

    out = _svg_open(lay, appearance)
    out.append(_title(lay, appearance, solution_title(title)))
    out.append(
        f'<rect x="{lay.grid_x}" y="{lay.grid_y}" width="{lay.cols * lay.cell}" height="{lay.rows * lay.cell}" '
        f'fill="{appearance.cell_bg_color}" stroke="none" />'
    )

    mark_style = (appearance.solution_mark_style or "highlight").lower()
    if mark_style == "highlight":
        for (r, c) in sorted(result.solution_cells()):
            x = lay.grid_x + c * lay.cell
            y = lay.grid_y + r * lay.cell
            out.append(
                f'<rect class="solution-cell" x="{x}" y="{y}" width="{lay.cell}" height="{lay.cell}" '
                f'fill="{appearance.solution_mark_color}" stroke="none" />'
            )

    out.extend(_grid_lines(lay, appearance))

    if mark_style == "circle":
        for p in result.priority_placements():
            out.append(_pill(p.cells, lay, appearance))

    out.extend(_letters(result, lay, appearance))
    out.extend(_legend(words, lay, appearance, appearance.solution_list_heading))
    out.append('</svg>')
    return "\n".join(out)


def save_svg(svg_text: str, path: str) -> None:
    """Write an SVG string to disk."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(svg_text)
    _log(f"svg: wrote {path}")
