from __future__ import annotations

import csv
import random
import re
from dataclasses import dataclass, field, replace
from typing import (
    Callable,
    FrozenSet,
    Iterable,
    List,
    Literal,
    Optional,
    Sequence,
    Set,
    Tuple,
)

# 8 compass directions for placement (row delta, col delta).
# Order matters: the generator draws an index into this table.
DIR_VECTORS = {
    "E":  (0, 1),
    "W":  (0, -1),
    "S":  (1, 0),
    "N":  (-1, 0),
    "SE": (1, 1),
    "NW": (-1, -1),
    "SW": (1, -1),
    "NE": (-1, 1),
}
DIRECTIONS: Tuple[str, ...] = tuple(DIR_VECTORS)

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
GRID_SIZE = 15


# -----------------------------------------------------------------------------
# Simple logger hook
# -----------------------------------------------------------------------------
# app.py can call set_logger(my_ui_logger). If you do nothing, we print().
_LOGGER = None  # type: Optional[Callable[[str], None]]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    """Log to UI if available; otherwise print. Keep messages simple."""
    if _LOGGER:
        _LOGGER(msg)
        return
    print(msg)


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------
class PuzzleError(Exception):
    """Base class for everything the engine raises."""


class InvalidWordError(PuzzleError, ValueError):
    """A raw word failed normalization (empty, non-alphabetic, too short)."""


class ConfigurationError(PuzzleError, ValueError):
    """The generator refuses to run with these settings."""


# -----------------------------------------------------------------------------
# Data shapes used across the app
# -----------------------------------------------------------------------------
Direction = Literal["E", "W", "S", "N", "SE", "NW", "SW", "NE"]
Cell = Tuple[int, int]
Grid = List[List[Optional[str]]]


@dataclass(frozen=True)
class Placement:
    """One placed word with its path in the grid."""
    word: str
    direction: Direction
    cells: Tuple[Cell, ...]  # all grid coordinates used, in reading order
    attempts: int = 0        # random draws spent before the word fit

    @property
    def start(self) -> Cell:
        return self.cells[0]

    @property
    def vector(self) -> Tuple[int, int]:
        return DIR_VECTORS[self.direction]


@dataclass(frozen=True)
class GeneratorConfig:
    """
    Knobs for one generation run.
    Defaults match the printed 15x15 puzzle.
    """
    size: int = GRID_SIZE
    max_secondary: int = 20        # cap on non-priority words attempted
    priority_attempts: int = 500
    secondary_attempts: int = 100
    seed: Optional[str] = None

    def budget_for(self, is_priority: bool) -> int:
        return self.priority_attempts if is_priority else self.secondary_attempts


@dataclass(frozen=True)
class GenerationResult:
    """
    The outcome of the generator. This is what the renderer needs.
    A new run replaces it wholesale; nothing mutates it afterwards.
    """
    grid: Tuple[Tuple[str, ...], ...]
    placements: Tuple[Placement, ...]
    unplaced: Tuple[str, ...]
    priority: FrozenSet[str] = frozenset()
    config: GeneratorConfig = field(default_factory=GeneratorConfig)

    @property
    def size(self) -> int:
        return len(self.grid)

    def letter_at(self, row: int, col: int) -> str:
        return self.grid[row][col]

    def placement_for(self, word: str) -> Optional[Placement]:
        for p in self.placements:
            if p.word == word:
                return p
        return None

    def attempts_for(self, word: str) -> int:
        """Draws spent on `word`: its placement count, the full budget if unplaced, else 0."""
        p = self.placement_for(word)
        if p is not None:
            return p.attempts
        if word in self.unplaced:
            return self.config.budget_for(word in self.priority)
        return 0

    def priority_placements(self) -> List[Placement]:
        return [p for p in self.placements if p.word in self.priority]

    def words_to_find(self) -> List[str]:
        """Placed priority words, A to Z. This is the list printed under the grid."""
        return sorted(p.word for p in self.priority_placements())

    def solution_cells(self) -> Set[Cell]:
        cells: Set[Cell] = set()
        for p in self.priority_placements():
            cells.update(p.cells)
        return cells

    def unplaced_priority(self) -> List[str]:
        return [w for w in self.unplaced if w in self.priority]


@dataclass(frozen=True)
class WordList:
    """Validated words plus the subset the user wants to find."""
    words: Tuple[str, ...]
    priority: FrozenSet[str] = frozenset()


# -----------------------------------------------------------------------------
# Word normalization and CSV loading (UI calls these)
# -----------------------------------------------------------------------------
_WORD_RE = re.compile(r"^[A-Z]+$")
_TRUE_FLAGS = {"TRUE", "1"}


def normalize_word(raw) -> str:
    """
    Trim and uppercase a raw cell value.
    Raises InvalidWordError unless the result is 2+ letters A-Z.
    """
    if not isinstance(raw, str):
        raise InvalidWordError(f"not a word: {raw!r}")
    word = raw.strip().upper()
    if not word:
        raise InvalidWordError("empty word")
    if not _WORD_RE.match(word):
        raise InvalidWordError(f"only letters A-Z allowed: {raw!r}")
    if len(word) < 2:
        raise InvalidWordError(f"word too short: {raw!r}")
    return word


def parse_selection_flag(value) -> bool:
    """Second CSV column: TRUE/1 (any case) selects the word."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().upper() in _TRUE_FLAGS
    return False


def _is_header(row: Sequence[str]) -> bool:
    return bool(row) and isinstance(row[0], str) and "word" in row[0].lower()


def build_wordlist(rows: Iterable[Sequence]) -> WordList:
    """
    Turn two-column rows [word, flag] into a WordList.
    - A first row mentioning "word" is a header and is skipped.
    - Rows with fewer than two cells and invalid words are skipped.
    - Duplicates collapse; a word is priority if any of its rows is flagged.
    - Words come back sorted A to Z.
    """
    seen: Set[str] = set()
    priority: Set[str] = set()
    skipped = 0
    for index, row in enumerate(rows):
        if index == 0 and _is_header(row):
            continue
        if len(row) < 2:
            continue
        try:
            word = normalize_word(row[0])
        except InvalidWordError as e:
            skipped += 1
            _log(f"wordlist: skipping row {index + 1}: {e}")
            continue
        seen.add(word)
        if parse_selection_flag(row[1]):
            priority.add(word)

    words = tuple(sorted(seen))
    _log(f"wordlist: {len(words)} words, {len(priority)} selected, {skipped} skipped")
    return WordList(words=words, priority=frozenset(priority))


def _rows_from_stream(stream) -> List[List[str]]:
    rows: List[List[str]] = []
    for r in csv.reader(stream):
        cells = [c.strip() for c in r]
        if any(cells):
            rows.append(cells)
    return rows


def _read_rows(source) -> List[List[str]]:
    """Read CSV rows as lists of strings from a path or an open text stream."""
    if hasattr(source, "read"):
        rows = _rows_from_stream(source)
        _log(f"csv: loaded {len(rows)} rows")
        return rows
    try:
        with open(source, "r", encoding="utf-8-sig", newline="") as f:
            rows = _rows_from_stream(f)
    except OSError as e:
        _log(f"csv error: cannot read {source}: {e}")
        raise
    _log(f"csv: loaded {len(rows)} rows from {source}")
    return rows


def read_wordlist_csv(source) -> WordList:
    """Load a `word, TRUE/FALSE` CSV from a path or text stream."""
    return build_wordlist(_read_rows(source))


# -----------------------------------------------------------------------------
# Grid building
# -----------------------------------------------------------------------------
def create_grid(size: int) -> Grid:
    """N x N grid, every cell empty (None)."""
    if size <= 0:
        raise ConfigurationError(f"grid size must be positive, got {size}")
    return [[None for _ in range(size)] for _ in range(size)]


def random_letter_source(rng: random.Random) -> Callable[[], str]:
    """Uppercase A-Z, uniform, drawn from rng."""
    def _rand_letter() -> str:
        return ALPHABET[rng.randrange(len(ALPHABET))]
    return _rand_letter


def fill_empty(grid: Grid, random_letter: Callable[[], str]) -> None:
    """
    Fill empty cells in place. Cells that already hold a letter are left
    alone, so a second call on a full grid changes nothing.
    """
    for row in grid:
        for c, cell in enumerate(row):
            if cell is None or cell == "":
                row[c] = random_letter()


# -----------------------------------------------------------------------------
# Placement
# -----------------------------------------------------------------------------
def _path(origin: Cell, direction: Direction, length: int) -> List[Cell]:
    dr, dc = DIR_VECTORS[direction]
    r, c = origin
    return [(r + dr * i, c + dc * i) for i in range(length)]


def can_place(grid: Grid, word: str, origin: Cell, direction: Direction) -> bool:
    """
    Check bounds and compatibility (allow crossing on identical letters).
    Pure: the grid is only read.
    """
    h = len(grid)
    w = len(grid[0]) if h else 0
    for (r, c), ch in zip(_path(origin, direction, len(word)), word):
        if r < 0 or r >= h or c < 0 or c >= w:
            return False
        cell = grid[r][c]
        if cell is not None and cell != "" and cell != ch:
            return False
    return True


def place(grid: Grid, word: str, origin: Cell, direction: Direction) -> Placement:
    """
    Write the word on the grid and return its Placement.
    Caller must have checked can_place() first; nothing is re-validated here.
    """
    cells = _path(origin, direction, len(word))
    for (r, c), ch in zip(cells, word):
        grid[r][c] = ch
    return Placement(word=word, direction=direction, cells=tuple(cells))


# -----------------------------------------------------------------------------
# Word picking / preparation
# -----------------------------------------------------------------------------
def order_words(words: Sequence[str], priority: Iterable[str], max_secondary: int) -> List[str]:
    """
    Placement order: priority words longest-first, then the other words
    longest-first capped at max_secondary. Priority words are never capped.
    Sorting is stable, so equal-length words keep their input order.
    """
    chosen = set(priority)
    selected = [w for w in words if w in chosen]
    others = [w for w in words if w not in chosen]
    selected.sort(key=len, reverse=True)
    others.sort(key=len, reverse=True)
    return selected + others[:max(0, max_secondary)]


def _check_config(words: Sequence[str], priority: FrozenSet[str], config: GeneratorConfig) -> None:
    if config.size <= 0:
        raise ConfigurationError(f"grid size must be positive, got {config.size}")
    if config.max_secondary < 0:
        raise ConfigurationError(f"max_secondary must be >= 0, got {config.max_secondary}")
    if config.priority_attempts < 1 or config.secondary_attempts < 1:
        raise ConfigurationError("retry budgets must be at least 1")
    too_long = [w for w in words if len(w) > config.size]
    if too_long:
        raise ConfigurationError(
            f"words longer than the {config.size}x{config.size} grid: {', '.join(too_long)}"
        )
    unknown = sorted(priority.difference(words))
    if unknown:
        raise ConfigurationError(f"priority words not in the word list: {', '.join(unknown)}")


def _try_place(grid: Grid, word: str, budget: int, rng) -> Optional[Placement]:
    """Guess-and-check: random direction and origin, up to `budget` draws."""
    size = len(grid)
    for attempt in range(1, budget + 1):
        direction = DIRECTIONS[rng.randrange(len(DIRECTIONS))]
        row = rng.randrange(size)
        col = rng.randrange(size)
        if can_place(grid, word, (row, col), direction):
            return replace(place(grid, word, (row, col), direction), attempts=attempt)
    return None


# ---------------------------------------------------------------------------
# High-level API
# ---------------------------------------------------------------------------
def generate_puzzle(
    words: Sequence[str],
    priority: Iterable[str] = (),
    config: Optional[GeneratorConfig] = None,
    rng: Optional[random.Random] = None,
) -> GenerationResult:
    """
    Orchestrator:
      - validate settings before touching any grid
      - order words (priority first, longest first, others capped)
      - place each word with its retry budget; failures go to `unplaced`
      - fill empty cells once, after every word was tried
    `words` must already be normalized and deduplicated (see build_wordlist).
    """
    config = config or GeneratorConfig()
    chosen = frozenset(priority)
    _check_config(words, chosen, config)

    # Do NOT reseed a provided rng; otherwise fall back to config.seed.
    _rng = rng if rng is not None else random.Random(config.seed if config.seed else None)
    if rng is None:
        if config.seed is None or not str(config.seed).strip():
            _log("seed: none (non-deterministic)")
        else:
            _log(f"seed: {config.seed}")

    order = order_words(words, chosen, config.max_secondary)
    dropped = len(words) - len(order)
    _log(
        f"order: {sum(1 for w in order if w in chosen)} priority + "
        f"{sum(1 for w in order if w not in chosen)} other word(s)"
        + (f", {dropped} dropped by cap {config.max_secondary}" if dropped else "")
    )

    grid = create_grid(config.size)
    placements: List[Placement] = []
    unplaced: List[str] = []

    for word in order:
        budget = config.budget_for(word in chosen)
        placed = _try_place(grid, word, budget, _rng)
        if placed is None:
            _log(f"place: could not place '{word}' in {config.size}x{config.size} after {budget} tries, skipping it")
            unplaced.append(word)
        else:
            placements.append(placed)

    # fill the rest of the cells with random letters (consume the SAME _rng)
    fill_empty(grid, random_letter_source(_rng))

    _log(f"generate: placed {len(placements)} of {len(order)} word(s)")
    return GenerationResult(
        grid=tuple(tuple(row) for row in grid),
        placements=tuple(placements),
        unplaced=tuple(unplaced),
        priority=chosen,
        config=config,
    )


def render_preview_ascii(result: GenerationResult) -> str:
    """
    Simple ASCII for quick debugging.
    """
    lines = []
    for row in result.grid:
        lines.append(" ".join(ch if ch else "." for ch in row))
    return "\n".join(lines)
