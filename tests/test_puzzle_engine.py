"""Tests for puzzle_engine.py."""

import io
import random

import pytest

from puzzle_engine import (
    ALPHABET,
    DIR_VECTORS,
    DIRECTIONS,
    ConfigurationError,
    GenerationResult,
    GeneratorConfig,
    InvalidWordError,
    Placement,
    PuzzleError,
    build_wordlist,
    can_place,
    create_grid,
    fill_empty,
    generate_puzzle,
    normalize_word,
    order_words,
    parse_selection_flag,
    place,
    random_letter_source,
    read_wordlist_csv,
    render_preview_ascii,
)


_WORDS = [
    "ELEPHANT", "GIRAFFE", "MONKEY", "ZEBRA", "TIGER", "LION", "BEAR",
    "OTTER", "PANDA", "KOALA", "RHINO", "HIPPO", "CAMEL", "LLAMA", "BISON",
]

_LONG = [
    "ANCHOR", "BONFIRE", "CRYSTAL", "DOLPHIN", "EMERALD", "FORTUNE", "LANTERN",
    "RAINBOW", "SPARROW", "TRUMPET", "CASTLE", "BRIDGE", "FOREST", "GARDEN",
    "WINTER", "PLANET", "ROCKET", "GUITAR", "CAMERA", "COFFEE",
]
_SHORT = ["OX", "AXE", "ZIP", "QI", "JOG"]


def _straight(p: Placement) -> bool:
    dr, dc = p.vector
    return all(
        (r1 - r0, c1 - c0) == (dr, dc)
        for (r0, c0), (r1, c1) in zip(p.cells, p.cells[1:])
    )


class TestCreateGrid:
    def test_all_cells_empty(self):
        """A fresh grid is size x size and holds no letters."""
        grid = create_grid(4)
        assert len(grid) == 4
        assert all(len(row) == 4 for row in grid)
        assert all(cell is None for row in grid for cell in row)

    def test_rows_are_independent(self):
        grid = create_grid(3)
        grid[0][0] = "A"
        assert grid[1][0] is None

    @pytest.mark.parametrize("size", [0, -3])
    def test_non_positive_size(self, size):
        with pytest.raises(ConfigurationError, match="positive"):
            create_grid(size)


class TestFillEmpty:
    def test_fills_only_empty_cells(self):
        grid = create_grid(3)
        grid[1][1] = "Q"
        fill_empty(grid, lambda: "Z")
        assert grid[1][1] == "Q"
        assert sum(cell == "Z" for row in grid for cell in row) == 8

    def test_second_fill_is_noop(self):
        """Filling a full grid changes nothing and never asks for a letter."""
        grid = create_grid(3)
        fill_empty(grid, random_letter_source(random.Random(1)))
        before = [row[:] for row in grid]

        def _boom():
            raise AssertionError("letter source should not be called")

        fill_empty(grid, _boom)
        assert grid == before

    def test_random_letters_are_uppercase(self):
        letter = random_letter_source(random.Random(3))
        assert all(letter() in ALPHABET for _ in range(200))


class TestCanPlace:
    def test_fits_in_empty_grid(self):
        grid = create_grid(5)
        assert can_place(grid, "HELLO", (0, 0), "E")
        assert can_place(grid, "HELLO", (4, 4), "NW")

    def test_out_of_bounds(self):
        grid = create_grid(5)
        assert not can_place(grid, "HELLO", (0, 1), "E")
        assert not can_place(grid, "HI", (0, 0), "N")
        assert not can_place(grid, "HI", (4, 0), "SW")

    @pytest.mark.parametrize("direction", DIRECTIONS)
    def test_every_direction_from_center(self, direction):
        grid = create_grid(3)
        assert can_place(grid, "AB", (1, 1), direction)

    def test_conflicting_letter(self):
        grid = create_grid(5)
        grid[0][2] = "X"
        assert not can_place(grid, "HELLO", (0, 0), "E")

    def test_identical_letter_crossing_allowed(self):
        grid = create_grid(5)
        grid[0][2] = "L"
        assert can_place(grid, "HELLO", (0, 0), "E")

    def test_does_not_touch_grid(self):
        grid = create_grid(5)
        can_place(grid, "HELLO", (0, 0), "S")
        assert all(cell is None for row in grid for cell in row)


class TestPlace:
    def test_writes_letters_and_records_cells(self):
        grid = create_grid(3)
        p = place(grid, "ABC", (0, 2), "W")
        assert p.word == "ABC"
        assert p.direction == "W"
        assert p.cells == ((0, 2), (0, 1), (0, 0))
        assert p.start == (0, 2)
        assert p.attempts == 0
        assert grid[0] == ["C", "B", "A"]

    def test_diagonal(self):
        grid = create_grid(4)
        p = place(grid, "DOG", (3, 0), "NE")
        assert p.cells == ((3, 0), (2, 1), (1, 2))
        assert _straight(p)
        assert grid[2][1] == "O"


class TestOrderWords:
    def test_priority_first_then_longest(self):
        order = order_words(["AB", "ABCD", "ABC", "XY"], {"AB", "XY"}, 20)
        assert order == ["AB", "XY", "ABCD", "ABC"]

    def test_equal_lengths_keep_input_order(self):
        assert order_words(["CAT", "DOG", "EMU"], set(), 20) == ["CAT", "DOG", "EMU"]

    def test_secondary_cap_keeps_longest(self):
        order = order_words(_SHORT + _LONG, set(), 20)
        assert sorted(order) == sorted(_LONG)

    def test_priority_never_capped(self):
        order = order_words(_LONG, set(_LONG[:5]), 0)
        assert sorted(order) == sorted(_LONG[:5])


class TestGeneratePuzzle:
    def test_example_cat_dog(self):
        """Two words in a 15x15 grid: both accounted for, grid fully lettered."""
        result = generate_puzzle(["CAT", "DOG"], {"CAT"}, rng=random.Random(7))
        assert len(result.placements) + len(result.unplaced) == 2
        assert result.size == 15
        assert all(len(ch) == 1 and ch in ALPHABET for row in result.grid for ch in row)
        cat = result.placement_for("CAT")
        if cat is not None:
            assert len(cat.cells) == 3
            assert cat.vector in DIR_VECTORS.values()
            assert _straight(cat)

    def test_placements_spell_words_in_bounds(self):
        result = generate_puzzle(_WORDS, {"ELEPHANT", "ZEBRA"}, rng=random.Random(42))
        assert result.placements
        for p in result.placements:
            assert len(p.cells) == len(p.word)
            assert all(0 <= r < 15 and 0 <= c < 15 for r, c in p.cells)
            assert "".join(result.letter_at(r, c) for r, c in p.cells) == p.word
            assert _straight(p)
            assert 1 <= p.attempts <= 500

    def test_no_conflicting_overlap(self):
        result = generate_puzzle(_LONG, set(_LONG[:10]), GeneratorConfig(size=10), rng=random.Random(5))
        claimed = {}
        for p in result.placements:
            for cell, ch in zip(p.cells, p.word):
                assert claimed.setdefault(cell, ch) == ch

    def test_determinism(self):
        """Same words, priority and seed give identical results."""
        a = generate_puzzle(_WORDS, {"LION", "BEAR"}, rng=random.Random(123))
        b = generate_puzzle(_WORDS, {"LION", "BEAR"}, rng=random.Random(123))
        assert a.grid == b.grid
        assert a.placements == b.placements
        assert a.unplaced == b.unplaced

    def test_seed_from_config(self, log_lines):
        cfg = GeneratorConfig(seed="zoo")
        a = generate_puzzle(_WORDS, config=cfg)
        b = generate_puzzle(_WORDS, config=cfg)
        assert a == b
        assert "seed: zoo" in log_lines

    def test_truncation_drops_shortest(self):
        """25 other words with the default cap: only the 20 longest are tried."""
        result = generate_puzzle(_SHORT + _LONG, rng=random.Random(9))
        attempted = {p.word for p in result.placements} | set(result.unplaced)
        assert attempted == set(_LONG)
        for word in _SHORT:
            assert result.attempts_for(word) == 0

    def test_priority_gets_larger_budget(self, scripted):
        """Every draw misses, so each word burns its whole budget."""
        rng = scripted([0, 0, 4])  # direction E, row 0, col 4: never fits 5 letters
        result = generate_puzzle(
            ["FGHIJ", "ABCDE"], {"ABCDE"}, GeneratorConfig(size=5), rng=rng,
        )
        assert result.placements == ()
        assert result.unplaced == ("ABCDE", "FGHIJ")
        assert result.attempts_for("ABCDE") == 500
        assert result.attempts_for("FGHIJ") == 100
        assert rng.calls == 3 * (500 + 100) + 25
        assert all(ch in ALPHABET for row in result.grid for ch in row)

    def test_priority_wins_contested_cells(self, scripted):
        """Both words want the same cells; the priority word goes first."""
        rng = scripted([0, 0, 0])
        result = generate_puzzle(["XYZ", "ABC"], {"ABC"}, GeneratorConfig(size=5), rng=rng)
        assert [p.word for p in result.placements] == ["ABC"]
        assert result.placements[0].attempts == 1
        assert result.placements[0].cells == ((0, 0), (0, 1), (0, 2))
        assert result.unplaced == ("XYZ",)
        assert result.attempts_for("ABC") <= result.attempts_for("XYZ")

    def test_unplaced_word_is_logged(self, scripted, log_lines):
        generate_puzzle(["XYZ", "ABC"], {"ABC"}, GeneratorConfig(size=5), rng=scripted([0, 0, 0]))
        assert any("could not place 'XYZ'" in line for line in log_lines)

    def test_result_is_frozen(self):
        result = generate_puzzle(["CAT"], rng=random.Random(1))
        with pytest.raises(AttributeError):
            result.unplaced = ()
        assert isinstance(result.grid, tuple)
        assert isinstance(result.grid[0], tuple)

    def test_empty_word_list(self):
        result = generate_puzzle([], rng=random.Random(1), config=GeneratorConfig(size=4))
        assert result.placements == ()
        assert result.unplaced == ()
        assert all(ch in ALPHABET for row in result.grid for ch in row)

    def test_accessors(self, scripted):
        rng = scripted([0, 0, 0, 0, 1, 0])  # ABC at row 0, DOG at row 1
        result = generate_puzzle(["DOG", "ABC"], {"ABC"}, GeneratorConfig(size=5), rng=rng)
        assert result.words_to_find() == ["ABC"]
        assert [p.word for p in result.priority_placements()] == ["ABC"]
        assert result.solution_cells() == {(0, 0), (0, 1), (0, 2)}
        assert result.letter_at(1, 0) == "D"
        assert result.unplaced_priority() == []
        assert render_preview_ascii(result).splitlines()[0].startswith("A B C")


class TestConfigurationErrors:
    def test_zero_size(self):
        with pytest.raises(ConfigurationError):
            generate_puzzle(["CAT"], config=GeneratorConfig(size=0))

    def test_word_longer_than_grid(self):
        with pytest.raises(ConfigurationError, match="ELEPHANT"):
            generate_puzzle(["ELEPHANT", "CAT"], config=GeneratorConfig(size=5))

    def test_unknown_priority_word(self):
        with pytest.raises(ConfigurationError, match="DOG"):
            generate_puzzle(["CAT"], {"DOG"})

    def test_negative_cap(self):
        with pytest.raises(ConfigurationError):
            generate_puzzle(["CAT"], config=GeneratorConfig(max_secondary=-1))

    def test_zero_budget(self):
        with pytest.raises(ConfigurationError, match="budgets"):
            generate_puzzle(["CAT"], config=GeneratorConfig(priority_attempts=0))

    def test_hierarchy(self):
        assert issubclass(ConfigurationError, PuzzleError)
        assert issubclass(ConfigurationError, ValueError)


class TestWordList:
    def test_normalize(self):
        assert normalize_word("  cat ") == "CAT"

    @pytest.mark.parametrize("raw", ["", "   ", "A", "C4T", "ice cream", "café", None, 12])
    def test_invalid_words(self, raw):
        with pytest.raises(InvalidWordError):
            normalize_word(raw)

    @pytest.mark.parametrize("value", ["TRUE", " true ", "1", True])
    def test_flag_true(self, value):
        assert parse_selection_flag(value)

    @pytest.mark.parametrize("value", ["FALSE", "", "yes", None, 0, False])
    def test_flag_false(self, value):
        assert not parse_selection_flag(value)

    def test_build_wordlist(self, log_lines):
        rows = [
            ["Word", "Select"],
            ["zebra", "TRUE"],
            ["Cat", "false"],
            ["CAT", "1"],
            ["x", "TRUE"],
            ["bad1", "TRUE"],
            ["lonely"],
        ]
        wl = build_wordlist(rows)
        assert wl.words == ("CAT", "ZEBRA")
        assert wl.priority == frozenset({"CAT", "ZEBRA"})
        assert sum("skipping" in line for line in log_lines) == 2

    def test_header_only_on_first_row(self):
        wl = build_wordlist([["cat", "FALSE"], ["words", "TRUE"]])
        assert wl.words == ("CAT", "WORDS")
        assert wl.priority == frozenset({"WORDS"})

    def test_read_from_stream(self):
        text = "word,selected\nlion,TRUE\n\ntiger,FALSE\nlion,FALSE\n"
        wl = read_wordlist_csv(io.StringIO(text))
        assert wl.words == ("LION", "TIGER")
        assert wl.priority == frozenset({"LION"})

    def test_read_from_path_with_bom(self, tmp_path):
        path = tmp_path / "words.csv"
        path.write_text("Word,Find\nOtter, true \nPanda,FALSE\n", encoding="utf-8-sig")
        wl = read_wordlist_csv(str(path))
        assert wl.words == ("OTTER", "PANDA")
        assert wl.priority == frozenset({"OTTER"})

    def test_missing_file(self, tmp_path, log_lines):
        with pytest.raises(OSError):
            read_wordlist_csv(str(tmp_path / "nope.csv"))
        assert any("csv error" in line for line in log_lines)

    def test_wordlist_feeds_generator(self):
        wl = build_wordlist([["owl", "TRUE"], ["hawk", "FALSE"]])
        result = generate_puzzle(wl.words, wl.priority, rng=random.Random(2))
        assert isinstance(result, GenerationResult)
        assert result.priority == wl.priority
