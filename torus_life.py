#!/usr/bin/env python3
"""
  T O R U S   L I F E
  Conway's Game of Life on a fixed-size wrap-around grid, drawn as text.

  The grid is a torus: walk off the right edge and you come back on the
  left, walk off the bottom and you come back on top. Every frame the whole
  board is printed as a block of glyphs, one generation is computed, and the
  loop sleeps before drawing again.

  Usage:
    python3 torus_life.py                    # 20x40 board, 260ms frames
    python3 torus_life.py --pattern glider   # seed a different pattern
    python3 torus_life.py -n 100 --no-clear  # 100 generations, no clearing
    python3 torus_life.py --log stats.csv    # write telemetry to CSV

  Glyphs:
    @   live cell
    *   dead cell
"""

from __future__ import annotations

import argparse
import sys
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, ClassVar, Iterable, Protocol, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

# ── Glyphs ──────────────────────────────────────────────────────────────
ALIVE_GLYPH = "@"
DEAD_GLYPH = "*"

# ── Terminal control ────────────────────────────────────────────────────
# Erase display, then move the cursor home
CLEAR_SCREEN = "\x1b[2J\x1b[H"

# ── Pacing ──────────────────────────────────────────────────────────────
DEFAULT_DELAY_MS: int = 260
DEFAULT_ROWS: int = 20
DEFAULT_COLS: int = 40

# Number of recent state hashes kept for cycle detection
HASH_HISTORY: int = 60

# ── Neighbourhood ───────────────────────────────────────────────────────
# The 8 compass offsets, self excluded
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 0), (-1, -1), (0, -1), (1, -1),
    (1, 0), (1, 1), (0, 1), (-1, 1),
)

# ── Pattern library ─────────────────────────────────────────────────────
# (row, col) offsets from the pattern's top-left corner
PATTERNS: dict[str, list[tuple[int, int]]] = {
    "bloom": [(0, 1), (1, 0), (1, 1), (1, 2), (2, 0), (2, 2), (3, 1)],
    "glider": [(0, 1), (1, 2), (2, 0), (2, 1), (2, 2)],
    "blinker": [(0, 0), (0, 1), (0, 2)],
    "block": [(0, 0), (0, 1), (1, 0), (1, 1)],
    "beacon": [(0, 0), (0, 1), (1, 0), (2, 3), (3, 2), (3, 3)],
    "r_pentomino": [(0, 1), (0, 2), (1, 0), (1, 1), (2, 1)],
    "acorn": [(0, 1), (1, 3), (2, 0), (2, 1), (2, 4), (2, 5), (2, 6)],
    "diehard": [(0, 6), (1, 0), (1, 1), (2, 1), (2, 5), (2, 6), (2, 7)],
    "lwss": [
        (0, 1), (0, 4), (1, 0), (2, 0), (2, 4),
        (3, 0), (3, 1), (3, 2), (3, 3),
    ],
}

DEFAULT_PATTERN = "bloom"


def wrap(value: int, extent: int) -> int:
    """Fold a coordinate one step past either edge back onto the torus."""
    return (value + extent) % extent


# ═══════════════════════════════════════════════════════════════════════
#  Renderers
# ═══════════════════════════════════════════════════════════════════════

class Renderer(Protocol):
    """Receives one glyph per cell, row-major, plus a break after each row."""

    def emit(self, glyph: str) -> None: ...

    def end_row(self) -> None: ...


class StreamRenderer:
    """Writes glyphs straight to a text stream (stdout by default)."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream: IO[str] = stream if stream is not None else sys.stdout

    def emit(self, glyph: str) -> None:
        self._stream.write(glyph)

    def end_row(self) -> None:
        self._stream.write("\n")

    def flush(self) -> None:
        self._stream.flush()


class CaptureRenderer:
    """Collects every emitted glyph so a frame can be inspected afterwards."""

    def __init__(self) -> None:
        self.glyphs: list[str] = []
        self.rows: int = 0
        self._breaks: list[int] = []

    def emit(self, glyph: str) -> None:
        self.glyphs.append(glyph)

    def end_row(self) -> None:
        self.rows += 1
        self._breaks.append(len(self.glyphs))

    def lines(self) -> list[str]:
        out: list[str] = []
        start = 0
        for stop in self._breaks:
            out.append("".join(self.glyphs[start:stop]))
            start = stop
        return out

    def text(self) -> str:
        return "\n".join(self.lines())


# ═══════════════════════════════════════════════════════════════════════
#  The grid
# ═══════════════════════════════════════════════════════════════════════

class Grid:
    """
    A dense, fixed-size Game of Life board on a torus.

    Cells live in a flat row-major boolean array of length ``rows * cols``.
    Direct cell access is bounds-checked and never wraps; only the neighbour
    lookups fold coordinates around the edges.
    """

    def __init__(self, rows: int, cols: int) -> None:
        for name, value in (("rows", rows), ("cols", cols)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        self.rows: int = int(rows)
        self.cols: int = int(cols)
        self.cells: NDArray[np.bool_] = np.zeros(self.rows * self.cols, dtype=np.bool_)
        self.generation: int = 0

        # Pre-allocated neighbour buffer for the advance_generation() hot path
        self._neighbor_buf: NDArray[np.int16] = np.empty(
            (self.rows, self.cols), dtype=np.int16
        )

    @classmethod
    def from_array(cls, array: ArrayLike) -> Grid:
        """Build a grid from a 2-D array; any non-zero entry is a live cell."""
        arr = np.asarray(array)
        if arr.ndim != 2:
            raise ValueError(f"expected a 2-D array, got shape {arr.shape}")
        rows, cols = arr.shape
        grid = cls(rows, cols)
        np.copyto(grid.cells, arr.astype(np.bool_).ravel())
        return grid

    def to_array(self) -> NDArray[np.bool_]:
        return self.cells.reshape(self.rows, self.cols).copy()

    # ── Cell access ─────────────────────────────────────────────────

    def index(self, r: int, c: int) -> int:
        if not (0 <= r < self.rows and 0 <= c < self.cols):
            raise IndexError(
                f"cell ({r}, {c}) is outside the {self.rows}x{self.cols} grid"
            )
        return r * self.cols + c

    def set(self, r: int, c: int, alive: bool) -> None:
        self.cells[self.index(r, c)] = alive

    def set_alive(self, r: int, c: int) -> None:
        self.set(r, c, True)

    def set_dead(self, r: int, c: int) -> None:
        self.set(r, c, False)

    def is_alive(self, r: int, c: int) -> bool:
        return bool(self.cells[self.index(r, c)])

    def is_dead(self, r: int, c: int) -> bool:
        return not self.is_alive(r, c)

    def clear(self) -> None:
        self.cells[:] = False

    def population(self) -> int:
        return int(np.count_nonzero(self.cells))

    def state_hash(self) -> int:
        return hash(self.cells.tobytes())

    # ── Seeding ─────────────────────────────────────────────────────

    def place(
        self,
        pattern: str | Iterable[tuple[int, int]],
        top: int,
        left: int,
        rotation: int = 0,
    ) -> int:
        """Stamp a pattern with its top-left corner at (top, left).

        ``pattern`` is a name from PATTERNS or a sequence of (row, col)
        offsets. Each rotation step turns the offsets a quarter turn
        clockwise. Offsets that land off the board are dropped rather than
        wrapped. Returns the number of cells set alive.
        """
        cells = PATTERNS[pattern] if isinstance(pattern, str) else pattern
        placed = 0
        for dy, dx in cells:
            for _ in range(rotation % 4):
                dy, dx = dx, -dy
            ny, nx = top + dy, left + dx
            if 0 <= ny < self.rows and 0 <= nx < self.cols:
                self.cells[ny * self.cols + nx] = True
                placed += 1
        return placed

    # ── Simulation ──────────────────────────────────────────────────

    def count_live_neighbors(self, r: int, c: int) -> int:
        self.index(r, c)
        count = 0
        for dr, dc in NEIGHBOR_OFFSETS:
            nr = wrap(r + dr, self.rows)
            nc = wrap(c + dc, self.cols)
            if self.cells[nr * self.cols + nc]:
                count += 1
        return count

    def advance_generation(self) -> None:
        """Apply B3/S23 to every cell at once.

        Neighbour counts are taken from a frozen copy of the current
        generation, so no count ever sees a cell already updated this pass.
        """
        prev = self.cells.reshape(self.rows, self.cols).copy()

        # Shift-and-add with np.roll for toroidal wrap. A roll of -dr along
        # axis 0 puts cell (r + dr) at row r, matching wrap().
        n = self._neighbor_buf
        n.fill(0)
        for dr, dc in NEIGHBOR_OFFSETS:
            n += np.roll(np.roll(prev, -dr, axis=0), -dc, axis=1)

        n_is_3 = n == 3
        survive = prev & (n_is_3 | (n == 2))
        birth = ~prev & n_is_3

        np.copyto(self.cells, (survive | birth).ravel())
        self.generation += 1

    # ── Output ──────────────────────────────────────────────────────

    def render(self, renderer: Renderer) -> None:
        for row in range(self.rows):
            base = row * self.cols
            for col in range(self.cols):
                renderer.emit(ALIVE_GLYPH if self.cells[base + col] else DEAD_GLYPH)
            renderer.end_row()

    def __str__(self) -> str:
        capture = CaptureRenderer()
        self.render(capture)
        return capture.text()

    def __repr__(self) -> str:
        return (
            f"Grid(rows={self.rows}, cols={self.cols}, "
            f"generation={self.generation}, population={self.population()})"
        )


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes per-generation telemetry to CSV for later inspection."""

    HEADER: ClassVar[str] = "gen,time_s,population,cycle_period,event\n"

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    @property
    def active(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        try:
            self._fh = open(self._path, "w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(self, gen: int, pop: int, cycle: int, event: str = "") -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        self._fh.write(f"{gen},{t:.1f},{pop},{cycle},{event}\n")
        # Flush on events or periodically
        if event or gen % 50 == 0:
            try:
                self._fh.flush()
            except OSError:
                pass

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Driver
# ═══════════════════════════════════════════════════════════════════════

class CycleDetector:
    """Spots a repeated board state within a bounded window of hashes."""

    def __init__(self, window: int = HASH_HISTORY) -> None:
        self.hash_history: deque[int] = deque(maxlen=window)

    def observe(self, state_hash: int) -> int:
        """Record a state; return its period (0 if not seen in the window)."""
        period = 0
        for back, seen in enumerate(reversed(self.hash_history), start=1):
            if seen == state_hash:
                period = back
                break
        self.hash_history.append(state_hash)
        return period


@dataclass
class RunConfig:
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    delay_ms: int = DEFAULT_DELAY_MS
    generations: int = 0  # 0 = run until interrupted
    pattern: str = DEFAULT_PATTERN
    clear: bool = True
    log_path: Path | None = None


def seed(grid: Grid, pattern: str = DEFAULT_PATTERN) -> int:
    """Place a named pattern centred on the grid."""
    cells = PATTERNS[pattern]
    height = max(r for r, _ in cells) + 1
    width = max(c for _, c in cells) + 1
    return grid.place(cells, (grid.rows - height) // 2, (grid.cols - width) // 2)


def run(
    grid: Grid,
    renderer: Renderer,
    config: RunConfig,
    sleep: Callable[[float], None] | None = None,
    out: IO[str] | None = None,
    logger: StatsLogger | None = None,
) -> int:
    """Render, advance, wait; repeat. Returns the number of generations run.

    ``sleep`` paces frames and defaults to ``time.sleep``; pass a different
    callable to change or disable pacing.
    """
    sleep = sleep if sleep is not None else time.sleep
    out = out if out is not None else sys.stdout
    detector = CycleDetector()
    detector.observe(grid.state_hash())
    last_state = ""
    steps = 0

    while config.generations == 0 or steps < config.generations:
        # ── Render ─────────────────────────────────────────────────
        if config.clear:
            out.write(CLEAR_SCREEN)
        grid.render(renderer)
        out.flush()

        # ── Simulate ───────────────────────────────────────────────
        grid.advance_generation()
        steps += 1

        pop = grid.population()
        period = detector.observe(grid.state_hash())
        if pop == 0:
            state = "extinct"
        elif period:
            state = "cycle"
        else:
            state = ""
        event = state if state and state != last_state else ""
        last_state = state

        # ── Log ────────────────────────────────────────────────────
        if logger is not None and (event or grid.generation % 10 == 0):
            logger.log(gen=grid.generation, pop=pop, cycle=period, event=event)

        sleep(config.delay_ms / 1000.0)

    return steps


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return value


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Conway's Game of Life on a wrap-around terminal grid"
    )
    parser.add_argument("--rows", type=_positive_int, default=DEFAULT_ROWS,
                        help=f"Grid rows (default: {DEFAULT_ROWS})")
    parser.add_argument("--cols", type=_positive_int, default=DEFAULT_COLS,
                        help=f"Grid columns (default: {DEFAULT_COLS})")
    parser.add_argument("--delay", type=_non_negative_int, default=DEFAULT_DELAY_MS,
                        help=f"Milliseconds between frames (default: {DEFAULT_DELAY_MS})")
    parser.add_argument("-n", "--generations", type=_non_negative_int, default=0,
                        help="Stop after this many generations (default: 0, forever)")
    parser.add_argument("--pattern", choices=sorted(PATTERNS), default=DEFAULT_PATTERN,
                        help=f"Seed pattern (default: {DEFAULT_PATTERN})")
    parser.add_argument("--no-clear", dest="clear", action="store_false",
                        help="Do not clear the terminal between frames")
    parser.add_argument("--log", type=Path, default=None,
                        help="Write per-generation stats to this CSV file")
    return parser


def parse_config(argv: Sequence[str] | None = None) -> RunConfig:
    args = build_parser().parse_args(argv)
    return RunConfig(
        rows=args.rows,
        cols=args.cols,
        delay_ms=args.delay,
        generations=args.generations,
        pattern=args.pattern,
        clear=args.clear,
        log_path=args.log,
    )


def main(argv: Sequence[str] | None = None) -> int:
    config = parse_config(argv)

    grid = Grid(config.rows, config.cols)
    seed(grid, config.pattern)

    logger: StatsLogger | None = None
    if config.log_path is not None:
        logger = StatsLogger(config.log_path)
        logger.open()

    renderer = StreamRenderer(sys.stdout)
    try:
        run(grid, renderer, config, logger=logger)
    except KeyboardInterrupt:
        pass
    finally:
        if logger is not None:
            logger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
