"""Mini-games: timing bar and rhythm matching.

Both games are frame-stepped state machines. A client calls step() once per
animation frame and forwards input events (stop(), press()); the game decides
success. Neither game touches the clock on its own: rhythm spawning takes the
current time in milliseconds as an argument.

Timing bar
  The marker moves across [0, 100] at a fixed speed per frame and bounces at
  the edges. stop() succeeds iff the marker is inside the success zone
  (inclusive bounds).

Rhythm matching
  Four lanes (A, W, S, D). spawn() activates a random inactive lane when the
  minimum key spacing has elapsed. Coming keys advance by move_speed per
  frame; passing 100 counts as a miss. Resolved keys fade 5 units per frame
  and then go back to inactive. A press on a coming lane succeeds iff
  |progress - 85| <= success_window. The game is won at target_matches hits
  and lost at max_misses misses.

Trigger rule: a game whose scenario lists mini-games is offered one once
conversation_round reaches MINI_GAME_ROUND, unless one was already played.
"""

import random
from dataclasses import dataclass, field
from typing import Literal

from gamemaster.models import GameState, HistoryEntry, MiniGameRecord, Scenario

Difficulty = Literal["easy", "medium", "hard"]
KeyName = Literal["A", "W", "S", "D"]
KeyState = Literal["inactive", "coming", "success", "fail", "missed"]

TIMING_BAR = "timing_bar"
RHYTHM_MATCHING = "rhythm_matching"
MINI_GAME_TYPES = (TIMING_BAR, RHYTHM_MATCHING)
MINI_GAME_ROUND = 3

TIMING_SPEEDS: dict[str, float] = {"easy": 1.0, "medium": 1.5, "hard": 2.5}
TIMING_ZONES: dict[str, tuple[float, float]] = {
    "easy": (40, 60),
    "medium": (45, 55),
    "hard": (47, 53),
}

RHYTHM_KEYS: tuple[KeyName, ...] = ("A", "W", "S", "D")
RHYTHM_TARGET = 85
RHYTHM_FADE = 5


@dataclass(frozen=True)
class RhythmSettings:
    spawn_interval_ms: int
    move_speed: float
    success_window: float
    max_misses: int
    min_key_spacing_ms: int


RHYTHM_SETTINGS: dict[str, RhythmSettings] = {
    "easy": RhythmSettings(1500, 0.8, 15, 5, 1200),
    "medium": RhythmSettings(1200, 1.0, 12, 4, 1000),
    "hard": RhythmSettings(1000, 1.2, 10, 3, 800),
}


def _check_difficulty(difficulty: str) -> None:
    if difficulty not in TIMING_SPEEDS:
        raise ValueError(f"Unknown difficulty: {difficulty}")


class TimingBarGame:
    def __init__(self, difficulty: Difficulty = "medium") -> None:
        _check_difficulty(difficulty)
        self.difficulty = difficulty
        self.speed = TIMING_SPEEDS[difficulty]
        self.zone = TIMING_ZONES[difficulty]
        self.position = 0.0
        self.direction = 1
        self.running = True
        self.result: bool | None = None

    def step(self) -> float:
        """Advance one frame and return the new position."""
        if not self.running:
            return self.position
        pos = self.position + self.direction * self.speed
        if pos >= 100:
            pos = 100.0
            self.direction = -1
        elif pos <= 0:
            pos = 0.0
            self.direction = 1
        self.position = pos
        return pos

    def stop(self) -> bool:
        """Stop the marker. Later calls return the first result."""
        if not self.running:
            return bool(self.result)
        self.running = False
        start, end = self.zone
        self.result = start <= self.position <= end
        return self.result


@dataclass
class Lane:
    key: KeyName
    state: KeyState = "inactive"
    progress: float = 0.0


@dataclass
class RhythmMatchingGame:
    difficulty: Difficulty = "medium"
    target_matches: int = 10
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self) -> None:
        _check_difficulty(self.difficulty)
        self.settings = RHYTHM_SETTINGS[self.difficulty]
        self.lanes = [Lane(k) for k in RHYTHM_KEYS]
        self.running = False
        self.score = 0
        self.misses = 0
        self.result: bool | None = None
        self._last_spawn_ms = 0

    def lane(self, key: str) -> Lane | None:
        key = key.upper()
        for lane in self.lanes:
            if lane.key == key:
                return lane
        return None

    def start(self, now_ms: int) -> None:
        self.running = True
        self.score = 0
        self.misses = 0
        self.result = None
        self.lanes = [Lane(k) for k in RHYTHM_KEYS]
        # allow an immediate first spawn
        self._last_spawn_ms = now_ms - self.settings.min_key_spacing_ms

    def spawn(self, now_ms: int) -> KeyName | None:
        """Activate a random inactive lane. Returns its key, or None."""
        if not self.running:
            return None
        if now_ms - self._last_spawn_ms < self.settings.min_key_spacing_ms:
            return None
        available = [lane for lane in self.lanes if lane.state == "inactive"]
        if not available:
            return None
        lane = self.rng.choice(available)
        lane.state = "coming"
        lane.progress = 0.0
        self._last_spawn_ms = now_ms
        return lane.key

    def step(self) -> None:
        if not self.running:
            return
        for lane in self.lanes:
            if lane.state == "coming":
                lane.progress += self.settings.move_speed
                if lane.progress > 100:
                    lane.state = "missed"
                    lane.progress = 100.0
                    self.misses += 1
            elif lane.state in ("missed", "success", "fail"):
                if lane.progress > 0:
                    lane.progress = max(0.0, lane.progress - RHYTHM_FADE)
                else:
                    lane.state = "inactive"
        self._check_end()

    def press(self, key: str) -> bool | None:
        """Handle a key press. Returns hit/miss, or None if nothing was coming."""
        if not self.running:
            return None
        lane = self.lane(key)
        if lane is None or lane.state != "coming":
            return None
        hit = abs(lane.progress - RHYTHM_TARGET) <= self.settings.success_window
        lane.state = "success" if hit else "fail"
        if hit:
            self.score += 1
        self._check_end()
        return hit

    def _check_end(self) -> None:
        if self.score >= self.target_matches:
            self._end(True)
        elif self.misses >= self.settings.max_misses:
            self._end(False)

    def _end(self, success: bool) -> None:
        self.running = False
        self.result = success


def new_mini_game(kind: str, difficulty: Difficulty = "medium"):
    if kind == TIMING_BAR:
        return TimingBarGame(difficulty)
    if kind == RHYTHM_MATCHING:
        return RhythmMatchingGame(difficulty)
    raise ValueError(f"Unknown mini-game: {kind}")


def pending_mini_game(game: GameState, scenario: Scenario) -> str | None:
    """Return the mini-game to offer now, or None."""
    if game.mini_game_played:
        return None
    if game.conversation_round < MINI_GAME_ROUND:
        return None
    for kind in scenario.mini_games:
        if kind in MINI_GAME_TYPES:
            return kind
    return None


def record_mini_game(game: GameState, kind: str, success: bool) -> GameState:
    """Return a copy of `game` with the mini-game outcome recorded in history."""
    if kind not in MINI_GAME_TYPES:
        raise ValueError(f"Unknown mini-game: {kind}")
    outcome = "success" if success else "failure"
    updated = game.model_copy(deep=True)
    updated.mini_game_played = True
    updated.mini_game_result = outcome
    label = kind.replace("_", " ")
    if success:
        text = f"You completed the {label} challenge!"
    else:
        text = f"You failed the {label} challenge."
    updated.history.append(HistoryEntry(
        message=text,
        sender="system",
        mini_game=MiniGameRecord(type=kind, result=outcome),
    ))
    updated.touch()
    return updated
