"""Storage roots, per-kind directories, and slug generation for ids."""

import re
import unicodedata
from pathlib import Path

DEFAULT_PRESETS_DIR = Path(__file__).resolve().parents[2] / "presets"

_roots: dict[str, Path] = {}


def slugify(title: str) -> str:
    """Turn a scenario title into its id.

    "Dragon's Hollow" → "dragons-hollow"
    """
    ascii_title = (
        unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", re.sub(r"['\"]", "", ascii_title.lower()))
    return slug.strip("-") or "untitled"


def init_storage(data_dir: Path, presets_dir: Path | None = None) -> None:
    """Point storage at `data_dir` and create its subdirectories."""
    _roots["data"] = Path(data_dir)
    _roots["presets"] = Path(presets_dir) if presets_dir else DEFAULT_PRESETS_DIR
    for sub in (scenarios_dir(), games_dir()):
        sub.mkdir(parents=True, exist_ok=True)


def _root(name: str) -> Path:
    try:
        return _roots[name]
    except KeyError:
        raise RuntimeError("Call init_storage() before using storage") from None


def data_dir() -> Path:
    return _root("data")


def presets_dir() -> Path:
    return _root("presets")


def scenarios_dir() -> Path:
    return data_dir() / "scenarios"


def games_dir() -> Path:
    return data_dir() / "games"


def preset_scenarios_dir() -> Path:
    return presets_dir() / "scenarios"
