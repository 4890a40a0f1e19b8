"""Runtime configuration loaded from YAML.

Lookup order for the config file: explicit path, then the
``LOOPSAFE_CONFIG`` environment variable.  Without a file every field keeps
its default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from loopsafe.oracle.client import DEFAULT_MODEL

# "open": an oracle failure yields a safe result (content provisionally allowed).
# "review": an oracle failure yields an unsafe result, routing the item to a human.
FAILURE_MODES = ("open", "review")


@dataclass
class ModerationConfig:
    data_dir: Path = Path.home() / ".loopsafe"
    model: str = DEFAULT_MODEL
    oracle_failure_mode: str = "open"
    max_tokens: int = 500
    temperature: float = 0.1

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()
        if self.oracle_failure_mode not in FAILURE_MODES:
            raise ValueError(
                f"Unknown oracle_failure_mode {self.oracle_failure_mode!r}; "
                f"expected one of {', '.join(FAILURE_MODES)}"
            )

    @property
    def fail_open(self) -> bool:
        return self.oracle_failure_mode == "open"

    def path_for(self, name: str) -> Path:
        """Directory for one of the file-backed stores."""
        return self.data_dir / name


def load_config(path: Optional[str | Path] = None) -> ModerationConfig:
    """Load a :class:`ModerationConfig` from YAML, falling back to defaults."""
    path = path or os.environ.get("LOOPSAFE_CONFIG")
    if not path:
        return ModerationConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    defaults = ModerationConfig()
    return ModerationConfig(
        data_dir=data.get("data_dir", defaults.data_dir),
        model=data.get("model", defaults.model),
        oracle_failure_mode=data.get("oracle_failure_mode", defaults.oracle_failure_mode),
        max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
        temperature=float(data.get("temperature", defaults.temperature)),
    )
