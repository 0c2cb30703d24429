from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path


CONFIG_FILENAME = ".filestamp.json"
STATE_DB_FILENAME = ".filestamp_state.db"
DEFAULT_ENV_VAR = "FILESTAMP_WATCHES"
DEFAULT_SNAPSHOT_NAME = "default"


@dataclass(slots=True)
class FileStampConfig:
    root: str
    watch_paths: list[str] = field(default_factory=list)
    env_var: str = DEFAULT_ENV_VAR

    @property
    def root_path(self) -> Path:
        return Path(self.root).resolve()

    @property
    def state_db_path(self) -> Path:
        return self.root_path / STATE_DB_FILENAME

    def resolved_watch_paths(self) -> list[str]:
        # Relative entries are anchored at the project root, not the cwd.
        return [os.path.join(self.root_path, path) for path in self.watch_paths]


def config_path(base_dir: Path | None = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / CONFIG_FILENAME


def load_config(base_dir: Path | None = None) -> FileStampConfig:
    path = config_path(base_dir)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}. Run `fstamp init` first."
        )

    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)

    return FileStampConfig(
        root=data.get("root") or str(path.parent),
        watch_paths=[str(p) for p in data.get("watch_paths", [])],
        env_var=data.get("env_var") or default_env_var(),
    )


def save_config(config: FileStampConfig, base_dir: Path | None = None) -> Path:
    path = config_path(base_dir)
    payload = asdict(config)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2)
        fh.write("\n")
    return path


def default_env_var() -> str:
    return os.getenv("FILESTAMP_ENV_VAR", "").strip() or DEFAULT_ENV_VAR


def log_level_from_env() -> str:
    return os.getenv("FILESTAMP_LOG_LEVEL", "").strip() or "WARNING"
