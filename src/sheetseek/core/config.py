from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    data_dir: Path
    db_path: Path
    uploads_dir: Path


DEFAULT_DATA_DIRNAME = ".sheetseek"

# Numeric cells strictly inside this window are treated as possible date
# serials (roughly the years 1954 to 2064 in the 1900 date system).
DEFAULT_DATE_SERIAL_MIN = 20000.0
DEFAULT_DATE_SERIAL_MAX = 60000.0
DEFAULT_DATE_FORMAT = "%m/%d/%Y"
DEFAULT_ROW_BATCH_SIZE = 1000
DEFAULT_SEARCH_LIMIT = 100


@dataclass(frozen=True)
class IndexingConfig:
    date_serial_min: float = DEFAULT_DATE_SERIAL_MIN
    date_serial_max: float = DEFAULT_DATE_SERIAL_MAX
    date_format: str = DEFAULT_DATE_FORMAT
    row_batch_size: int = DEFAULT_ROW_BATCH_SIZE
    search_limit: int = DEFAULT_SEARCH_LIMIT


def load_paths(project_root: Path | None = None) -> AppPaths:
    root = (project_root or Path.cwd()).expanduser().resolve()

    home_raw = os.getenv("SHEETSEEK_HOME")
    if home_raw:
        data_dir = Path(home_raw).expanduser().resolve()
    else:
        data_dir = root / DEFAULT_DATA_DIRNAME

    return AppPaths(
        project_root=root,
        data_dir=data_dir,
        db_path=data_dir / "sheetseek.db",
        uploads_dir=data_dir / "uploads",
    )


def load_indexing_config() -> IndexingConfig:
    serial_min = read_float_env("SHEETSEEK_DATE_SERIAL_MIN", DEFAULT_DATE_SERIAL_MIN)
    serial_max = read_float_env("SHEETSEEK_DATE_SERIAL_MAX", DEFAULT_DATE_SERIAL_MAX)
    if serial_min >= serial_max:
        serial_min, serial_max = DEFAULT_DATE_SERIAL_MIN, DEFAULT_DATE_SERIAL_MAX
    return IndexingConfig(
        date_serial_min=serial_min,
        date_serial_max=serial_max,
        date_format=os.getenv("SHEETSEEK_DATE_FORMAT") or DEFAULT_DATE_FORMAT,
        row_batch_size=read_int_env("SHEETSEEK_ROW_BATCH_SIZE", DEFAULT_ROW_BATCH_SIZE),
        search_limit=read_int_env("SHEETSEEK_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT),
    )


def read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default
