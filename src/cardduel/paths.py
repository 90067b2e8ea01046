from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    package_dir: Path
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path
    artwork_cache_dir: Path


def get_paths(userdata_dir: Path | None = None) -> Paths:
    # Data ships inside the package so it survives a non-editable install.
    package_dir = Path(__file__).resolve().parent
    data_dir = package_dir / "data"
    schema_dir = data_dir / "schemas"
    userdata = userdata_dir or Path.home() / ".cardduel"
    return Paths(
        package_dir=package_dir,
        data_dir=data_dir,
        schema_dir=schema_dir,
        userdata_dir=userdata,
        artwork_cache_dir=userdata / "artwork",
    )
