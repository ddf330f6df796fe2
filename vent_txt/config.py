from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vent_txt.common import env_str

CSV_PATH_ENV = "VENT_TXT_CSV"
TEMPLATE_PATH_ENV = "VENT_TXT_HBS"

DEFAULT_CSV_PATH = "vent.csv"
DEFAULT_TEMPLATE_PATH = "template/vent.html.j2"


@dataclass(frozen=True, slots=True)
class VentConfig:
    csv_path: Path
    template_path: Path


def load_config(*, csv_path: str | None = None, template_path: str | None = None) -> VentConfig:
    """Read path settings once. Explicit arguments win over the environment."""
    return VentConfig(
        csv_path=Path(csv_path or env_str(CSV_PATH_ENV, default=DEFAULT_CSV_PATH)).expanduser(),
        template_path=Path(
            template_path or env_str(TEMPLATE_PATH_ENV, default=DEFAULT_TEMPLATE_PATH)
        ).expanduser(),
    )
