from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class CourierPaths:
    """Centralizes filesystem paths used by Courier."""

    home: Path = field(default_factory=Path.home)

    @property
    def global_dir(self) -> Path:
        return self.home / ".courier"

    @property
    def config_file(self) -> Path:
        return self.global_dir / "courier.json"

    @property
    def logs_dir(self) -> Path:
        return self.global_dir / "logs"
