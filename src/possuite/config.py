from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import json
import os
import sys

from possuite.domain.errors import ValidationError


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path
    settings_path: Path


@dataclass(frozen=True)
class PosSettings:
    tax_rate: float = 0.0
    currency: str = "USD"
    receipt_prefix: str = "RCP"
    low_stock_threshold: int = 5
    restock_window_days: int = 30
    restock_days_threshold: float = 14.0
    restock_min_stock: int = 10
    forecast_min_sales: int = 7

    def __post_init__(self):
        if not 0 <= float(self.tax_rate) < 1:
            raise ValidationError("Tax rate must be between 0 and 1.")
        if int(self.restock_window_days) <= 0:
            raise ValidationError("Restock window must be > 0 days.")


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "PosSuite") -> AppPaths:
    override = os.environ.get("POSSUITE_HOME", "").strip()
    if override:
        base = Path(override)
    elif sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "ledger.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs, settings_path=base / "settings.json")


def load_settings(path: Path | str | None) -> PosSettings:
    if path is None or not Path(path).exists():
        return PosSettings()
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Settings file is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ValidationError("Settings file must contain a JSON object.")
    known = {f.name for f in fields(PosSettings)}
    return PosSettings(**{k: v for k, v in raw.items() if k in known})
