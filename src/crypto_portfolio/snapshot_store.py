from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from .models import PortfolioReport, Snapshot, SnapshotAsset
from .yaml_loader import load_yaml

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

STORE_HEADER = (
    "# Portfolio snapshots - captured on the 1st of each month\n"
    "# Run `crypto-portfolio-snapshot` to add a new snapshot\n"
    "\n"
)


class SnapshotStoreError(RuntimeError):
    """The snapshot store file is malformed."""


class SnapshotExistsError(Exception):
    """A snapshot for the requested month is already stored."""

    def __init__(self, month: str, existing: Snapshot) -> None:
        super().__init__(f"snapshot for {month} already exists")
        self.month = month
        self.existing = existing


def current_month(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{now.year:04d}-{now.month:02d}"


def is_valid_month(value: str) -> bool:
    return bool(MONTH_RE.match(value))


def load_snapshots(path: Path) -> dict[str, Snapshot]:
    """Load snapshots keyed by month (YYYY-MM). A missing file is an empty store."""

    if not path.exists():
        return {}

    try:
        raw = load_yaml(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SnapshotStoreError(f"snapshot store is not valid YAML: {path}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SnapshotStoreError(f"snapshot store must contain a mapping: {path}")

    out: dict[str, Snapshot] = {}
    for month, item in raw.items():
        try:
            out[str(month)] = Snapshot.model_validate(item)
        except ValidationError as exc:
            raise SnapshotStoreError(f"invalid snapshot {month} in {path}: {exc}") from exc
    return out


def build_snapshot(
    report: PortfolioReport,
    *,
    is_first: bool = False,
    captured_at: Optional[datetime] = None,
) -> Snapshot:
    """Round a report for storage: price and value to cents, percentage to 0.1."""

    captured_at = captured_at or datetime.now(timezone.utc)
    assets = [
        SnapshotAsset(
            symbol=a.symbol,
            amount=a.amount,
            price=round(a.price, 2),
            value=round(a.value, 2),
            percentage=round(a.percentage, 1),
            is_group=True if a.is_group else None,
        )
        for a in report.assets
    ]
    return Snapshot(
        captured_at=captured_at.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        is_first=True if is_first else None,
        total_value=round(report.total_value, 2),
        assets=assets,
    )


def add_snapshot(snapshots: dict[str, Snapshot], month: str, snapshot: Snapshot) -> dict[str, Snapshot]:
    """Return a new store with `snapshot` under `month`, newest month first.

    Raises SnapshotExistsError if the month is already present.
    """

    existing = snapshots.get(month)
    if existing is not None:
        raise SnapshotExistsError(month, existing)

    merged = {**snapshots, month: snapshot}
    return {m: merged[m] for m in sorted(merged, reverse=True)}


def dump_snapshots(snapshots: dict[str, Snapshot]) -> str:
    data = {
        month: snap.model_dump(by_alias=True, exclude_none=True, mode="json")
        for month, snap in sorted(snapshots.items(), key=lambda kv: kv[0], reverse=True)
    }
    return STORE_HEADER + yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def save_snapshots(path: Path, snapshots: dict[str, Snapshot]) -> None:
    """Rewrite the whole store."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_snapshots(snapshots), encoding="utf-8")
