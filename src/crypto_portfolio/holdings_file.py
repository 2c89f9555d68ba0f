from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import Finances, Holding
from .yaml_loader import load_yaml


class HoldingsFileError(RuntimeError):
    """The holdings file is missing or malformed."""


def _tag_holding(item: Any) -> Any:
    """Give an untagged holding entry its explicit variant tag.

    Entries written without a `kind` are grouped when they carry both `group`
    and `tokens`, single otherwise. Anything that is not a mapping is left for
    validation to reject.
    """

    if not isinstance(item, dict) or "kind" in item:
        return item
    kind = "group" if "group" in item and "tokens" in item else "single"
    return {"kind": kind, **item}


def load_finances(path: Path) -> Finances:
    """Load the user-maintained finances.yaml.

    Expected format:

    currency: USD
    goal: 100000
    currentInvestedMoney: 42000
    holdings:
      - symbol: BTC
        amount: 0.5
      - symbol: PEPE
        contract: "0x6982508145454ce325ddbe47a25d4ec3d2311933"
        chain: ethereum
        amount: 1000000
      - group: STABLES
        stablecoin: true
        tokens:
          - symbol: USDC
            amount: 1200
    history:
      - month: 2026-01
        amount: 5000
    """

    if not path.exists():
        raise HoldingsFileError(f"holdings file not found: {path}")

    try:
        raw = load_yaml(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise HoldingsFileError(f"holdings file is not valid YAML: {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise HoldingsFileError(f"holdings file must contain a mapping: {path}")

    holdings_raw = raw.get("holdings") or []
    if not isinstance(holdings_raw, list):
        raise HoldingsFileError(f"'holdings' must be a list: {path}")

    data = {**raw, "holdings": [_tag_holding(h) for h in holdings_raw]}
    if data.get("history") is None:
        data.pop("history", None)

    try:
        return Finances.model_validate(data)
    except ValidationError as exc:
        raise HoldingsFileError(f"invalid holdings file {path}: {exc}") from exc


def load_holdings(path: Path) -> list[Holding]:
    return list(load_finances(path).holdings)
