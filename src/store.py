from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .config import MARGIN_FILE, SYMBOL_FILE, USER_CONF_FILE
from .errors import InputError
from .models import SymbolEntry

logger = logging.getLogger(__name__)


def load_user_conf(path: Path = USER_CONF_FILE) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise InputError(f"Config file {path} is not valid JSON: {error}") from error


def save_user_conf(updates: dict[str, Any], path: Path = USER_CONF_FILE) -> None:
    conf = load_user_conf(path)
    conf.update(updates)
    path.write_text(json.dumps(conf, ensure_ascii=False, indent=4), encoding="utf-8")


def resolve_symbol_file(cli_path: str | None = None, conf_path: Path = USER_CONF_FILE) -> Path:
    if cli_path:
        save_user_conf({"symbolFile": cli_path}, conf_path)
        return Path(cli_path)
    conf = load_user_conf(conf_path)
    return Path(conf.get("symbolFile") or SYMBOL_FILE)


def resolve_margin_file(conf_path: Path = USER_CONF_FILE) -> Path:
    conf = load_user_conf(conf_path)
    return Path(conf.get("marginFile") or MARGIN_FILE)


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on", "y"}


def _as_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_code(value: Any) -> str:
    code = str(value or "").strip()
    if code.isdigit() and len(code) < 6:
        code = code.zfill(6)
    return code


def load_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise InputError(f"Symbol file not found: {path}")
    # BaseLoader keeps every scalar a string, so codes like 002065 survive intact.
    try:
        doc = yaml.load(path.read_text(encoding="utf-8"), Loader=yaml.BaseLoader)
    except yaml.YAMLError as error:
        raise InputError(f"Symbol file {path} is not valid YAML: {error}") from error
    if not isinstance(doc, dict):
        raise InputError(f"Symbol file {path} must be a mapping with a 'symbols' list.")
    return doc


def parse_entries(raw_symbols: Any) -> list[SymbolEntry]:
    if raw_symbols is None:
        return []
    if not isinstance(raw_symbols, list):
        raise InputError("'symbols' must be a list.")
    entries = []
    for idx, raw in enumerate(raw_symbols):
        if not isinstance(raw, dict) or not raw.get("code"):
            raise InputError(f"Symbol #{idx + 1} has no code.")
        entries.append(
            SymbolEntry(
                code=_as_code(raw.get("code")),
                name=str(raw.get("name", "")).strip(),
                target=_as_float(raw.get("target")),
                cheap=_as_float(raw.get("cheap")),
                expensive=_as_float(raw.get("expensive")),
                star=_as_float(raw.get("star")),
                watch=_as_bool(raw.get("watch")),
                hold=_as_bool(raw.get("hold")),
                comment=str(raw.get("comment", "") or "").strip(),
            )
        )
    return entries


def load_symbols(path: Path) -> list[SymbolEntry]:
    entries = parse_entries(load_document(path).get("symbols"))
    logger.debug("Loaded %d symbols from %s", len(entries), path)
    return entries


def load_watch_list(doc: dict[str, Any]) -> list[str]:
    items = doc.get("watchList") or []
    return [_as_code(item.get("code")) for item in items if isinstance(item, dict) and item.get("code")]


def load_margin_set(path: Path) -> set[str]:
    if not path.exists():
        raise InputError(f"Margin eligibility file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise InputError(f"Margin eligibility file {path} is not valid JSON: {error}") from error
    if isinstance(data, dict):
        return {_as_code(code) for code, flag in data.items() if flag}
    if isinstance(data, list):
        return {_as_code(code) for code in data}
    raise InputError(f"Margin eligibility file {path} must hold an object or a list of codes.")
