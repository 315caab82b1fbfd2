from __future__ import annotations

import re
from dataclasses import asdict

import numpy as np
import pandas as pd

from .errors import DuplicateSymbolError
from .models import SymbolEntry

SYMBOL_COLUMNS = ["code", "name", "target", "cheap", "expensive", "star", "watch", "hold", "comment"]


def split_list(text: str | None) -> list[str]:
    if not text:
        return []
    return [item.strip() for item in text.replace("，", ",").split(",") if item.strip()]


def check_duplicates(entries: list[SymbolEntry]) -> None:
    codes = pd.Series([e.code for e in entries], dtype=str)
    dup = codes[codes.duplicated(keep=False)]
    if dup.empty:
        return
    code = dup.iloc[0]
    raise DuplicateSymbolError(code, int((codes == code).sum()))


def symbols_frame(entries: list[SymbolEntry]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(e) for e in entries], columns=SYMBOL_COLUMNS)
    for col in ["target", "cheap", "expensive", "star"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    for col in ["watch", "hold"]:
        df[col] = df[col].astype(bool)
    return df


def _keyword_pattern(kw: str) -> str:
    try:
        re.compile(kw)
    except re.error:
        return re.escape(kw)
    return kw


def _starts_with_any(codes: pd.Series, prefixes: list[str]) -> pd.Series:
    prefixes = tuple(prefixes)
    return codes.astype(str).map(lambda code: code.startswith(prefixes)).astype(bool)


def _matches_any(df: pd.DataFrame, columns: list[str], keywords: list[str]) -> pd.Series:
    hit = pd.Series(False, index=df.index)
    for kw in keywords:
        pattern = _keyword_pattern(kw)
        for col in columns:
            hit |= df[col].fillna("").astype(str).str.contains(pattern, case=False, regex=True, na=False)
    return hit


def apply_filters(df: pd.DataFrame, filters: dict) -> pd.DataFrame:
    out = df.copy()

    if filters.get("all"):
        pass
    elif filters.get("hold"):
        out = out[out["hold"].astype(bool)]
    elif filters.get("ignore"):
        out = out[~out["watch"].astype(bool)]
    else:
        out = out[out["watch"].astype(bool)]

    exclude = split_list(filters.get("exclude"))
    if exclude:
        out = out[~_starts_with_any(out["code"], exclude)]

    contain = split_list(filters.get("contain"))
    if contain:
        out = out[_starts_with_any(out["code"], contain)]

    grep = split_list(filters.get("grep"))
    if grep:
        out = out[_matches_any(out, ["comment", "name", "code"], grep)]

    remove = split_list(filters.get("remove"))
    if remove:
        out = out[~_matches_any(out, ["comment", "name"], remove)]

    above = filters.get("above")
    if above is not None:
        out = out[np.floor(out["star"]) >= int(above)]
    under = filters.get("under")
    if under is not None:
        out = out[np.floor(out["star"]) <= int(under)]

    margin = filters.get("margin")
    if margin is not None:
        out = out[out["code"].isin(margin)]

    return out


def filter_symbols(entries: list[SymbolEntry], filters: dict) -> pd.DataFrame:
    check_duplicates(entries)
    return apply_filters(symbols_frame(entries), filters)
