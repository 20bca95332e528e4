import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from src.utils.io import load_json

PUZZLE_SUFFIXES = (".json", ".jsonl", ".parquet", ".csv")
LIST_FIELDS = ("constraints", "initial", "solution")


def _coerce_jsonable(value):
    if isinstance(value, dict):
        return {k: _coerce_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_coerce_jsonable(v) for v in value]
    if hasattr(value, "tolist"):
        return _coerce_jsonable(value.tolist())
    return value


def _is_blank(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, float) and pd.isna(value)


def _infer_size(record: Dict[str, Any]) -> Optional[int]:
    coords: List[int] = []
    for constraint in record.get("constraints") or []:
        for cell in constraint.get("cells") or []:
            coords.extend(int(v) for v in cell)
    for item in record.get("initial") or []:
        coords.extend(int(v) for v in item.get("pos") or [])
    if not coords:
        return None
    size = max(coords) + 1
    return size + size % 2


def _normalize_record(record: Dict[str, Any], source: Optional[Path] = None) -> Dict[str, Any]:
    record = _coerce_jsonable(dict(record))

    # Tabular sources store nested fields as JSON text.
    for key in LIST_FIELDS:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            record[key] = json.loads(value)
        elif _is_blank(value):
            record[key] = None

    for key in ("id", "number"):
        if _is_blank(record.get(key)):
            record[key] = None

    if record["id"] is None and record["number"] is not None:
        record["id"] = str(int(record["number"])).zfill(3)
    if record["id"] is None and source is not None:
        record["id"] = source.stem
    if record["id"] is not None:
        record["id"] = str(record["id"])

    if _is_blank(record.get("size")):
        inferred = _infer_size(record)
        if inferred is not None:
            record["size"] = inferred

    if record.get("solution") is None and source is not None:
        sol_path = source.with_name(f"{source.stem}.sol.json")
        if sol_path.exists():
            record["solution"] = load_json(sol_path)

    return record


def load_puzzles(file_path: str) -> List[Dict[str, Any]]:
    """
    Reads puzzles from a file. Handles .json (object or list), .jsonl,
    .parquet and .csv formats. Returns a list of raw puzzle dictionaries.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")
    path = Path(file_path)

    # Case 1: Tabular files (Parquet / CSV)
    if file_path.endswith(".parquet") or file_path.endswith(".csv"):
        if file_path.endswith(".parquet"):
            df = pd.read_parquet(file_path)
        else:
            df = pd.read_csv(file_path)
        records = df.to_dict(orient="records")
        return [_normalize_record(r) for r in records]

    # Case 2: JSON file, one puzzle or a list of puzzles (e.g. index.json)
    if file_path.endswith(".json"):
        payload = load_json(path)
        if isinstance(payload, list):
            return [_normalize_record(p) for p in payload if isinstance(p, dict)]
        if isinstance(payload, dict):
            return [_normalize_record(payload, source=path)]
        return []

    # Case 3: JSONL File (Text)
    data = []
    with open(file_path, 'r', encoding='utf-8') as f:
        for line in f:
            if line.strip():
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if isinstance(obj, dict):
                    data.append(_normalize_record(obj))
    return data


def load_puzzle_dir(dir_path: str) -> List[Dict[str, Any]]:
    """
    Load every puzzle file in a directory, skipping solution files.

    The downloader also writes an index.json listing every puzzle; a puzzle
    seen there and in its own NNN.json file is kept once, from NNN.json.
    """
    by_id: Dict[str, Dict[str, Any]] = {}
    unnamed: List[Dict[str, Any]] = []
    for file_path in sorted(Path(dir_path).iterdir()):
        if file_path.name.endswith(".sol.json") or file_path.suffix not in PUZZLE_SUFFIXES:
            continue
        for record in load_puzzles(str(file_path)):
            puzzle_id = record.get("id")
            if puzzle_id is None:
                unnamed.append(record)
            elif puzzle_id not in by_id or file_path.stem == puzzle_id:
                by_id[puzzle_id] = record
    return list(by_id.values()) + unnamed
