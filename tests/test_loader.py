import json
import shutil
from pathlib import Path

import pandas as pd
import pyarrow  # noqa: F401  parquet engine for pandas
import pytest

from src.tango.loader import load_puzzle_dir, load_puzzles

GAMES = Path(__file__).parent / "fixtures" / "games"

PUZZLE = {
    "number": 7,
    "size": 4,
    "constraints": [{"type": "=", "cells": [[0, 0], [0, 1]]}],
    "initial": [{"pos": [0, 0], "value": "S"}],
}


def test_load_single_json_attaches_sibling_solution():
    puzzles = load_puzzles(str(GAMES / "001.json"))
    assert len(puzzles) == 1
    puzzle = puzzles[0]
    assert puzzle["id"] == "001"
    assert puzzle["size"] == 6
    assert puzzle["solution"]["grid"][0] == ["S", "S", "M", "S", "M", "M"]


def test_load_index_json_list(tmp_path):
    index = tmp_path / "index.json"
    index.write_text(json.dumps([PUZZLE, dict(PUZZLE, number=12)]), encoding="utf-8")
    puzzles = load_puzzles(str(index))
    assert [p["id"] for p in puzzles] == ["007", "012"]


def test_missing_size_is_inferred_and_rounded_to_even(tmp_path):
    record = dict(PUZZLE)
    del record["size"]
    record["initial"] = [{"pos": [4, 2], "value": "M"}]
    path = tmp_path / "p.json"
    path.write_text(json.dumps(record), encoding="utf-8")
    assert load_puzzles(str(path))[0]["size"] == 6


def test_load_jsonl_skips_bad_lines(tmp_path):
    path = tmp_path / "puzzles.jsonl"
    path.write_text(json.dumps(PUZZLE) + "\n{not json\n\n" + json.dumps(dict(PUZZLE, id="x")) + "\n")
    puzzles = load_puzzles(str(path))
    assert [p["id"] for p in puzzles] == ["007", "x"]


def test_load_csv_decodes_json_columns(tmp_path):
    path = tmp_path / "puzzles.csv"
    pd.DataFrame([{
        "id": "c1",
        "size": 4,
        "constraints": json.dumps(PUZZLE["constraints"], ensure_ascii=False),
        "initial": json.dumps(PUZZLE["initial"]),
    }]).to_csv(path, index=False)
    puzzles = load_puzzles(str(path))
    assert puzzles[0]["id"] == "c1"
    assert puzzles[0]["size"] == 4
    assert puzzles[0]["constraints"] == PUZZLE["constraints"]
    assert puzzles[0]["initial"] == PUZZLE["initial"]


def test_load_parquet_coerces_arrays(tmp_path):
    path = tmp_path / "puzzles.parquet"
    pd.DataFrame([{
        "id": "pq",
        "size": 4,
        "constraints": json.dumps(PUZZLE["constraints"]),
        "initial": json.dumps(PUZZLE["initial"]),
    }]).to_parquet(path)
    puzzles = load_puzzles(str(path))
    assert puzzles[0]["initial"] == PUZZLE["initial"]
    assert isinstance(puzzles[0]["size"], int)


def test_missing_file_raises():
    with pytest.raises(FileNotFoundError):
        load_puzzles("does/not/exist.json")


def test_load_puzzle_dir_skips_solution_files(tmp_path):
    shutil.copy(GAMES / "001.json", tmp_path / "001.json")
    shutil.copy(GAMES / "001.sol.json", tmp_path / "001.sol.json")
    (tmp_path / "notes.txt").write_text("ignored")
    puzzles = load_puzzle_dir(str(tmp_path))
    assert len(puzzles) == 1
    assert puzzles[0]["solution"]["grid"][0][0] == "S"


def test_load_puzzle_dir_prefers_puzzle_file_over_index(tmp_path):
    shutil.copy(GAMES / "001.json", tmp_path / "001.json")
    shutil.copy(GAMES / "001.sol.json", tmp_path / "001.sol.json")
    index = [json.loads((GAMES / "001.json").read_text(encoding="utf-8")), dict(PUZZLE, number=2)]
    (tmp_path / "index.json").write_text(json.dumps(index, ensure_ascii=False), encoding="utf-8")

    puzzles = load_puzzle_dir(str(tmp_path))
    assert [p["id"] for p in puzzles] == ["001", "002"]
    assert puzzles[0]["solution"]["grid"][0][0] == "S"


def test_load_csv_with_blank_number_and_id(tmp_path):
    path = tmp_path / "puzzles.csv"
    path.write_text(
        "number,id,size,initial\n"
        "1,,4,[]\n"
        ",,4,[]\n",
        encoding="utf-8",
    )
    puzzles = load_puzzles(str(path))
    assert [p["id"] for p in puzzles] == ["001", None]
    assert puzzles[1]["number"] is None
