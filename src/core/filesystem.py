"""Filesystem utility helpers."""

from __future__ import annotations
import os


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def ensure_parent_dir(file_path: str) -> None:
    dir_part = os.path.dirname(os.path.abspath(file_path))
    if dir_part:
        ensure_dir(dir_part)


def read_text(path: str, encoding: str = "utf-8") -> str:
    # utf-8-sig drops the BOM some exporters write
    if encoding.lower() == "utf-8":
        encoding = "utf-8-sig"
    with open(path, "r", encoding=encoding) as fh:
        return fh.read()
