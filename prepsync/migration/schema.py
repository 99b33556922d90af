"""
Dataset schema extraction.

Turns whatever a plan uses to describe a dataset's schema into a list of
column names, and derives table names from case study titles.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

CREATE_TABLE_RE = re.compile(r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?[\w.\"`\[\]]+\s*\(", re.IGNORECASE)
LINE_COMMENT_RE = re.compile(r"--[^\n]*")
# Table-level constraint clauses, not columns
CONSTRAINT_LINE_RE = re.compile(
    r"^(PRIMARY\s+KEY|FOREIGN\s+KEY|CONSTRAINT\s|UNIQUE\s*(KEY|INDEX)?\s*\w*\s*\(|CHECK\s*\(|(KEY|INDEX)\s+\w+\s*\()",
    re.IGNORECASE,
)
QUOTED_IDENT_RE = re.compile(r"^[\"'`\[]([^\"'`\]]+)[\"'`\]]")
BARE_IDENT_RE = re.compile(r"^(\w+)")

TABLE_NAME_MAX_LENGTH = 50


def _table_body(ddl: str) -> str | None:
    """Text between the parentheses of the first CREATE TABLE."""
    match = CREATE_TABLE_RE.search(ddl)
    if not match:
        return None

    depth = 1
    start = match.end()
    for i in range(start, len(ddl)):
        char = ddl[i]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return ddl[start:i]
    return ddl[start:]


def _split_top_level(body: str) -> list[str]:
    """Split on commas that are not inside parentheses (DECIMAL(10,2) stays whole)."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in body:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [p.strip() for p in parts]


def _column_name(definition: str) -> str:
    quoted = QUOTED_IDENT_RE.match(definition)
    if quoted:
        return quoted.group(1).strip()
    bare = BARE_IDENT_RE.match(definition)
    return bare.group(1) if bare else ""


def extract_columns(schema: Any) -> list[str]:
    """
    Column names described by a dataset schema.

    - str: columns of the first `CREATE TABLE name (...)` statement,
      skipping table-level constraints; [] when there is no such statement
    - list: already column names, returned unchanged
    - dict: its keys
    - anything else: []
    """
    if isinstance(schema, str):
        body = _table_body(LINE_COMMENT_RE.sub("", schema))
        if body is None:
            return []
        columns = []
        for definition in _split_top_level(body):
            if not definition or CONSTRAINT_LINE_RE.match(definition):
                continue
            name = _column_name(definition)
            if name:
                columns.append(name)
        return columns

    if isinstance(schema, list):
        return schema

    if isinstance(schema, Mapping):
        return list(schema.keys())

    return []


def table_name(title: str | None, subject: str) -> str:
    """
    Stable table-name slug for a dataset title.

    >>> table_name("Sales Data Analysis!!", "SQL")
    'sales_data_analysis'
    """
    fallback = f"{subject.lower()}_data"
    if not title:
        return fallback

    slug = re.sub(r"[^a-z0-9\s]", "", title.lower())
    slug = re.sub(r"\s+", "_", slug)[:TABLE_NAME_MAX_LENGTH]
    return slug or fallback
