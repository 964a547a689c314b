#!/usr/bin/env python3
"""
Scan text files for date phrases and export the matches to a JSON file.

Output format: a JSON array of objects:
  {"file": "notes.md", "line": 3, "text": "next friday", "start": 12, "end": 23, "date": "2025-01-24T00:00:00"}

Usage: python scripts/extract_dates.py notes.md todo.txt --out extracted_dates.json
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from quickdates.utils import parse_all_occurrences


def scan_file(path: str) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    with open(path, encoding='utf-8') as f:
        for lineno, line in enumerate(f, start=1):
            for occ in parse_all_occurrences(line.rstrip('\n')):
                results.append({
                    "file": path,
                    "line": lineno,
                    "text": occ.text,
                    "start": occ.start,
                    "end": occ.end,
                    "date": occ.instant.isoformat(),
                })
    return results


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Extract date phrases from text files into JSON")
    p.add_argument('paths', nargs='+', help='Text files to scan')
    p.add_argument('--out', default='extracted_dates.json', help='Output JSON file')
    args = p.parse_args(argv)
    try:
        results: List[Dict[str, Any]] = []
        for path in args.paths:
            results.extend(scan_file(path))
        with open(args.out, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2, ensure_ascii=False)
        print(f"Wrote {len(results)} matches to {args.out}")
        return 0
    except Exception as e:
        print('Error:', e)
        return 2


if __name__ == '__main__':
    raise SystemExit(main())
