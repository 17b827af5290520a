#!/usr/bin/env python
"""Export the AnalysisResult JSON Schema.

Default output: stdout
Override path: --out <path>

Non-Python clients validate responses against this file, so they share
the exact contract the server and the Python client enforce.

Exit codes:
    0 success
    1 write failure
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from calai.domain.analysis.models import analysis_json_schema


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--out", dest="out", default=None, help="Output file (default: stdout)")
    args = parser.parse_args()

    text = json.dumps(analysis_json_schema(), indent=2, ensure_ascii=False) + "\n"

    if args.out is None:
        sys.stdout.write(text)
        return 0

    out_path = Path(args.out).resolve()
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        print(f"[export_schema] ERROR writing {out_path}: {exc}", file=sys.stderr)
        return 1
    print(f"[export_schema] wrote {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
