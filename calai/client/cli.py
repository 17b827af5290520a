"""Command-line front end for the capture controller.

Usage:
    calai-client photo.jpg [--url http://localhost:8000] [--details]

Exit codes:
    0 analysis succeeded
    1 rejected locally or analysis failed
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from calai.client.controller import CaptureController, UploadState, load_image_file
from calai.client.view import render_text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calai-client",
        description="Estimate calories and macros of a food photo.",
    )
    parser.add_argument("photo", help="Path to the food photo")
    parser.add_argument("--url", default=None, help="Analysis server (default: $CALAI_API_URL)")
    parser.add_argument("--details", action="store_true", help="Show reason and notes")
    return parser


async def run(photo: str, url: Optional[str], details: bool) -> int:
    async with CaptureController(base_url=url) as ctrl:
        if not ctrl.select_file(load_image_file(photo)):
            print(ctrl.error, file=sys.stderr)
            return 1

        print("AI 분석 중...", file=sys.stderr)
        await ctrl.analyze()

        if ctrl.state is not UploadState.SUCCESS:
            print(ctrl.error, file=sys.stderr)
            return 1

        if details:
            ctrl.toggle_details()
        view = ctrl.view()
        if view is None:
            raise RuntimeError("Analysis succeeded without a result")
        print(render_text(view))
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args.photo, args.url, args.details))
    except FileNotFoundError as exc:
        print(f"파일을 찾을 수 없습니다: {exc.filename}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
