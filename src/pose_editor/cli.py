import argparse
import json
import sys
from typing import Optional

from loguru import logger

from pose_editor.config import get_settings
from pose_editor.pose.graph import format_hierarchy
from pose_editor.services.editor import PoseEditorService


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _parse_args(argv: list[str], prog: str) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog=prog, description="Inspect and re-save pose files")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Print the bones of a pose file")
    show.add_argument("path", help="Pose file to read")
    show.add_argument("--flat", action="store_true", help="List bones in file order instead of as a tree")
    show.add_argument("--json", action="store_true", help="Print the pose as JSON instead of text")

    resave = commands.add_parser("resave", help="Load a pose file and write it back out")
    resave.add_argument("path", help="Pose file to read")
    resave.add_argument("output", nargs="?", default=None, help="Destination; defaults to the input file")
    return parser.parse_args(argv)


def _open(service: PoseEditorService, path: str) -> bool:
    if service.open_file(path):
        return True
    message = service.last_result.message if service.last_result else "unknown error"
    print(f"error: {message}", file=sys.stderr)
    return False


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    args = _parse_args(sys.argv[1:] if argv is None else argv, settings.app_name)
    configure_logging(args.log_level or settings.log_level)

    service = PoseEditorService(settings=settings)
    if not _open(service, args.path):
        return 1

    if args.command == "show":
        snapshot = service.current_snapshot()
        if args.json:
            print(json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False))
            return 0
        print(f"{snapshot.origin_name} ({len(snapshot.bones)} bones)")
        text = format_hierarchy(snapshot, flat=args.flat)
        if text:
            print(text)
        return 0

    saved = service.save_file(args.output) if args.output else service.save()
    if not saved:
        message = service.last_result.message if service.last_result else "unknown error"
        print(f"error: {message}", file=sys.stderr)
        return 1
    print(f"saved {service.last_result.path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - console entrypoint
    sys.exit(main())
