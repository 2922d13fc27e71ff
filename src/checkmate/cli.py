#!/usr/bin/env python3
"""
Checkmate CLI - chessboard camera calibration.

Usage:
    checkmate                  - Run a calibration session (default)
    checkmate run [FRAMES_DIR] - Run a calibration session
    checkmate sources          - List available input sources
    checkmate init-config PATH - Write a default session config
    checkmate --help           - Show this help
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Console logging for the checkmate package."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger("checkmate")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)


def list_sources() -> list[tuple[int, str]]:
    """Input sources: -1 for still frames, then every capture device."""
    from checkmate.sources import enumerate_cameras

    return [(-1, "Still frames from disk")] + enumerate_cameras()


def prompt_source(sources: list[tuple[int, str]]) -> int:
    """Ask for an input source, defaulting to still frames."""
    print("Available input sources:")
    for idx, (_, name) in enumerate(sources):
        print(f"  [{idx}] {name}")

    choice = input("Enter input source ID (default 0): ").strip()
    if not choice:
        return sources[0][0]
    try:
        idx = int(choice)
    except ValueError:
        idx = -1
    if not 0 <= idx < len(sources):
        print("Invalid input, using default 0 (still frames).")
        idx = 0
    return sources[idx][0]


def run_main(argv: list[str] | None = None) -> int:
    """Run a calibration session."""
    import argparse

    from checkmate.config import create_default_session_config, load_session_config
    from checkmate.session import run_session
    from checkmate.sources import CameraSource, SequenceSource

    parser = argparse.ArgumentParser(prog="checkmate run", description="Calibrate a camera from chessboard views")
    parser.add_argument("frames_dir", nargs="?", default=None,
                        help="Directory of still frames (default from config: res/frames)")
    parser.add_argument("-c", "--config", type=str, default=None,
                        help="Session config TOML file")
    parser.add_argument("-s", "--source", type=int, default=None,
                        help="Camera device id, -1 for still frames (prompts if omitted)")
    parser.add_argument("-o", "--output", type=str, default=".",
                        help="Output directory for calibration files (default: .)")
    parser.add_argument("--no-display", action="store_true",
                        help="Run without preview windows")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log per-candidate pose diagnostics")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.config:
        config = load_session_config(Path(args.config))
    else:
        config = create_default_session_config()

    device = args.source
    if device is None:
        device = -1 if args.frames_dir else prompt_source(list_sources())

    if device == -1:
        frames_dir = args.frames_dir or config.frames_dir
        source = SequenceSource(frames_dir)
        if not source.is_opened():
            print(f"No images found in {frames_dir}")
            return 1
        print(f"Loaded {source.frame_count} frames from disk.")
    else:
        source = CameraSource(device)
        if not source.is_opened():
            print(f"Could not open camera device {device}. "
                  "Please check device permissions or try another ID.")
            return 1

    try:
        with source:
            summary = run_session(
                source,
                config,
                show=not args.no_display,
                output_dir=Path(args.output),
            )
    except Exception as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Frames processed: {summary.frames_processed}, "
          f"accepted: {summary.frames_accepted}")
    if summary.calibration.success:
        print(f"RMS reprojection error: {summary.calibration.mean_error:.4f}")
        return 0

    print("Calibration not performed: no accepted frames")
    return 1


def main():
    if len(sys.argv) < 2:
        return run_main([])

    if sys.argv[1] in ("-h", "--help"):
        print(__doc__)
        print("Commands:")
        print("  run          Collect chessboard frames and calibrate")
        print("  sources      List still-frame and camera input sources")
        print("  init-config  Write a default session config TOML")
        print()
        return 0

    command = sys.argv[1]
    args = sys.argv[2:]

    if command == "run":
        return run_main(args)

    elif command == "sources":
        for device_id, name in list_sources():
            print(f"  {device_id:>3}  {name}")
        return 0

    elif command == "init-config":
        from checkmate.config import create_default_session_config, save_session_config

        if not args:
            print("Usage: checkmate init-config PATH")
            return 1
        path = Path(args[0])
        save_session_config(create_default_session_config(), path)
        print(f"Wrote {path}")
        return 0

    else:
        print(f"Unknown command: {command}")
        print("Run 'checkmate --help' for usage")
        return 1


if __name__ == "__main__":
    sys.exit(main())
