"""
Command-line interface for injectmap.

This module provides the main entry point for the CLI tool.
"""

import json
import logging
import sys
from typing import Optional, Tuple

from .config import create_argument_parser, Config
from .coordinates import ImageRect
from .dosage import highest_level
from .pipeline import TreatmentPlan


def parse_image_size(value: str) -> Tuple[int, int]:
    """Parse "WxH" into (width, height)."""
    try:
        w, h = value.lower().split('x')
        width, height = int(w), int(h)
    except ValueError:
        raise ValueError(f"Invalid image size {value!r}, expected WxH (e.g., 800x1000)")
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {value!r}")
    return width, height


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (None = sys.argv)

    Returns:
        Exit code (0 = success, non-zero = error). Failed checks are
        reported, not treated as errors.
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    # Handle --save-config
    if args.save_config:
        template = Config.generate_default_config_template()
        with open(args.save_config, 'w', encoding='utf-8') as f:
            f.write(template)
        print(f"Default configuration saved to: {args.save_config}")
        print(f"Edit this file and use with: injectmap PLAN.json --config {args.save_config}")
        return 0

    if not args.plan:
        parser.error("the following arguments are required: plan")

    # Configure logging
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        config = Config.from_yaml(args.config) if args.config else Config()
        plan = TreatmentPlan.from_json(args.plan, config)
        if args.anchors:
            plan.load_anchors(args.anchors)
        rect = None
        if args.image_size:
            width, height = parse_image_size(args.image_size)
            rect = ImageRect(0.0, 0.0, float(width), float(height))
    except FileNotFoundError as e:
        print(f"Error: File not found: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("\nUse --help for usage information or --save-config to generate a template.", file=sys.stderr)
        return 1

    report = plan.report(rect=rect, include_surface=args.surface)
    text = json.dumps(report, indent=2, ensure_ascii=False)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(text + "\n")
        if args.verbose:
            print(f"Report written to: {args.output}")
    else:
        print(text)

    if args.verbose:
        level = highest_level(plan.safety_checks())
        print(f"{len(plan.points)} point(s), safety level: {level.value}", file=sys.stderr)
        print(plan.check_consistency().summarize(), file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
