import argparse
import logging
import sys
from typing import List, Optional

import yaml

from .core.diagrams.service import ALL_DIAGRAM_KINDS, DiagramService
from .core.model.loader import ModelLoadError, load_system
from .core.settings import SettingsError, load_settings


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="msviz",
        description="Render graph and UML component diagrams of a microservice landscape",
    )
    parser.add_argument("landscape", help="YAML file describing the system")
    parser.add_argument(
        "-o", "--output-dir",
        default=".",
        help="Directory for the generated diagrams (default: current directory)",
    )
    parser.add_argument(
        "--kind",
        choices=[*ALL_DIAGRAM_KINDS, "all"],
        default="all",
        help="Diagram kind to export (default: all)",
    )
    parser.add_argument(
        "--write-source",
        action="store_true",
        help="Also write the DOT/PlantUML text next to each image",
    )
    parser.add_argument("--config", help="Renderer settings YAML (default: config/msviz.yaml)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        system = load_system(args.landscape)
        settings = load_settings(args.config)
    except (ModelLoadError, SettingsError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error("%s", e)
        return 2

    kinds = ALL_DIAGRAM_KINDS if args.kind == "all" else (args.kind,)
    results = DiagramService(settings).export(
        system, args.output_dir, kinds=kinds, write_source=args.write_source,
    )

    failed = 0
    for result in results:
        if result.ok:
            print(result.output_file)
        else:
            failed += 1
            logger.error("%s diagram failed: %s", result.kind, result.error)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
