"""
Picture Age Detector CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, wire together
    the locator, classifier, pipeline and I/O handlers, and process photos.

Usage:
    python main.py --source photo.jpg                # Choose an existing photo
    python main.py --source photos/                  # Every photo in a directory
    python main.py --camera 0                        # Take a photo with a camera
    python main.py --config my_config.yaml --output-mode log,save_json

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from picture_age.classifier import AgeClassifier
from picture_age.config import AppConfig, load_config, validate_config
from picture_age.input_handler import InputHandler, capture_photo
from picture_age.locator import FaceLocator
from picture_age.output_handler import OutputHandler
from picture_age.pipeline import DetectionPipeline
from picture_age.session import Session


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Count children and adults in photos.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--source",
        type=str,
        help="Image file or directory of images to choose from.",
    )
    source.add_argument(
        "--camera",
        type=int,
        help="Camera device index to take a single photo with.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--confidence",
        type=float,
        help="Face detection confidence threshold (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=["cpu", "cuda"],
        help="Compute backend preference. Overrides config.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of background classification workers. Overrides config.",
    )
    parser.add_argument(
        "--output-mode",
        type=str,
        help="Output mode(s), comma-separated: log, save_image, save_json, save_csv. "
             "Overrides config.",
    )
    parser.add_argument(
        "--output-path",
        type=str,
        help="Directory for output artifacts. Overrides config.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-face details.",
    )

    return parser.parse_args(argv)


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of `config` with the command-line values applied."""
    if args.source is not None:
        config = replace(config, input=replace(config.input, source=args.source, camera=None))
    if args.camera is not None:
        config = replace(config, input=replace(config.input, camera=args.camera, source=None))
    if args.confidence is not None:
        config = replace(config, detection=replace(config.detection, confidence_threshold=args.confidence))
    if args.backend is not None:
        config = replace(config, model=replace(config.model, backend=args.backend))
    if args.workers is not None:
        config = replace(config, pipeline=replace(config.pipeline, max_workers=args.workers))
    if args.output_mode is not None:
        config = replace(config, output=replace(config.output, mode=args.output_mode.lower()))
    if args.output_path is not None:
        config = replace(config, output=replace(config.output, save_path=args.output_path))
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Process every requested photo."""
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = load_config(args.config)
        config = apply_cli_overrides(config, args)
        validate_config(config)

        if config.input.source is None and config.input.camera is None:
            raise ValueError("Provide --source or --camera (or input.source / input.camera in config).")

        logger.info("Configuration active for this run.")

    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        locator = FaceLocator(config)
        classifier = AgeClassifier(config)
        output_handler = OutputHandler(config)
        photos = (
            InputHandler(config.input.source, resize_width=config.input.resize_width)
            if config.input.source is not None
            else None
        )
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        return 1

    # 3. Processing
    processed = 0
    with DetectionPipeline(locator, classifier, max_workers=config.pipeline.max_workers) as pipeline:
        session = Session(pipeline)
        try:
            if photos is None:
                photo = capture_photo(config.input.camera, resize_width=config.input.resize_width)
                summary = session.take_photo(photo)
                if summary is not None:
                    output_handler.process_photo(photo, summary)
                    processed += 1
            else:
                for photo in photos:
                    summary = session.choose_photo(photo)
                    if summary is not None:
                        output_handler.process_photo(photo, summary)
                        processed += 1

        except KeyboardInterrupt:
            logger.info("Interrupted by user.")
        except RuntimeError as e:
            logger.error("%s", e)
            return 1
        except Exception as e:
            logger.exception("Runtime error during processing: %s", e)
            return 1
        finally:
            output_handler.finalize()
            logger.info("Processing finished. Photos processed: %d.", processed)

    return 0


if __name__ == "__main__":
    sys.exit(main())
