"""
Palm Detection CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, wire together
    the detector and I/O handlers, and run the per-frame loop.

Usage:
    python main.py                                  # Webcam 0 with a display window
    python main.py --source images/ --output-mode save_json
    python main.py --source clip.mp4 --output-mode save_video --score 0.8
    python main.py --config my_config.yaml

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
import time
from dataclasses import replace

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from palm_detector.config import AppConfig, load_config, validate_config
from palm_detector.decoder import ShapeMismatchError
from palm_detector.detector import PalmDetector
from palm_detector.input_handler import InputHandler
from palm_detector.output_handler import OutputHandler


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Palm Detection — live palm detector CLI",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--source",
        type=str,
        help="Input source: '0' for webcam, path to image/video file, or directory.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--model",
        type=str,
        help="Path to the palm detection ONNX model. Overrides config.",
    )
    parser.add_argument(
        "--score",
        type=float,
        help="Detection score threshold. Overrides config.",
    )
    parser.add_argument(
        "--iou",
        type=float,
        help="IoU threshold for duplicate suppression (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--max-results",
        type=int,
        help="Maximum palms reported per frame. Overrides config.",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=["cpu", "cuda"],
        help="Compute backend preference. Overrides config.",
    )
    parser.add_argument(
        "--output-mode",
        type=str,
        help="Output mode(s), comma-separated: "
             "display, save_image, save_video, save_json, save_csv. Overrides config.",
    )
    parser.add_argument(
        "--output-path",
        type=str,
        help="Path/directory for output artifacts. Overrides config.",
    )

    return parser.parse_args(argv)


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of config with any CLI arguments applied, validated."""
    model, detection = config.model, config.detection
    input_cfg, output = config.input, config.output

    if args.model is not None:
        model = replace(model, model_path=args.model)
    if args.backend is not None:
        model = replace(model, backend=args.backend)
    if args.score is not None:
        detection = replace(detection, score_threshold=args.score)
    if args.iou is not None:
        detection = replace(detection, iou_threshold=args.iou)
    if args.max_results is not None:
        detection = replace(detection, max_results=args.max_results)
    if args.source is not None:
        input_cfg = replace(input_cfg, source=args.source)
    if args.output_mode is not None:
        output = replace(output, mode=args.output_mode.lower())
    if args.output_path is not None:
        output = replace(output, save_path=args.output_path)

    return validate_config(replace(
        config, model=model, detection=detection, input=input_cfg, output=output,
    ))


def main(argv=None) -> int:
    """Main execution loop."""
    args = parse_args(argv)

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = apply_cli_overrides(load_config(args.config), args)
        logger.info("Configuration active for this run.")
    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        detector = PalmDetector(config)
        input_handler = InputHandler(
            source=config.input.source,
            resize_width=config.input.resize_width,
        )
        output_handler = OutputHandler(config)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        return 1

    # 3. Processing Loop
    logger.info("Starting processing loop. Press 'q' or ESC to quit in display mode.")

    frame_count = 0
    start_time = time.perf_counter()

    try:
        for frame_id, frame in input_handler:
            frame_count += 1

            detections = detector.detect(frame)
            logger.debug("Frame %d: %d palm(s)", frame_id, len(detections))

            if frame_count % 30 == 0:
                logger.info("Processed %d frames...", frame_count)

            if not output_handler.process_frame(frame_id, frame, detections):
                logger.info("Stopping loop per user request.")
                break

    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except ShapeMismatchError as e:
        logger.error("Model output does not match the palm detector layout: %s", e)
        return 1
    except Exception as e:
        logger.exception("Runtime error during processing: %s", e)
        return 1
    finally:
        # 4. Cleanup
        elapsed = time.perf_counter() - start_time
        fps = frame_count / elapsed if elapsed > 0 else 0.0

        input_handler.release()
        output_handler.finalize()

        logger.info(
            "Processing finished. Total frames: %d. Avg FPS: %.2f.",
            frame_count, fps
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
