"""
Frame acquisition for the palm detection pipeline.

Responsibility:
    Provide a single iterator over (frame_id, frame) pairs, whether the
    frames come from a webcam, a video file, one image, or a directory
    of images.

Non-goals:
    - No detection, drawing, or output writing.
    - No camera enumeration or format negotiation.
    - No implicit fallback between source types.

Robustness:
    - The source is resolved and opened in the constructor.
    - Unreadable frames are logged and skipped.
    - A webcam that keeps failing ends the iteration instead of spinning.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}
_VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv"}

# Consecutive failed webcam reads tolerated before giving up
_MAX_WEBCAM_FAILURES = 30


def classify_source(source: Union[str, int]) -> str:
    """Return the source kind: 'webcam', 'image', 'video' or 'directory'.

    Raises:
        FileNotFoundError: If a path source does not exist.
        ValueError: If a file has an unsupported extension.
    """
    source_str = str(source).strip()
    if source_str.isdigit():
        return "webcam"

    path = Path(source_str)
    if path.is_dir():
        return "directory"
    if path.is_file():
        ext = path.suffix.lower()
        if ext in _IMAGE_EXTENSIONS:
            return "image"
        if ext in _VIDEO_EXTENSIONS:
            return "video"
        raise ValueError(
            f"Unrecognized file extension: '{ext}' for source '{source_str}'. "
            f"Supported images: {_IMAGE_EXTENSIONS}. "
            f"Supported videos: {_VIDEO_EXTENSIONS}."
        )

    raise FileNotFoundError(
        f"Input source not found: '{source_str}'. "
        f"Provide a valid file path, directory, or device index."
    )


class InputHandler:
    """Iterates BGR frames from a webcam, video, image, or image directory.

    Usage:
        handler = InputHandler(source="0")
        for frame_id, frame in handler:
            ...
        handler.release()
    """

    def __init__(
        self,
        source: Union[str, int],
        resize_width: Optional[int] = None,
    ) -> None:
        """Resolve and open the input source.

        Args:
            source: Device index (int or digit string), image, video,
                    or directory path.
            resize_width: Optional width to downscale frames to, keeping
                          the aspect ratio. None leaves frames untouched.

        Raises:
            FileNotFoundError: If a file/directory source does not exist.
            ValueError: If the source type is unsupported or a directory
                        holds no images.
            RuntimeError: If a video/webcam source cannot be opened.
        """
        self._resize_width = resize_width
        self._cap: Optional[cv2.VideoCapture] = None
        self._image_paths: List[str] = []

        source_str = str(source).strip()
        self._mode = classify_source(source_str)

        if self._mode == "webcam":
            self._open_capture(int(source_str))
        elif self._mode == "video":
            self._open_capture(source_str)
        elif self._mode == "image":
            self._image_paths = [source_str]
        else:
            self._image_paths = sorted(
                str(p)
                for p in Path(source_str).iterdir()
                if p.suffix.lower() in _IMAGE_EXTENSIONS
            )
            if not self._image_paths:
                raise ValueError(
                    f"No image files found in directory: '{source_str}'. "
                    f"Supported extensions: {_IMAGE_EXTENSIONS}."
                )
            logger.info("Found %d images in directory: %s", len(self._image_paths), source_str)

        logger.info("InputHandler initialized: mode=%s, source=%s", self._mode, source_str)

    @property
    def mode(self) -> str:
        return self._mode

    def _open_capture(self, source: Union[str, int]) -> None:
        """Open a VideoCapture, raising RuntimeError if it does not open."""
        self._cap = cv2.VideoCapture(source)
        if not self._cap.isOpened():
            what = f"webcam device {source}" if isinstance(source, int) else f"video file '{source}'"
            raise RuntimeError(
                f"Failed to open {what}. Ensure the source exists and is accessible."
            )

    def __iter__(self) -> Iterator[Tuple[int, np.ndarray]]:
        if self._cap is None:
            yield from self._iterate_images()
        else:
            yield from self._iterate_capture()

    def _iterate_images(self) -> Iterator[Tuple[int, np.ndarray]]:
        for idx, path in enumerate(self._image_paths):
            frame = cv2.imread(path)
            if frame is None:
                logger.warning("Skipping unreadable image (frame_id=%d): %s", idx, path)
                continue
            yield idx, self._maybe_resize(frame)

    def _iterate_capture(self) -> Iterator[Tuple[int, np.ndarray]]:
        frame_id = 0
        failures = 0

        while self._cap is not None:
            ok, frame = self._cap.read()

            if not ok or frame is None:
                if self._mode == "video":
                    logger.info("End of video reached at frame %d.", frame_id)
                    return
                failures += 1
                if failures >= _MAX_WEBCAM_FAILURES:
                    logger.error(
                        "Webcam produced %d consecutive failed reads. Stopping.",
                        failures,
                    )
                    return
                logger.warning("Failed to read frame %d from webcam, skipping.", frame_id)
                frame_id += 1
                continue

            failures = 0
            yield frame_id, self._maybe_resize(frame)
            frame_id += 1

    def _maybe_resize(self, frame: np.ndarray) -> np.ndarray:
        """Downscale to resize_width if configured; never upscales."""
        if self._resize_width is None:
            return frame

        h, w = frame.shape[:2]
        if w <= self._resize_width:
            return frame

        new_h = int(h * self._resize_width / w)
        return cv2.resize(frame, (self._resize_width, new_h), interpolation=cv2.INTER_AREA)

    def release(self) -> None:
        """Release the video capture handle, if any."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug("VideoCapture released.")

    def __del__(self) -> None:
        self.release()
