from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from exceptions import InvalidFrameError

MIN_FRAME_SIDE_PX = 8


@dataclass
class Component:
    area: int
    perimeter: int
    centroid: tuple[float, float]
    bbox: tuple[int, int, int, int]


def validate_frame(frame: np.ndarray) -> np.ndarray:
    """Check a frame and normalise it to 2D gray or 3-channel BGR uint8.

    Raises:
        InvalidFrameError: If the frame is None, empty, or has an unsupported shape
    """
    if frame is None:
        raise InvalidFrameError("Frame is None")
    if not isinstance(frame, np.ndarray):
        raise InvalidFrameError(f"Frame must be a numpy array, got {type(frame).__name__}")
    if frame.size == 0:
        raise InvalidFrameError("Frame is empty", shape=frame.shape)
    if frame.ndim not in (2, 3):
        raise InvalidFrameError(f"Frame must be 2D or 3D, got {frame.ndim}D", shape=frame.shape)
    if frame.shape[0] < MIN_FRAME_SIDE_PX or frame.shape[1] < MIN_FRAME_SIDE_PX:
        raise InvalidFrameError(
            f"Frame is too small ({frame.shape[1]}x{frame.shape[0]})", shape=frame.shape
        )
    if frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)
    if frame.ndim == 3:
        channels = frame.shape[2]
        if channels == 1:
            frame = frame[:, :, 0]
        elif channels == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
        elif channels != 3:
            raise InvalidFrameError(f"Unsupported channel count {channels}", shape=frame.shape)
    return frame


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    return frame


def to_bgr(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    return frame


def resize_for_scale(image: np.ndarray, scale: float) -> np.ndarray:
    if scale >= 1.0:
        return image
    width = max(int(round(image.shape[1] * scale)), 1)
    height = max(int(round(image.shape[0] * scale)), 1)
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)


def odd_kernel(size: int) -> int:
    size = max(int(size), 1)
    return size if size % 2 == 1 else size + 1


def circularity(area: float, perimeter: float) -> float:
    if perimeter <= 0:
        return 0.0
    return float(4 * np.pi * area / (perimeter**2))


def compute_focus_score(image: np.ndarray) -> float:
    """Compute focus quality score using variance of Laplacian method.

    Higher values indicate better focus (more edge detail/sharpness).

    Args:
        image: Grayscale or color image (converted to grayscale if color)

    Returns:
        Focus quality score (typically 0-1000+ for in-focus images,
        <100 for severely out-of-focus images)
    """
    gray = to_grayscale(image)

    # ksize=3 is standard for focus measurement
    laplacian = cv2.Laplacian(gray, cv2.CV_64F, ksize=3)
    return float(laplacian.var())


def connected_components(mask: np.ndarray) -> list[Component]:
    """Find connected components using OpenCV.

    Args:
        mask: Binary mask (non-zero values considered foreground)

    Returns:
        List of Component objects with area, perimeter, centroid, and bbox
    """
    mask_uint8 = (mask > 0).astype(np.uint8)

    # Find connected components (4-connectivity)
    num_labels, labels, stats, centroids = cv2.connectedComponentsWithStats(
        mask_uint8, connectivity=4
    )

    components: list[Component] = []

    # Skip label 0 which is background
    for i in range(1, num_labels):
        left, top, width, height, area = stats[i]

        # Perimeter from the component's outer contour
        component_mask = (labels[top : top + height, left : left + width] == i).astype(np.uint8)
        contours, _ = cv2.findContours(
            component_mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE
        )
        perimeter = cv2.arcLength(contours[0], closed=True) if contours else 0

        centroid = (float(centroids[i][0]), float(centroids[i][1]))

        # Bounding box as (min_x, min_y, max_x, max_y)
        bbox = (int(left), int(top), int(left + width - 1), int(top + height - 1))

        components.append(
            Component(area=int(area), perimeter=int(perimeter), centroid=centroid, bbox=bbox)
        )

    return components


def edge_support(
    edges: np.ndarray, cx: float, cy: float, radius: float, samples: int = 36
) -> float:
    """Fraction of points on a circle that land on an edge pixel."""
    if radius <= 0 or samples <= 0:
        return 0.0
    height, width = edges.shape[:2]
    angles = np.linspace(0.0, 2.0 * np.pi, samples, endpoint=False)
    xs = np.clip(np.round(cx + radius * np.cos(angles)).astype(int), 0, width - 1)
    ys = np.clip(np.round(cy + radius * np.sin(angles)).astype(int), 0, height - 1)
    return float(np.count_nonzero(edges[ys, xs]) / samples)
