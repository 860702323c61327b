"""Target circle and goal tape detection inside the goal region."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import cv2
import numpy as np
from scipy.optimize import linear_sum_assignment

from contracts import Rect, TargetDetection, TargetScan
from detect.config import TargetConfig
from detect.utils import circularity, edge_support, to_grayscale, validate_frame
from log_config.logger import get_logger

logger = get_logger(__name__)

# Costs above the gate are replaced so the solver never prefers them
_UNMATCHED_COST = 1e6


@dataclass
class TargetCandidate:
    x: float
    y: float
    radius: float
    is_circular: bool
    confidence: float


def quadrant_for(x: float, y: float, goal_region: Rect) -> int:
    """1 top-left, 2 top-right, 3 bottom-left, 4 bottom-right."""
    gx, gy = goal_region.center
    if y < gy:
        return 1 if x < gx else 2
    return 3 if x < gx else 4


def merge_candidates(candidates: Sequence[TargetCandidate]) -> List[TargetCandidate]:
    """Drop candidates whose centre lies within the radius of a stronger one."""
    kept: List[TargetCandidate] = []
    for candidate in sorted(candidates, key=lambda c: c.confidence, reverse=True):
        duplicate = False
        for other in kept:
            distance = math.hypot(candidate.x - other.x, candidate.y - other.y)
            if distance < max(candidate.radius, other.radius):
                duplicate = True
                break
        if not duplicate:
            kept.append(candidate)
    return kept


def assign_target_numbers(
    candidates: Sequence[TargetCandidate],
    previous: Sequence[TargetDetection],
    gate_px: float,
) -> List[int]:
    """Keep numbers of targets matched to the previous frame, fill the rest.

    Matching minimises total centre distance. Pairs farther apart than
    ``gate_px`` are left unmatched and get the lowest free number, in
    reading order (top to bottom, then left to right).
    """
    numbers: List[Optional[int]] = [None] * len(candidates)
    if candidates and previous:
        cost = np.zeros((len(candidates), len(previous)), dtype=np.float64)
        for i, candidate in enumerate(candidates):
            for j, target in enumerate(previous):
                distance = math.hypot(candidate.x - target.center_x, candidate.y - target.center_y)
                cost[i, j] = distance if distance <= gate_px else _UNMATCHED_COST
        rows, cols = linear_sum_assignment(cost)
        for row, col in zip(rows, cols):
            if cost[row, col] < _UNMATCHED_COST:
                numbers[row] = previous[col].target_number

    used = {number for number in numbers if number is not None}
    unmatched = sorted(
        (i for i, number in enumerate(numbers) if number is None),
        key=lambda i: (candidates[i].y, candidates[i].x),
    )
    next_number = 1
    for i in unmatched:
        while next_number in used:
            next_number += 1
        numbers[i] = next_number
        used.add(next_number)
    return [int(number) for number in numbers]


def classify_contour(
    contour: np.ndarray,
    offset: tuple[int, int],
    radius_bounds: tuple[float, float],
    circularity_threshold: float,
    min_circularity: float = 0.5,
) -> Optional[TargetCandidate]:
    """Turn one edge contour into a target candidate, or None if it is not target-like."""
    area = cv2.contourArea(contour)
    if area <= 0:
        return None
    (cx, cy), radius = cv2.minEnclosingCircle(contour)
    if not radius_bounds[0] <= radius <= radius_bounds[1]:
        return None
    circ = circularity(area, cv2.arcLength(contour, closed=True))
    if circ < min_circularity:
        return None
    return TargetCandidate(
        x=float(cx) + offset[0],
        y=float(cy) + offset[1],
        radius=float(radius),
        is_circular=circ >= circularity_threshold,
        confidence=min(circ, 1.0),
    )


def _crop_bounds(region: Rect) -> tuple[int, int, int, int]:
    x0 = int(math.floor(region.x))
    y0 = int(math.floor(region.y))
    x1 = int(math.ceil(region.x + region.width))
    y1 = int(math.ceil(region.y + region.height))
    return x0, y0, x1, y1


def find_tape_region(
    gray: np.ndarray, goal_region: Rect, config: TargetConfig
) -> Optional[Rect]:
    """Bounding box of the largest quadrilateral around the goal region."""
    height, width = gray.shape[:2]
    padded = Rect(
        goal_region.x - goal_region.width * config.tape_padding_ratio,
        goal_region.y - goal_region.height * config.tape_padding_ratio,
        goal_region.width * (1.0 + 2.0 * config.tape_padding_ratio),
        goal_region.height * (1.0 + 2.0 * config.tape_padding_ratio),
    ).clamped(width, height)
    if padded.is_empty:
        return None

    x0, y0, x1, y1 = _crop_bounds(padded)
    crop = gray[y0:y1, x0:x1]
    edges = cv2.Canny(cv2.GaussianBlur(crop, (5, 5), 0), config.canny_low, config.canny_high)
    edges = cv2.dilate(edges, None, iterations=1)
    contours, _ = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)

    min_area = 0.05 * goal_region.area
    best_area = 0.0
    best_box = None
    for contour in contours:
        approx = cv2.approxPolyDP(contour, 0.02 * cv2.arcLength(contour, True), True)
        if len(approx) != 4:
            continue
        area = abs(cv2.contourArea(approx))
        if area < min_area or area <= best_area:
            continue
        best_area = area
        best_box = cv2.boundingRect(approx)

    if best_box is None:
        return None
    bx, by, bw, bh = best_box
    return Rect(float(bx + x0), float(by + y0), float(bw), float(bh))


class TargetDetector:
    """Finds numbered target circles inside a goal region.

    Target numbers persist between calls through an assignment against the
    previous frame's targets, so a target keeps its number while it stays
    within ``match_distance_px`` of where it was last seen.
    """

    def __init__(self, config: Optional[TargetConfig] = None) -> None:
        self._config = config or TargetConfig()
        self._previous: List[TargetDetection] = []

    @property
    def previous_targets(self) -> List[TargetDetection]:
        return list(self._previous)

    def reset(self) -> None:
        self._previous = []

    def detect(self, frame: np.ndarray, goal_region) -> TargetScan:
        frame = validate_frame(frame)
        gray = to_grayscale(frame)
        height, width = gray.shape[:2]
        region = Rect.coerce(goal_region).clamped(width, height)
        config = self._config

        if region.is_empty:
            return TargetScan(
                targets=[],
                goal_region=region,
                alignment_threshold=config.alignment_threshold,
            )

        candidates = merge_candidates(self._candidates(gray, region))
        candidates = candidates[: config.max_targets]
        numbers = assign_target_numbers(candidates, self._previous, config.match_distance_px)
        targets = sorted(
            (
                TargetDetection(
                    center_x=candidate.x,
                    center_y=candidate.y,
                    radius=candidate.radius,
                    target_number=number,
                    is_circular=candidate.is_circular,
                    quadrant=quadrant_for(candidate.x, candidate.y, region),
                    confidence=candidate.confidence,
                )
                for candidate, number in zip(candidates, numbers)
            ),
            key=lambda target: target.target_number,
        )
        self._previous = targets

        tape = find_tape_region(gray, region, config)
        alignment = 0.0
        if tape is not None and region.area > 0:
            alignment = region.intersection(tape).area / region.area

        logger.debug(f"Found {len(targets)} targets, tape alignment {alignment:.2f}")
        return TargetScan(
            targets=targets,
            goal_region=region,
            tape_region=tape,
            alignment=alignment,
            alignment_threshold=config.alignment_threshold,
        )

    def _candidates(self, gray: np.ndarray, region: Rect) -> List[TargetCandidate]:
        config = self._config
        x0, y0, x1, y1 = _crop_bounds(region)
        crop = gray[y0:y1, x0:x1]
        short_side = min(crop.shape[0], crop.shape[1])
        min_radius = max(int(short_side * config.min_radius_ratio), 2)
        max_radius = max(int(short_side * config.max_radius_ratio), min_radius + 1)

        blurred = cv2.GaussianBlur(crop, (5, 5), 0)
        edges = cv2.Canny(blurred, config.canny_low, config.canny_high)
        edges = cv2.dilate(edges, None, iterations=1)

        candidates: List[TargetCandidate] = []
        circles = cv2.HoughCircles(
            blurred,
            cv2.HOUGH_GRADIENT,
            dp=1.2,
            minDist=max(min_radius * 2, 8),
            param1=config.canny_high,
            param2=30,
            minRadius=min_radius,
            maxRadius=max_radius,
        )
        if circles is not None:
            for cx, cy, radius in circles[0]:
                support = edge_support(edges, float(cx), float(cy), float(radius))
                if support < 0.5:
                    continue
                candidates.append(
                    TargetCandidate(
                        x=float(cx) + x0,
                        y=float(cy) + y0,
                        radius=float(radius),
                        is_circular=True,
                        confidence=support,
                    )
                )

        # RETR_LIST so targets inside the goal tape outline are still reported
        contours, _ = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_NONE)
        for contour in contours:
            candidate = classify_contour(
                contour, (x0, y0), (min_radius, max_radius), config.circularity_threshold
            )
            if candidate is not None:
                candidates.append(candidate)
        return candidates
