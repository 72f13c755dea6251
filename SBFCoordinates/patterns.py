# -----------------------------
# File: SBFCoordinates/patterns.py
# -----------------------------
"""Gradient pattern matching on 1D intensity profiles.

A pattern is an ordered list of expected intensity transitions (a rise or a
fall steeper than a threshold) together with the expected distance from the
previous transition and the allowed deviation from that distance. Matching a
profile walks its local slopes from the first sample to the last and accepts
transitions in pattern order.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .profiles import Profile
from .utils.math import exceeds, profile_slopes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """
    One expected transition of a gradient pattern.

    Attributes:
        slope (float): Signed minimum slope in HU/mm. Positive for a rise,
            negative for a fall along the traversal direction.
        distance (float): Expected distance in mm from the previous
            transition. Unused for the first transition.
        tolerance (float): Allowed deviation from ``distance`` in mm.
    """

    slope: float
    distance: float = 0.0
    tolerance: float = 0.0


@dataclass(frozen=True)
class GradientPattern:
    """
    Ordered transitions plus the index of the transition to report.

    Attributes:
        transitions (Tuple[Transition, ...]): K >= 1 expected transitions.
        target_index (int): Index in [0, K) whose position ``match`` returns.
    """

    transitions: Tuple[Transition, ...]
    target_index: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'transitions', tuple(self.transitions))
        if not self.transitions:
            raise ValueError("a gradient pattern needs at least one transition")
        if not all(isinstance(t, Transition) for t in self.transitions):
            raise TypeError("transitions must be Transition instances")
        if not 0 <= self.target_index < len(self.transitions):
            raise ValueError(
                f"target_index {self.target_index} outside [0, {len(self.transitions)})"
            )

    def __len__(self) -> int:
        return len(self.transitions)

    def extended(self, *transitions: Transition) -> 'GradientPattern':
        """Return a new pattern with ``transitions`` appended."""
        return GradientPattern(self.transitions + tuple(transitions), self.target_index)

    def with_target(self, index: int) -> 'GradientPattern':
        """Return the same transitions reporting a different index."""
        return GradientPattern(self.transitions, index)


def pattern(slopes: Sequence[float], distances: Sequence[float],
            tolerances: Sequence[float], target_index: int = 0) -> GradientPattern:
    """Build a pattern from three aligned lists (slope, distance, tolerance)."""
    if not len(slopes) == len(distances) == len(tolerances):
        raise ValueError("slopes, distances and tolerances must have equal length")
    return GradientPattern(
        tuple(Transition(float(s), float(d), float(t))
              for s, d, t in zip(slopes, distances, tolerances)),
        target_index,
    )


class _Verdict(Enum):
    ACCEPT = 'accept'
    NOISE  = 'noise'
    REJECT = 'reject'


class GradientPatternMatcher:
    """
    Purpose: find the transitions of a ``GradientPattern`` in a ``Profile``.

    Order of operations:
      - Resample the profile into N-1 slopes positioned between samples
      - Scan forward for a run of slopes steeper than the next expected
        transition (same sign); its position is the midpoint between the
        run start and the first slope after the run. Scanning continues
        one slope past that slope, so two edges need at least one slope
        between them to both be seen
      - The first transition is accepted as is
      - Later transitions are judged by their distance from the previously
        accepted one:
          * closer than ``distance - tolerance``: noise, skip one more
            slope and keep scanning
          * farther than ``distance + tolerance``: the partial match was a
            false positive; drop it and resume two slopes past the end of
            the first accepted run
          * otherwise (window bounds included): accept
      - Stop when all transitions are accepted or the profile is exhausted

    Args:
        pattern (GradientPattern): Pattern to match.
    """

    def __init__(self, pattern: GradientPattern):
        if not isinstance(pattern, GradientPattern):
            raise TypeError("pattern must be a GradientPattern")
        self.pattern = pattern

    # -------------------------
    # Public API
    # -------------------------
    def match(self, profile: Profile) -> Optional[float]:
        """Position of the target transition, or None when not found."""
        found = self.transitions(profile)
        if found is None:
            return None
        return found[self.pattern.target_index]

    def transitions(self, profile: Profile) -> Optional[List[float]]:
        """Positions of all K transitions in pattern order, or None."""
        midpoints, slopes = profile_slopes(profile.positions, profile.values)
        expected = self.pattern.transitions
        n_slopes = slopes.size

        accepted: List[float] = []
        cursor = 0      # next slope to examine
        resume = 0      # where to restart after a rejected partial match

        while len(accepted) < len(expected):
            step = expected[len(accepted)]
            run  = self._next_run(slopes, cursor, step.slope)
            if run is None:
                logger.debug("Pattern incomplete: %d of %d transitions found",
                             len(accepted), len(expected))
                return None

            first, stop = run
            run_end  = midpoints[stop] if stop < n_slopes else midpoints[n_slopes - 1]
            position = float((midpoints[first] + run_end) / 2)
            cursor   = stop + 1     # the slope ending the run is not examined again

            if not accepted:
                accepted.append(position)
                resume = stop + 2
                continue

            distance = abs(position - accepted[-1])
            verdict  = self._judge(distance, step)
            if verdict is _Verdict.ACCEPT:
                accepted.append(position)
            elif verdict is _Verdict.NOISE:
                cursor = stop + 2
            elif verdict is _Verdict.REJECT:
                logger.debug("Rejected partial match at %.1f: distance %.1f > %.1f",
                             accepted[0], distance, step.distance + step.tolerance)
                accepted = []
                cursor   = resume

        return accepted

    # -------------------------
    # Helpers
    # -------------------------
    @staticmethod
    def _next_run(slopes: np.ndarray, cursor: int, threshold: float) -> Optional[Tuple[int, int]]:
        """Return (first, stop) of the next qualifying run at or after ``cursor``.

        ``stop`` is the index of the first slope after the run, or
        ``len(slopes)`` when the run reaches the end of the profile.
        """
        n_slopes = slopes.size
        i = cursor
        while i < n_slopes and not exceeds(slopes[i], threshold):
            i += 1
        if i >= n_slopes:
            return None
        stop = i
        while stop < n_slopes and exceeds(slopes[stop], threshold):
            stop += 1
        return i, stop

    @staticmethod
    def _judge(distance: float, step: Transition) -> _Verdict:
        if distance < step.distance - step.tolerance:
            return _Verdict.NOISE
        if distance > abs(step.distance) + step.tolerance:
            return _Verdict.REJECT
        return _Verdict.ACCEPT


def match_pattern(profile: Profile, gradient_pattern: GradientPattern) -> Optional[float]:
    """Convenience wrapper: ``GradientPatternMatcher(pattern).match(profile)``."""
    return GradientPatternMatcher(gradient_pattern).match(profile)
