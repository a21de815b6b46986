"""
FrameScorer - Picks the most representative video frame.

A frame scores well when its mean luma sits near mid-range (fade-ins and
blown-out frames score low) and its luma histogram carries information
(flat or blank frames score low).
"""

import logging
from typing import Iterable, Optional

from PIL import Image, ImageStat

from .errors import DecodeError
from .models import FrameCandidate


ENTROPY_MAX_BITS = 8.0


class FrameScorer:
    """
    Scores candidates and selects one deterministically.
    """

    def __init__(
        self,
        target_luma: float = 128.0,
        brightness_weight: float = 0.5,
        entropy_weight: float = 0.5,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scorer.

        Args:
            target_luma: Mean luma that earns the full brightness term
            brightness_weight: Weight of the brightness-distance term
            entropy_weight: Weight of the entropy term
            logger: Optional logger instance
        """
        self.target_luma = target_luma
        self.brightness_weight = brightness_weight
        self.entropy_weight = entropy_weight
        self.logger = logger or logging.getLogger(__name__)

    def luma_stats(self, image: Image.Image):
        """
        Mean luma and histogram entropy (bits) of an image.

        Luma uses the ITU-R 601 weights of Pillow's ``L`` conversion.
        """
        if image.width == 0 or image.height == 0:
            return 0.0, 0.0
        luma = image.convert('L')
        return ImageStat.Stat(luma).mean[0], luma.entropy()

    def score(self, image: Image.Image) -> float:
        """
        Weighted sum of the normalized brightness and entropy terms.

        Returns:
            Score in [0, brightness_weight + entropy_weight]
        """
        mean, entropy = self.luma_stats(image)
        span = max(self.target_luma, 255.0 - self.target_luma) or 1.0
        brightness = max(0.0, 1.0 - abs(mean - self.target_luma) / span)
        information = min(entropy / ENTROPY_MAX_BITS, 1.0)
        return self.brightness_weight * brightness + self.entropy_weight * information

    def select(self, candidates: Iterable[FrameCandidate]) -> FrameCandidate:
        """
        Return the highest-scoring candidate.

        Candidates are consumed one at a time and only the current best is
        kept. Ties go to the earliest timestamp. A lone candidate is returned
        as is.

        Raises:
            DecodeError: If there are no candidates
        """
        best: Optional[FrameCandidate] = None
        index = 0

        for index, candidate in enumerate(candidates):
            candidate.score = self.score(candidate.image)
            self.logger.debug(
                f"Candidate [{index}] t={candidate.timestamp:.3f}s score={candidate.score:.4f}"
            )
            if best is None or self._beats(candidate, best):
                best = candidate

        if best is None:
            raise DecodeError('video', "No candidate frames to score")

        self.logger.debug(
            f"Selected frame t={best.timestamp:.3f}s score={best.score:.4f} of {index + 1}"
        )
        return best

    @staticmethod
    def _beats(candidate: FrameCandidate, best: FrameCandidate) -> bool:
        if candidate.score != best.score:
            return candidate.score > best.score
        return candidate.timestamp < best.timestamp
