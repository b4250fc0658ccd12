"""
Failure taxonomy for the stitching pipeline.

Every error below is fatal to the run that raised it: the driver never
returns a partial panorama.  Catch :class:`StitchError` to handle them all.
"""


class StitchError(Exception):
    """Base class for errors that abort a stitching run."""


class TooFewImages(StitchError):
    """Fewer images than the minimum were supplied."""


class InsufficientFeatures(StitchError):
    """An image yielded too few keypoints to fit a homography."""


class InsufficientMatches(StitchError):
    """Too few correspondences survived the ratio test."""


class DegenerateHomography(StitchError):
    """No usable projective transform could be estimated."""


class DegenerateCanvas(StitchError):
    """The composited canvas would have an unusable size."""


class StitchCancelled(StitchError):
    """The caller cancelled the run before the next pair started."""
