"""Exceptions raised by the tiling engine."""


class QuiltError(Exception):
    """Base class for every error the engine reports."""


class InvalidColor(QuiltError, ValueError):
    """A color could not be parsed into an RGB triple."""


class InvalidContributor(QuiltError, ValueError):
    """A contribution arrived without a usable contributor id."""


class NotSplittable(QuiltError):
    """A tile was asked to split along an axis that is too short.

    Selection only ever hands out tiles with a valid direction, so seeing this
    outside of tests points at a defect.
    """


class NoEligibleTile(QuiltError):
    """No tile could host a contribution and the canvas could not grow."""


class SnapshotError(QuiltError, ValueError):
    """Persisted quilt data was malformed."""
