from dataclasses import dataclass

@dataclass(slots=True)
class Superseded:
    """Marks a tile entity that was split and is no longer part of the quilt.

    The entity is kept so lineage walks can still pass through it.
    by_submission: submission index of the contribution that replaced it.
    """
    by_submission: int
