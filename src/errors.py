"""
Error types raised by the sequencing primitives.

The controller catches SequencerError at every entry point; nothing here is
meant to reach the host player.
"""


class SequencerError(Exception):
    """Base class for recoverable sequencing failures."""


class AllocationError(SequencerError):
    """Index array growth failed. The array is left as it was."""


class LockError(SequencerError):
    """The shared sequencing lock could not be acquired in time."""


class InvariantError(SequencerError):
    """Internal bookkeeping is inconsistent; the operation was not applied."""
