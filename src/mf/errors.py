"""Failure signals raised by the MF trainer."""

from __future__ import annotations


class TrainingError(Exception):
    """Base class for errors that abort a training run."""


class EmptyDatasetError(TrainingError):
    """No usable ratings, users or items were supplied."""


class InvalidIndexError(TrainingError):
    """A rating references a user/item index outside the allocated range.

    This points at a bug in the upstream index assignment, not at bad data.
    """
