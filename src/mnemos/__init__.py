"""mnemos: adaptive spaced-repetition and personalization engine."""

from mnemos.consts import VERSION

__version__ = VERSION
