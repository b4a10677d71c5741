"""certhealth - certificate health classification."""

__version__ = "0.1.0"
