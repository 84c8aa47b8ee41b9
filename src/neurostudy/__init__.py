"""NeuroStudy: study companion with neurodivergent support modes."""

__version__ = "0.1.0"
