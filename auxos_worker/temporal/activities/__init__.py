from .extraction import DocumentExtractionActivities

__all__ = ["DocumentExtractionActivities"]
