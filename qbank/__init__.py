"""Q-Bank assessment item model, authoring contract and grading engine."""

__version__ = "0.1.0"
