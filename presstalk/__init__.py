"""PressTalk - press-and-hold voice transcription in the terminal."""

__version__ = "0.1.0"
