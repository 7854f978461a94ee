"""LearnPath engine: AI lesson generation backend."""

__version__ = "0.1.0"
