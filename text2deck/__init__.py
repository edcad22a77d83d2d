"""text2deck: turn raw text into a Google Slides presentation."""

__version__ = "0.1.0"
