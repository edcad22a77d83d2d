"""Text segmentation and slide deck construction.

Public API:
    split, build_splitter_config, SplitterConfig  - Text segmentation
    SlideDeckBuilder, PresentationResult          - Deck creation pipeline
    GoogleSlidesClient, PresentationApi           - Remote presentation API
"""

from text2deck.slides.builder import PresentationResult, SlideDeckBuilder
from text2deck.slides.client import GoogleSlidesClient, PresentationApi
from text2deck.slides.splitter import SplitterConfig, build_splitter_config, split

__all__ = [
    "split",
    "build_splitter_config",
    "SplitterConfig",
    "SlideDeckBuilder",
    "PresentationResult",
    "GoogleSlidesClient",
    "PresentationApi",
]
