"""Bandmatch core package.

The bandmatch package assigns harvested video metadata to known marching bands:

- **matcher**: Alias generation, exclusion filtering, scoring, events and battles
- **pipeline**: Per-video classification and the batch driver
- **persistence**: Store interface and the SQLite adapter
- **run_summary**: Run recaps and statistics formatting
- **jobs**: Queue job entry point

The main entry point for batch runs is the ``ClassificationPipeline`` class.
"""

from .pipeline import ClassificationPipeline, RunOptions, classify_video
from .version import __version__

__all__ = [
    "__version__",
    "ClassificationPipeline",
    "RunOptions",
    "classify_video",
]
