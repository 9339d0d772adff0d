"""Hotel bedding ratings service.

Accepts crowd-sourced bedding, light and noise ratings keyed by a stable
location key and serves aggregated top-2 summaries.
"""

__version__ = "0.1.0"
