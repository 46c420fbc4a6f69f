"""Build and expose the LangGraph orchestration for a Compass turn.

The graph has three nodes:
- ``draft`` asks the model for a reply with the ``web_search`` tool bound
- ``web_search`` runs the search the model asked for
- ``answer`` asks the model again with the search results
"""

from .types import CompassState
from .graph import get_compass_graph, run_compass, _compiled_compass_graph

__all__ = [
    "CompassState",
    "get_compass_graph",
    "run_compass",
    "_compiled_compass_graph",
]
