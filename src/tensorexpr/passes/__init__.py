from .analysis import TreeFormatter, VariableCollector, walk

__all__ = [
    "walk",
    "VariableCollector",
    "TreeFormatter",
]
