"""Stream processing building blocks: group graphs, codecs, headers, balancing, config, contexts, emitters, iterators and logging."""

__version__ = "0.1.0"

__all__ = [
    "codec",
    "config",
    "context",
    "copartition",
    "emitter",
    "errors",
    "graph",
    "headers",
    "iterator",
    "logger",
]