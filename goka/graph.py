"""Group graph: the topics a processor group consumes from and produces to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional

from goka.codec import Codec

ProcessCallback = Callable[[Any, Any], None]

DEFAULT_TABLE_SUFFIX = "-table"
DEFAULT_LOOP_SUFFIX = "-loop"


class _Suffixes:
    def __init__(self) -> None:
        self.table = DEFAULT_TABLE_SUFFIX
        self.loop = DEFAULT_LOOP_SUFFIX


_suffixes = _Suffixes()


def set_table_suffix(suffix: str) -> None:
    """Change the suffix appended to a group name to form its table topic."""
    _suffixes.table = suffix


def set_loop_suffix(suffix: str) -> None:
    """Change the suffix appended to a group name to form its loop topic."""
    _suffixes.loop = suffix


def reset_suffixes() -> None:
    """Restore the default table and loop suffixes."""
    _suffixes.table = DEFAULT_TABLE_SUFFIX
    _suffixes.loop = DEFAULT_LOOP_SUFFIX


def table_name(group: str) -> str:
    """Return the table topic name of ``group``."""
    return group + _suffixes.table


def loop_name(group: str) -> str:
    """Return the loop topic name of ``group``."""
    return group + _suffixes.loop


def group_table(group: str) -> str:
    """Return the name of the group table of ``group``."""
    return table_name(group)


class GraphError(Exception):
    """Raised when a group graph is defined or used incorrectly."""


class Edge(ABC):
    """A topic together with the codec of its messages."""

    @abstractmethod
    def topic(self) -> str:
        """Return the topic name."""

    @abstractmethod
    def codec(self) -> Optional[Codec]:
        """Return the codec of the topic."""


class Edges(list):
    """A list of edges."""

    def topics(self) -> list[str]:
        """Return the topic names of the edges."""
        return [edge.topic() for edge in self]


def chain_edges(*edge_lists: Iterable[Edge]) -> Edges:
    """Concatenate several lists of edges into one."""
    chained = Edges()
    for edges in edge_lists:
        chained.extend(edges)
    return chained


def _codec_name(codec: Any) -> str:
    return type(codec).__qualname__


class _TopicDef(Edge):
    def __init__(self, name: str, codec: Optional[Codec]) -> None:
        self._name = name
        self._codec = codec

    def topic(self) -> str:
        return self._name

    def codec(self) -> Optional[Codec]:
        return self._codec

    def __str__(self) -> str:
        return f"{self._name}/{_codec_name(self._codec)}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, {self._codec!r})"

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    __hash__ = None  # type: ignore[assignment]


class _InputStream(_TopicDef):
    def __init__(self, name: str, codec: Codec, callback: ProcessCallback) -> None:
        super().__init__(name, codec)
        self.callback = callback


class _LoopStream(_TopicDef):
    def __init__(self, codec: Codec, callback: ProcessCallback) -> None:
        super().__init__("", codec)
        self.callback = callback

    def set_group(self, group: str) -> None:
        self._name = loop_name(group)


class _InputTable(_TopicDef):
    pass


class _CrossTable(_TopicDef):
    pass


class _GroupTable(_TopicDef):
    def __init__(self, codec: Codec) -> None:
        super().__init__("", codec)

    def set_group(self, group: str) -> None:
        self._name = group_table(group)


class _OutputStream(_TopicDef):
    pass


class _Visitor(Edge):
    def __init__(self, name: str, callback: ProcessCallback) -> None:
        self._name = name
        self.callback = callback

    def topic(self) -> str:
        return self._name

    def codec(self) -> None:
        return None

    def __str__(self) -> str:
        return f"visitor {self._name}"


class _InputStreams(Edge):
    def __init__(self, streams: Iterable[_InputStream]) -> None:
        self.streams = Edges(streams)

    def topic(self) -> str:
        return ",".join(self.streams.topics())

    def codec(self) -> Optional[Codec]:
        if not self.streams:
            return None
        return self.streams[0].codec()

    def __str__(self) -> str:
        if not self.streams:
            return "empty input streams"
        return f"input streams: {self.topic()}/{_codec_name(self.codec())}"


def input_stream(topic: str, codec: Codec, callback: ProcessCallback) -> Edge:
    """Edge of an input stream consumed with ``callback``."""
    return _InputStream(topic, codec, callback)


def inputs(topics: Iterable[str], codec: Codec, callback: ProcessCallback) -> Optional[Edge]:
    """Edge of several input streams sharing a codec and callback; None if empty."""
    streams = [_InputStream(topic, codec, callback) for topic in topics]
    if not streams:
        return None
    return _InputStreams(streams)


def visitor(name: str, callback: ProcessCallback) -> Edge:
    """Edge that allows visiting the whole processor state."""
    return _Visitor(name, callback)


def loop(codec: Codec, callback: ProcessCallback) -> Edge:
    """Edge of the group's loopback topic."""
    return _LoopStream(codec, callback)


def join(topic: str, codec: Optional[Codec]) -> Edge:
    """Edge of a copartitioned table topic."""
    return _InputTable(topic, codec)


def lookup(topic: str, codec: Optional[Codec]) -> Edge:
    """Edge of a non-copartitioned table topic."""
    return _CrossTable(topic, codec)


def persist(codec: Codec) -> Edge:
    """Edge of the group table."""
    return _GroupTable(codec)


def output(topic: str, codec: Codec) -> Edge:
    """Edge of an output stream."""
    return _OutputStream(topic, codec)


def strings_to_streams(*names: str) -> list[str]:
    """Return the given names as a list of stream names."""
    return list(names)


class GroupGraph:
    """Specification of a processor group and all its topics."""

    def __init__(self, group: str) -> None:
        self._group = group
        self._input_tables: list[Edge] = []
        self._cross_tables: list[Edge] = []
        self._input_streams: list[Edge] = []
        self._output_streams: list[Edge] = []
        self._loop_stream: list[Edge] = []
        self._group_table: list[Edge] = []
        self._visitors: list[Edge] = []
        self._codecs: dict[str, Optional[Codec]] = {}
        self._callbacks: dict[str, ProcessCallback] = {}
        self._output_topics: set[str] = set()
        self._joint: set[str] = set()

    def group(self) -> str:
        return self._group

    def input_streams(self) -> Edges:
        return Edges(self._input_streams)

    def joint_tables(self) -> Edges:
        return Edges(self._input_tables)

    def lookup_tables(self) -> Edges:
        return Edges(self._cross_tables)

    def loop_stream(self) -> Optional[Edge]:
        return self._loop_stream[0] if self._loop_stream else None

    def group_table(self) -> Optional[Edge]:
        return self._group_table[0] if self._group_table else None

    def output_streams(self) -> Edges:
        return Edges(self._output_streams)

    def all_edges(self) -> Edges:
        """Return every edge of the graph."""
        return chain_edges(
            self._input_tables,
            self._cross_tables,
            self._input_streams,
            self._output_streams,
            self._loop_stream,
            self._group_table,
            self._visitors,
        )

    def is_output_topic(self, topic: str) -> bool:
        return topic in self._output_topics

    def inputs(self) -> Edges:
        """Return all input topics, streams and tables."""
        return chain_edges(self._input_streams, self._input_tables, self._cross_tables)

    def copartitioned(self) -> Edges:
        """Return input streams and joint tables."""
        return chain_edges(self._input_streams, self._input_tables)

    def codec(self, topic: str) -> Optional[Codec]:
        return self._codecs.get(topic)

    def callback(self, topic: str) -> Optional[ProcessCallback]:
        return self._callbacks.get(topic)

    def is_joint(self, topic: str) -> bool:
        return topic in self._joint

    def visitors(self) -> Edges:
        return Edges(self._visitors)

    def _add_input(self, edge: _InputStream) -> None:
        topic = edge.topic()
        if topic == "":
            raise GraphError("Input topic cannot be empty. This will not work.")
        if topic in self._callbacks:
            raise GraphError(
                f"Callback for topic {topic} already exists. "
                "It is illegal to consume a topic twice"
            )
        self._codecs[topic] = edge.codec()
        self._callbacks[topic] = edge.callback
        self._input_streams.append(edge)

    def _add(self, edge: Optional[Edge]) -> None:
        if isinstance(edge, _InputStreams):
            for stream in edge.streams:
                self._add_input(stream)
        elif isinstance(edge, _InputStream):
            self._add_input(edge)
        elif isinstance(edge, _LoopStream):
            edge.set_group(self._group)
            self._codecs[edge.topic()] = edge.codec()
            self._callbacks[edge.topic()] = edge.callback
            self._loop_stream.append(edge)
        elif isinstance(edge, _OutputStream):
            self._codecs[edge.topic()] = edge.codec()
            self._output_streams.append(edge)
            self._output_topics.add(edge.topic())
        elif isinstance(edge, _InputTable):
            self._codecs[edge.topic()] = edge.codec()
            self._input_tables.append(edge)
            self._joint.add(edge.topic())
        elif isinstance(edge, _CrossTable):
            self._codecs[edge.topic()] = edge.codec()
            self._cross_tables.append(edge)
        elif isinstance(edge, _GroupTable):
            edge.set_group(self._group)
            self._codecs[edge.topic()] = edge.codec()
            self._group_table.append(edge)
        elif isinstance(edge, _Visitor):
            self._visitors.append(edge)

    def validate(self) -> None:
        """Raise GraphError if the graph is not a valid processor definition."""
        if len(self._loop_stream) > 1:
            raise GraphError("more than one loop stream in group graph")
        if len(self._group_table) > 1:
            raise GraphError("more than one group table in group graph")
        if not self._input_streams:
            raise GraphError("no input stream in group graph")
        for edge in chain_edges(
            self._output_streams, self._input_streams, self._input_tables, self._cross_tables
        ):
            if edge.topic() == loop_name(self._group):
                raise GraphError("should not directly use loop stream")
            if edge.topic() == table_name(self._group):
                raise GraphError("should not directly use group table")
        if self._visitors and not self._group_table:
            raise GraphError("visitors cannot be used in a stateless processor")


def define_group(group: str, *edges: Optional[Edge]) -> GroupGraph:
    """Create a group graph from a group name and its edges."""
    graph = GroupGraph(group)
    for edge in edges:
        graph._add(edge)
    return graph