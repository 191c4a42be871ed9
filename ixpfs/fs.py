"""Path-taking counterparts of the Node methods, in the manner of os.path::

    fs.exists("/tag/sel")
    Node("/tag/sel").exists()

Both of the above expressions are equivalent.
"""

from typing import Any, Callable, Iterator, List, Optional

from .node import Node


def node(path) -> Node:
    return Node(path)


def stat(path):
    return Node(path).stat()


def exists(path) -> bool:
    return Node(path).exists()


def is_directory(path) -> bool:
    return Node(path).is_directory()


def entries(path) -> List[str]:
    return Node(path).entries()


def open(path, mode: str = "r", fn: Optional[Callable[[Any], Any]] = None):
    return Node(path).open(mode, fn)


def read(path, *args):
    return Node(path).read(*args)


def lines(path) -> Iterator[str]:
    return Node(path).lines()


def each_line(path, fn: Optional[Callable[[str], Any]] = None):
    return Node(path).each_line(fn)


def write(path, content):
    return Node(path).write(content)


def create(path, *args):
    return Node(path).create(*args)


def remove(path):
    return Node(path).remove()


def at(path, name) -> Node:
    return Node(path).at(name)


def parent(path) -> Node:
    return Node(path).parent()


def children(path) -> List[Node]:
    return Node(path).children()


def clear(path) -> List[Node]:
    return Node(path).clear()
