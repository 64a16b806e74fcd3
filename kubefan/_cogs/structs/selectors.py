"""
Label selectors and the client-side label filtering.

Only the exact equality of one label is supported: ``key=value``.
The selector is sent to the server as a hint, but the server-side filtering
cannot be trusted: not every API (especially aggregated ones and some CRD
backends) implements it. So, every object received from a server
is re-checked on the client side before it is accepted.
"""
import dataclasses
from typing import Iterable, Iterator

from kubefan._cogs.structs import bodies


@dataclasses.dataclass(frozen=True)
class LabelSelector:
    key: str
    value: str

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("The label key must be a non-empty string.")

    def __str__(self) -> str:
        return self.as_query()

    def as_query(self) -> str:
        """ Render the selector for the ``labelSelector`` query parameter. """
        return f'{self.key}={self.value}'

    def check(self, body: bodies.RawBody) -> bool:
        """ Check if the object has exactly this label with exactly this value. """
        labels = bodies.get_labels(body)
        return self.key in labels and labels[self.key] == self.value

    def filter(self, objs: Iterable[bodies.RawBody]) -> Iterator[bodies.RawBody]:
        return (obj for obj in objs if self.check(obj))
