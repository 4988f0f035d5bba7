"""Resource graph shared by every topology builder."""

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Any, Literal

from terraformpy import Data, Resource


class TopologyError(RuntimeError):
    """The declared topology is inconsistent or unsafe."""


@dataclass
class Declaration:
    """One resource or data lookup handed to the provisioning engine."""

    type: str
    name: str
    attributes: dict[str, Any]
    kind: Literal["resource", "data"] = "resource"
    depends_on: list[str] = field(default_factory=list)
    _handle: Resource | Data | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def address(self) -> str:
        """Return the engine address, e.g. ``aws_lb.web``."""
        if self.kind == "data":
            return f"data.{self.type}.{self.name}"
        return f"{self.type}.{self.name}"

    def to_object(self) -> Resource | Data:
        """Declare this node as a terraformpy object carrying its attributes."""
        values = dict(self.attributes)
        if self.depends_on:
            values["depends_on"] = list(self.depends_on)
        factory = Data if self.kind == "data" else Resource
        return factory(self.type, self.name, **values)

    def ref(self, attribute: str) -> str:
        """Return an interpolation of one of this declaration's attributes."""
        # An attribute-free handle, so terraformpy always interpolates.
        if self._handle is None:
            factory = Data if self.kind == "data" else Resource
            self._handle = factory(self.type, self.name)
        return str(getattr(self._handle, attribute))

    def expr(self, attribute: str) -> str:
        """Return a bare traversal to one of this declaration's attributes."""
        return self.ref(attribute)[2:-1]


@dataclass(frozen=True)
class Output:
    """A value exposed by the engine after apply."""

    name: str
    value: str
    description: str | None = None


class TopologyGraph:
    """Named declarations plus the dependency edges between them.

    Implicit edges come from attribute values that reference another
    declaration's address. Explicit edges come from ``depends_on`` and
    express ordering no attribute reference forces.
    """

    def __init__(self) -> None:
        self._declarations: dict[str, Declaration] = {}
        self._outputs: dict[str, Output] = {}

    def __iter__(self) -> Iterator[Declaration]:
        return iter(self._declarations.values())

    def __len__(self) -> int:
        return len(self._declarations)

    def __contains__(self, address: object) -> bool:
        return address in self._declarations

    def add(self, declaration: Declaration) -> Declaration:
        """Add a declaration and return it for chaining references."""
        if declaration.address in self._declarations:
            raise TopologyError(f"Duplicate declaration {declaration.address}")
        self._declarations[declaration.address] = declaration
        return declaration

    def get(self, address: str) -> Declaration:
        """Return a declaration by address."""
        try:
            return self._declarations[address]
        except KeyError as exc:
            raise TopologyError(f"Unknown declaration {address}") from exc

    def add_output(self, name: str, value: str, description: str | None = None) -> Output:
        """Expose a value after apply."""
        if name in self._outputs:
            raise TopologyError(f"Duplicate output {name}")
        output = Output(name=name, value=value, description=description)
        self._outputs[name] = output
        return output

    @property
    def outputs(self) -> list[Output]:
        """Return outputs in declaration order."""
        return list(self._outputs.values())

    def implicit_dependencies(self, declaration: Declaration) -> set[str]:
        """Return addresses referenced from a declaration's attribute values."""
        texts = list(_iter_strings(declaration.attributes))
        found: set[str] = set()
        for address in self._declarations:
            if address == declaration.address:
                continue
            pattern = re.compile(rf"(?<![\w.]){re.escape(address)}\.")
            if any(pattern.search(text) for text in texts):
                found.add(address)
        return found

    def dependencies(self, declaration: Declaration) -> set[str]:
        """Return every address a declaration must wait for."""
        return self.implicit_dependencies(declaration) | set(declaration.depends_on)

    def explicit_edges(self) -> list[tuple[str, str]]:
        """Return ``(dependent, dependency)`` pairs declared with ``depends_on``."""
        return [
            (declaration.address, dependency)
            for declaration in self
            for dependency in declaration.depends_on
        ]

    def validate(self) -> None:
        """Check that every edge resolves and the graph is acyclic."""
        for dependent, dependency in self.explicit_edges():
            if dependency not in self._declarations:
                raise TopologyError(f"{dependent} depends on unknown declaration {dependency}")
        self.apply_order()

    def apply_order(self) -> list[list[str]]:
        """Group addresses into layers that only depend on earlier layers."""
        sorter = TopologicalSorter(
            {declaration.address: self.dependencies(declaration) for declaration in self}
        )
        try:
            sorter.prepare()
        except CycleError as exc:
            raise TopologyError(f"Dependency cycle between {exc.args[1]}") from exc

        layers: list[list[str]] = []
        while sorter.is_active():
            ready = sorted(sorter.get_ready())
            layers.append(ready)
            sorter.done(*ready)
        return layers

    def layer_index(self, address: str) -> int:
        """Return the apply layer an address lands in."""
        for index, layer in enumerate(self.apply_order()):
            if address in layer:
                return index
        raise TopologyError(f"Unknown declaration {address}")


def _iter_strings(value: Any) -> Iterator[str]:
    """Yield every string nested inside attribute values."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _iter_strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_strings(item)
