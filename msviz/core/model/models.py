"""Domain model of a microservice landscape.

Defines the structures the diagram builders read.
These are pure data containers — no diagram logic.

All types compare and hash by identity (``eq=False``): two microservices with
the same name are still two distinct vertices, and contract membership checks
are identity checks against the containing system.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional


@dataclass(eq=False)
class Team:
    """A team owning microservices or a system fragment."""

    name: str


@dataclass(eq=False)
class Parameter:
    """A single operation parameter."""

    name: str
    type: Optional[str] = None


@dataclass(eq=False)
class Operation:
    """An operation offered by an interface.

    A missing ``return_value`` means the operation returns nothing.
    """

    name: str
    return_value: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)


@dataclass(eq=False)
class Interface:
    """A capability provided by a microservice.

    ``provider`` is a back-reference to the owning microservice. Ownership
    runs the other way (``Microservice.interfaces``), so it is kept out of
    ``repr`` to avoid recursing through the cycle.
    """

    name: str
    provider: Optional["Microservice"] = field(default=None, repr=False)
    endpoint: Optional[str] = None
    communication_type: Optional[str] = None
    operations: List[Operation] = field(default_factory=list)


@dataclass(eq=False)
class Microservice:
    """A deployable service providing zero or more interfaces."""

    name: str
    team: Optional[Team] = None
    technology: Optional[str] = None  # informational only
    interfaces: List[Interface] = field(default_factory=list)

    def provide(self, interface: Interface) -> Interface:
        """Attach ``interface`` to this microservice and point it back here."""
        interface.provider = self
        self.interfaces.append(interface)
        return interface


@dataclass(eq=False)
class Contract:
    """``consumer`` depends on ``owner``, an interface of another microservice."""

    owner: Interface
    consumer: Microservice


@dataclass(eq=False)
class System:
    """Root aggregate: the microservices of a landscape and their contracts."""

    name: str
    microservices: List[Microservice] = field(default_factory=list)
    contracts: List[Contract] = field(default_factory=list)

    def find_microservice(self, name: str) -> Optional[Microservice]:
        """Return the first contained microservice called ``name``."""
        for ms in self.microservices:
            if ms.name == name:
                return ms
        return None

    def provided_interfaces(self) -> Iterator[Interface]:
        """Iterate the interfaces of all contained microservices, in order."""
        for ms in self.microservices:
            yield from ms.interfaces


@dataclass(eq=False)
class SystemFragment(System):
    """Part of a larger system, optionally owned by a single team."""

    team: Optional[Team] = None
