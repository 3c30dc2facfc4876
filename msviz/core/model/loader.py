"""Build a domain model from a YAML landscape document or a plain mapping.

Document shape::

    name: MySystem
    team: Team A                  # optional, produces a SystemFragment
    microservices:
      - name: My Microservice
        technology: spring        # optional
        team: Team A              # optional
        interfaces:
          - name: MyInterface
            endpoint: /api        # optional
            communicationType: REST
            operations:
              - name: op1
                returns: String
                parameters:
                  - {name: p1, type: T}
    contracts:
      - {owner: MyInterface, consumer: Another Microservice}

Contract owners are interface names, optionally qualified as
``"<microservice>/<interface>"`` when the bare name is ambiguous.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .models import (
    Contract,
    Interface,
    Microservice,
    Operation,
    Parameter,
    System,
    SystemFragment,
    Team,
)

logger = logging.getLogger(__name__)


class ModelLoadError(ValueError):
    """The landscape document is malformed or references unknown elements."""


def load_system(path: Union[str, Path]) -> System:
    """Load a landscape YAML file into a :class:`System`.

    Raises:
        ModelLoadError: If the file cannot be read or is structurally invalid.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ModelLoadError(f"Cannot read landscape file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ModelLoadError(f"Invalid YAML in {path}: {e}") from e

    logger.debug("Loaded landscape document from %s", path)
    return system_from_dict(data)


def system_from_dict(data: Dict[str, Any]) -> System:
    """Convert a landscape mapping to the domain model.

    Args:
        data: Mapping in the shape described in the module docstring

    Returns:
        A ``System``, or a ``SystemFragment`` when ``team`` is given

    Raises:
        ModelLoadError: On missing names, wrong collection types or
                        contracts that reference unknown elements
    """
    if not isinstance(data, dict):
        raise ModelLoadError("Landscape document must be a mapping")

    teams: Dict[str, Team] = {}
    name = _require_name(data, "system")
    team_name = data.get("team")

    if team_name:
        system: System = SystemFragment(name, team=_team(teams, team_name))
    else:
        system = System(name)

    for ms_data in _list(data, "microservices", f"system '{name}'"):
        system.microservices.append(_microservice(ms_data, teams))

    for c_data in _list(data, "contracts", f"system '{name}'"):
        system.contracts.append(_contract(c_data, system))

    logger.debug(
        "Built system '%s' with %d microservices and %d contracts",
        system.name, len(system.microservices), len(system.contracts),
    )
    return system


# ── Internal helpers ──────────────────────────────────────────────


def _require_name(data: Any, what: str) -> str:
    if not isinstance(data, dict):
        raise ModelLoadError(f"Each {what} must be a mapping, got {type(data).__name__}")
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ModelLoadError(f"A {what} is missing its 'name'")
    return name


def _list(data: Dict[str, Any], key: str, where: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ModelLoadError(f"'{key}' of {where} must be a list")
    return value


def _team(teams: Dict[str, Team], name: str) -> Team:
    if name not in teams:
        teams[name] = Team(name)
    return teams[name]


def _microservice(data: Any, teams: Dict[str, Team]) -> Microservice:
    name = _require_name(data, "microservice")
    team_name = data.get("team")
    ms = Microservice(
        name,
        team=_team(teams, team_name) if team_name else None,
        technology=data.get("technology"),
    )
    for i_data in _list(data, "interfaces", f"microservice '{name}'"):
        ms.provide(_interface(i_data))
    return ms


def _interface(data: Any) -> Interface:
    name = _require_name(data, "interface")
    interface = Interface(
        name,
        endpoint=data.get("endpoint"),
        communication_type=data.get("communicationType", data.get("communication_type")),
    )
    for o_data in _list(data, "operations", f"interface '{name}'"):
        op_name = _require_name(o_data, "operation")
        op = Operation(op_name, return_value=o_data.get("returns"))
        for p_data in _list(o_data, "parameters", f"operation '{op_name}'"):
            op.parameters.append(Parameter(_require_name(p_data, "parameter"), p_data.get("type")))
        interface.operations.append(op)
    return interface


def _contract(data: Any, system: System) -> Contract:
    if not isinstance(data, dict):
        raise ModelLoadError("Each contract must be a mapping")
    owner_ref = data.get("owner")
    consumer_ref = data.get("consumer")
    if not owner_ref or not consumer_ref:
        raise ModelLoadError("A contract needs both 'owner' and 'consumer'")
    if not isinstance(owner_ref, str) or not isinstance(consumer_ref, str):
        raise ModelLoadError("Contract 'owner' and 'consumer' must be names")

    consumer = system.find_microservice(consumer_ref)
    if consumer is None:
        raise ModelLoadError(f"Contract consumer '{consumer_ref}' is not a microservice of the system")

    return Contract(_resolve_interface(owner_ref, system), consumer)


def _resolve_interface(ref: str, system: System) -> Interface:
    provider_name: Optional[str] = None
    iface_name = ref
    if "/" in ref:
        provider_name, iface_name = ref.split("/", 1)

    matches = [
        i for i in system.provided_interfaces()
        if i.name == iface_name and (provider_name is None or i.provider.name == provider_name)
    ]
    if not matches:
        raise ModelLoadError(f"Contract owner '{ref}' is not an interface of the system")
    if len(matches) > 1:
        raise ModelLoadError(
            f"Contract owner '{ref}' is ambiguous; qualify it as '<microservice>/{iface_name}'"
        )
    return matches[0]
