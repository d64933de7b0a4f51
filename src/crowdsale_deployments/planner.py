"""Dependency graph resolution for crowdsale-deployments library."""

import heapq
from typing import Dict, Iterable, List, Optional, Sequence

from .exceptions import CyclicDependencyError, PlanError, UnknownArtifactError
from .types import Artifact, ArtifactAddress, Deploy, Link, LinkEdge, Step


def _declared_names(artifacts: Iterable[Artifact]) -> List[str]:
    names: List[str] = []
    for artifact in artifacts:
        if artifact.name in names:
            raise PlanError(f"Artifact '{artifact.name}' declared more than once")
        names.append(artifact.name)
    return names


def _find_cycle(remaining: List[str], dependents: Dict[str, List[str]]) -> List[str]:
    """Walk back through libraries of unsorted nodes until a node repeats."""
    remaining_set = set(remaining)
    libraries: Dict[str, List[str]] = {name: [] for name in remaining}
    for library in remaining:
        for dependent in dependents[library]:
            if dependent in remaining_set:
                libraries[dependent].append(library)

    # Every unsorted node still has an unsorted library
    path: List[str] = []
    node = remaining[0]
    while node not in path:
        path.append(node)
        node = libraries[node][0]
    cycle = path[path.index(node):] + [node]
    cycle.reverse()
    return cycle


def resolve_order(artifacts: Sequence[Artifact], edges: Iterable[LinkEdge]) -> List[str]:
    """
    Topologically sort artifacts so every library precedes its dependents.

    Ties between independent artifacts are broken by declaration order, so
    the same declarations always produce the same order.

    Args:
        artifacts: Declared artifacts, in declaration order
        edges: Link edges (library -> dependent)

    Returns:
        Artifact names in deployment order

    Raises:
        UnknownArtifactError: If an edge references an undeclared artifact
        CyclicDependencyError: If the edges contain a cycle
    """
    names = _declared_names(artifacts)
    position = {name: index for index, name in enumerate(names)}

    dependents: Dict[str, List[str]] = {name: [] for name in names}
    in_degree: Dict[str, int] = {name: 0 for name in names}

    for edge in edges:
        for name in (edge.library, edge.dependent):
            if name not in position:
                raise UnknownArtifactError(
                    f"Dependency {edge.library} -> {edge.dependent} references "
                    f"undeclared artifact '{name}'"
                )
        # Duplicate edges count once
        if edge.dependent in dependents[edge.library]:
            continue
        dependents[edge.library].append(edge.dependent)
        in_degree[edge.dependent] += 1

    # Kahn's algorithm with a heap keyed on declaration position
    ready = [position[name] for name in names if in_degree[name] == 0]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        name = names[heapq.heappop(ready)]
        order.append(name)
        for dependent in dependents[name]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, position[dependent])

    if len(order) != len(names):
        remaining = [name for name in names if name not in order]
        cycle = _find_cycle(remaining, dependents)
        raise CyclicDependencyError(
            f"Cyclic link dependency: {' -> '.join(cycle)}", cycle=cycle
        )

    return order


def plan_from_steps(artifacts: Sequence[Artifact], steps: Iterable[Step]) -> List[Step]:
    """
    Reorder declared Deploy and Link steps into a valid execution order.

    Each step keeps its arguments, overwrite flag and network predicate. An
    artifact may be linked without being deployed by the plan. Constructor
    arguments given as ArtifactAddress order the referenced artifact first.

    Args:
        artifacts: Declared artifacts, in declaration order
        steps: Deploy and Link steps in any order

    Returns:
        Steps ordered so each Link follows its library's Deploy and precedes
        its dependent's Deploy

    Raises:
        UnknownArtifactError: If a step references an undeclared artifact
        CyclicDependencyError: If links or constructor arguments form a cycle
        PlanError: If an artifact has more than one Deploy step
    """
    names = set(_declared_names(artifacts))
    defaults = {artifact.name: artifact.constructor_args for artifact in artifacts}

    deploys: Dict[str, Deploy] = {}
    links: List[Link] = []
    for step in steps:
        match step:
            case Deploy():
                if step.artifact not in names:
                    raise UnknownArtifactError(
                        f"Deploy step references undeclared artifact '{step.artifact}'"
                    )
                if step.artifact in deploys:
                    raise PlanError(f"Duplicate Deploy step for '{step.artifact}'")
                deploys[step.artifact] = step
            case Link():
                links.append(step)
            case _:
                raise PlanError(f"Unsupported plan step: {step!r}")

    edges = [LinkEdge(link.library, link.dependent) for link in links]
    for deploy in deploys.values():
        args = deploy.args if deploy.args is not None else defaults[deploy.artifact]
        edges.extend(
            LinkEdge(arg.name, deploy.artifact) for arg in args if isinstance(arg, ArtifactAddress)
        )

    order = resolve_order(artifacts, edges)
    rank = {name: index for index, name in enumerate(order)}

    incoming: Dict[str, List[Link]] = {name: [] for name in order}
    for link in links:
        incoming[link.dependent].append(link)

    plan: List[Step] = []
    for name in order:
        plan.extend(sorted(incoming[name], key=lambda link: rank[link.library]))
        if name in deploys:
            plan.append(deploys[name])
    return plan


def resolve_plan(artifacts: Sequence[Artifact], edges: Iterable[LinkEdge]) -> List[Step]:
    """
    Build a plan deploying every artifact and binding every edge.

    Args:
        artifacts: Declared artifacts, in declaration order
        edges: Link edges (library -> dependent)

    Returns:
        Ordered steps, e.g. [Deploy(A), Link(A, B), Deploy(B)] for edge A -> B

    Raises:
        UnknownArtifactError: If an edge references an undeclared artifact
        CyclicDependencyError: If the edges contain a cycle
    """
    steps: List[Step] = [Deploy(artifact.name) for artifact in artifacts]
    steps.extend(Link(edge.library, edge.dependent) for edge in edges)
    return plan_from_steps(artifacts, steps)


def validate_order(steps: Sequence[Step], deployed: Optional[Iterable[str]] = None) -> List[str]:
    """
    Report ordering violations in a plan, e.g. one edited by hand.

    Args:
        steps: Plan to check
        deployed: Names already deployed before the plan runs

    Returns:
        Human-readable violations, empty if the order is valid
    """
    done = set(deployed or [])
    deploy_index = {
        step.artifact: index for index, step in enumerate(steps) if isinstance(step, Deploy)
    }

    violations: List[str] = []
    for index, step in enumerate(steps):
        if isinstance(step, Deploy):
            for arg in step.args or ():
                if isinstance(arg, ArtifactAddress) and arg.name not in done:
                    violations.append(f"{step} runs before {arg.name} is deployed")
            done.add(step.artifact)
            continue
        if step.library not in done:
            violations.append(f"{step} runs before {step.library} is deployed")
        dependent_index = deploy_index.get(step.dependent)
        if dependent_index is not None and dependent_index < index:
            violations.append(f"{step} runs after {step.dependent} is deployed")
    return violations
