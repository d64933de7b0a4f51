"""Compiled artifact loading for crowdsale-deployments library."""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .exceptions import ArtifactNotFoundError, DefectiveArtifactError, UnknownArtifactError
from .linking import find_link_references, link_placeholder
from .types import Artifact, LinkEdge


def parse_artifact(file_path: Path) -> Artifact:
    """
    Parse a Truffle build artifact JSON file.

    Args:
        file_path: Path to build/contracts/{Name}.json

    Returns:
        Declared (undeployed) Artifact

    Raises:
        ArtifactNotFoundError: If the file does not exist
        DefectiveArtifactError: If bytecode or ABI is missing
    """
    file_path = Path(file_path)
    try:
        with open(file_path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ArtifactNotFoundError(f"Artifact file not found: {file_path}") from e
    except json.JSONDecodeError as e:
        raise DefectiveArtifactError(f"Artifact file is not valid JSON: {file_path}") from e

    name = data.get("contractName", file_path.stem)

    # Truffle 3 and earlier stored creation code as unlinked_binary
    bytecode = data.get("bytecode") or data.get("unlinked_binary")
    if not bytecode or bytecode == "0x":
        raise DefectiveArtifactError(f"Missing bytecode in artifact file: {file_path}")

    if "abi" not in data:
        raise DefectiveArtifactError(f"Missing ABI in artifact file: {file_path}")

    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    return Artifact(name=name, bytecode=bytecode, abi=data["abi"])


def load_artifacts(
    build_dir: Path, names: Optional[Iterable[str]] = None
) -> Dict[str, Artifact]:
    """
    Load compiled artifacts from a build directory.

    Args:
        build_dir: Directory of *.json artifacts
        names: Artifact names to load, in declaration order (defaults to all,
               sorted by file name)

    Returns:
        Dictionary mapping artifact name -> Artifact, in declaration order

    Raises:
        ArtifactNotFoundError: If the build directory does not exist
        UnknownArtifactError: If a requested name has no artifact file
    """
    build_dir = Path(build_dir)
    if not build_dir.is_dir():
        raise ArtifactNotFoundError(f"Build directory not found: {build_dir}")

    available: Dict[str, Artifact] = {}
    for artifact_file in sorted(build_dir.glob("*.json")):
        try:
            artifact = parse_artifact(artifact_file)
        except DefectiveArtifactError:
            # Interfaces and abstract contracts compile without bytecode
            continue
        available[artifact.name] = artifact

    if names is None:
        return available

    result: Dict[str, Artifact] = {}
    for name in names:
        if name not in available:
            raise UnknownArtifactError(f"No compiled artifact for '{name}' in {build_dir}")
        result[name] = available[name]
    return result


def infer_link_edges(artifacts: Iterable[Artifact]) -> List[LinkEdge]:
    """
    Derive link edges from the placeholders in each artifact's bytecode.

    Placeholder names are truncated by the compiler, so references are
    compared against each declared name truncated the same way.

    Args:
        artifacts: Declared artifacts

    Returns:
        Link edges (library -> dependent), in declaration order

    Raises:
        UnknownArtifactError: If a placeholder matches no declared artifact
    """
    artifacts = list(artifacts)
    names = [artifact.name for artifact in artifacts]

    edges: List[LinkEdge] = []
    for artifact in artifacts:
        for reference in find_link_references(artifact.bytecode):
            library = next(
                (name for name in names if link_placeholder(name)[2:].rstrip("_") == reference),
                None,
            )
            if library is None:
                raise UnknownArtifactError(
                    f"{artifact.name} references undeclared library '{reference}'"
                )
            edges.append(LinkEdge(library=library, dependent=artifact.name))
    return edges
