# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Pack a directory of YAML files into a single document.

Each directory becomes a mapping keyed by the names of its entries, with
file extensions dropped. YAML files at the root of the tree are merged into
the root mapping, and ``@name.yml`` files are merged into the mapping of the
directory that holds them, so ``commands/@common.yml`` contributes keys to
``commands`` directly. Dot folders, dot files and non-YAML files are ignored.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from circleci_ng.core.errors import CircleCIError

logger = logging.getLogger(__name__)

_YAML_RE = re.compile(r".+\.(yml|yaml)$")
_SPECIAL_RE = re.compile(r"^@.*\.(yml|yaml)$")


def is_yaml(path: Path) -> bool:
    return bool(_YAML_RE.match(path.name))


def is_dotfile(path: Path) -> bool:
    return path.name.startswith(".") and len(path.name) > 1


def node_name(path: Path) -> str:
    return path.stem if path.is_file() else path.name


def _children(directory: Path) -> List[Path]:
    entries = []
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if is_dotfile(entry):
                continue
        elif entry.is_file():
            if is_dotfile(entry) or not is_yaml(entry):
                continue
        else:
            continue
        entries.append(entry)
    return entries


def _merge(*trees: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for tree in trees:
        if tree:
            result.update(tree)
    return result


def _load_leaf(path: Path) -> Any:
    if path.is_dir() or not is_yaml(path):
        return None
    try:
        return yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise CircleCIError(f"unable to parse {path}: {e}") from e


def _marshal(path: Path, root: Path) -> Any:
    children = _children(path) if path.is_dir() else []
    if not children:
        return _load_leaf(path)

    subtree: Dict[str, Any] = {}
    for child in children:
        content = _marshal(child, root)
        if content is not None and not isinstance(content, dict):
            raise CircleCIError(
                f"expected a map, got a `{type(content).__name__}` which is not supported "
                f'at this time for "{child}"'
            )
        if (child.is_file() and child.parent == root) or _SPECIAL_RE.match(child.name):
            subtree = _merge(subtree, content)
        else:
            subtree[node_name(child)] = _merge(subtree.get(node_name(child)), content)
    return subtree


def build_tree(root_path: str) -> Dict[str, Any]:
    """Build the merged mapping for the tree rooted at ``root_path``."""
    root = Path(root_path).resolve()
    if not root.exists():
        raise CircleCIError(f"{root_path} does not exist")
    logger.debug(f"Packing tree at {root}")
    return _marshal(root, root) or {}


def pack(root_path: str) -> str:
    """Pack the tree at ``root_path`` and return it as YAML."""
    return yaml.safe_dump(build_tree(root_path), sort_keys=True, default_flow_style=False)
