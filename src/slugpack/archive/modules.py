"""Discovery of local Terraform module calls."""

import json
import logging
import os
from typing import Any, Callable, Iterator, List, Optional, Set

import hcl2

from ..core.exceptions import ModuleParseError

log = logging.getLogger(__name__)

# Callable returning the module call source addresses declared in a directory
ModuleParser = Callable[[str], List[str]]


def is_local_source(source: str) -> bool:
    """
    Check whether a module source is a filesystem path.

    See: https://www.terraform.io/docs/modules/sources.html#local-paths

    Args:
        source: Module call source address

    Returns:
        True for ./ and ../ sources, False for registry, git, https, etc.
    """
    return source.startswith("./") or source.startswith("../")


def _is_ignored_file(name: str) -> bool:
    # Same files terraform itself skips: hidden, emacs and vim backups
    return (
        name.startswith(".")
        or name.endswith("~")
        or (name.startswith("#") and name.endswith("#"))
    )


def _config_files(directory: str) -> List[str]:
    try:
        names = sorted(os.listdir(directory))
    except OSError as e:
        raise ModuleParseError(directory, f"failed to read module directory: {e}") from e

    return [
        os.path.join(directory, name)
        for name in names
        if (name.endswith(".tf") or name.endswith(".tf.json"))
        and not _is_ignored_file(name)
        and os.path.isfile(os.path.join(directory, name))
    ]


def _unquote(value: Any) -> Optional[str]:
    # Older hcl2 releases wrap attribute values in lists, newer ones keep quotes
    if isinstance(value, list):
        value = value[0] if value else None
    if not isinstance(value, str):
        return None
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]
    return value


def _module_blocks(document: Any) -> Iterator[dict]:
    blocks = document.get("module", []) if isinstance(document, dict) else []
    # .tf.json allows either a single object or a list of objects
    if isinstance(blocks, dict):
        blocks = [blocks]

    for block in blocks:
        if not isinstance(block, dict):
            continue
        for name, body in block.items():
            if name.startswith("__"):
                continue
            # .tf.json may declare several calls with the same name as a list
            bodies = body if isinstance(body, list) else [body]
            for item in bodies:
                if isinstance(item, dict):
                    yield item


def parse_module_calls(directory: str) -> List[str]:
    """
    Return the module call sources declared in a module directory.

    Files are read in lexical order and calls in declaration order, so the
    result is stable for an unchanged tree.

    Args:
        directory: Module directory

    Returns:
        List of source addresses, local and remote alike

    Raises:
        ModuleParseError: If the directory or any configuration file cannot be parsed
    """
    sources = []

    for path in _config_files(directory):
        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.endswith(".tf.json"):
                    document = json.load(f)
                else:
                    document = hcl2.load(f)
        except Exception as e:
            raise ModuleParseError(directory, f"{os.path.basename(path)}: {e}") from e

        for body in _module_blocks(document):
            source = _unquote(body.get("source"))
            if source:
                sources.append(source)

    return sources


class ModuleResolver:
    """
    Resolve the local modules referenced by a root module.

    On each step, parse the module for calls, add the local ones to the list
    of found modules, and then recurse into them. Traversal is depth-first
    in call declaration order.
    """

    def __init__(self, parser: Optional[ModuleParser] = None):
        self.parser = parser or parse_module_calls

    def resolve(self, root: str) -> List[str]:
        """
        Find every module transitively called from root.

        Args:
            root: Root module directory

        Returns:
            Ordered list of absolute module paths, root excluded

        Raises:
            ModuleParseError: If any module's calls cannot be parsed
        """
        root = os.path.normpath(os.path.abspath(root))
        return self._walk(root, {root})

    def _walk(self, path: str, stack: Set[str]) -> List[str]:
        found = []

        try:
            sources = self.parser(path)
        except ModuleParseError:
            raise
        except Exception as e:
            raise ModuleParseError(path, str(e)) from e

        for source in sources:
            # Ignore git://, https://, registry addresses, etc
            if not is_local_source(source):
                continue

            mod = os.path.normpath(os.path.join(path, source))
            found.append(mod)
            log.debug(f"adding local module to archive: {mod}")

            if mod in stack:
                log.warning(f"module call cycle detected, not descending into {mod}")
                continue

            found.extend(self._walk(mod, stack | {mod}))

        return found
