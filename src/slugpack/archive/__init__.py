from .ignore import DEFAULT_IGNORE_LINES, IgnoreRule, RuleMatcher, find_ignore_file
from .modules import ModuleResolver, is_local_source, parse_module_calls
from .packer import Archive, ArchiveMeta
from .paths import dedupe
from .payload import ConfigMapPayload, config_map
from .sink import MaxSizeWriter
from .unpacker import extract

__all__ = [
    "Archive",
    "ArchiveMeta",
    "ConfigMapPayload",
    "DEFAULT_IGNORE_LINES",
    "IgnoreRule",
    "MaxSizeWriter",
    "ModuleResolver",
    "RuleMatcher",
    "config_map",
    "dedupe",
    "extract",
    "find_ignore_file",
    "is_local_source",
    "parse_module_calls",
]
