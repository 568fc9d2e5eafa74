"""
ConfigMap payloads carrying a packed slug.

The remote runner receives the slug through a ConfigMap, so the archive
must fit within the record size limit of the cluster's storage (etcd).
"""

import base64
import io
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import DEFAULT_CONFIG_MAP_KEY, DEFAULT_IGNORE_FILE, MAX_CONFIG_SIZE
from .modules import ModuleParser
from .packer import Archive

log = logging.getLogger(__name__)


class ConfigMapPayload(BaseModel):
    """A slug wrapped for storage in a Kubernetes ConfigMap."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    key: str = Field(default=DEFAULT_CONFIG_MAP_KEY, description="binaryData key")
    data: bytes = Field(..., description="Gzipped tarball")
    root_path: str = Field(..., description="Root module path within the archive")
    files: List[str] = Field(default_factory=list)
    size: int = Field(0, description="Uncompressed bytes of file bodies")
    labels: Dict[str, str] = Field(default_factory=dict)

    @property
    def compressed_size(self) -> int:
        return len(self.data)

    def to_manifest(self) -> Dict[str, Any]:
        """Render as a v1 ConfigMap resource."""
        metadata: Dict[str, Any] = {"name": self.name, "namespace": self.namespace}
        if self.labels:
            metadata["labels"] = dict(self.labels)

        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": metadata,
            "binaryData": {self.key: base64.b64encode(self.data).decode("ascii")},
        }


def config_map(
    namespace: str,
    name: str,
    path: str,
    base: Optional[str] = None,
    *,
    max_size: int = MAX_CONFIG_SIZE,
    key: str = DEFAULT_CONFIG_MAP_KEY,
    labels: Optional[Dict[str, str]] = None,
    parser: Optional[ModuleParser] = None,
    ignore_file: str = DEFAULT_IGNORE_FILE,
    dereference: bool = True,
) -> ConfigMapPayload:
    """
    Pack the module at path, with its local module calls, into a ConfigMap payload.

    Args:
        namespace: ConfigMap namespace
        name: ConfigMap name
        path: Root module directory
        base: Directory archive entries are relative to (usually the repo root)
        max_size: Max compressed size in bytes, 0 for unlimited
        key: binaryData key holding the archive
        labels: Optional ConfigMap labels
        parser: Module call parser
        ignore_file: Name of the ignore file to search for
        dereference: Materialize symlinks that point outside a module

    Returns:
        ConfigMapPayload holding the archive

    Raises:
        MaxSizeExceededError: If the archive does not fit in max_size
    """
    arc = Archive(
        path,
        base,
        max_size=max_size,
        dereference=dereference,
        ignore_file=ignore_file,
        parser=parser,
    )
    arc.walk()

    buf = io.BytesIO()
    meta = arc.pack(buf)

    log.debug(f"packed {len(meta.files)} files into configmap {namespace}/{name}")

    return ConfigMapPayload(
        namespace=namespace,
        name=name,
        key=key,
        data=buf.getvalue(),
        root_path=arc.root_path(),
        files=meta.files,
        size=meta.size,
        labels=labels or {},
    )
