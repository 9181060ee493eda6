"""
File Upload Staging - Turn inline file payloads into files on disk.

Callers cannot hand a local path to a remote browser, so ``setInputFiles``
actions carry the files inline as ``{extension, content}`` descriptors with
base64 content. This middleware writes each payload to ``target_dir`` and
swaps the descriptors for the resulting paths, which is what Playwright's
``set_input_files`` expects.

Staged files are left in place; removing them is up to whoever owns
``target_dir``.
"""

import base64
import binascii
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from bromato.core.errors import PayloadValidationError
from bromato.core.grammar import Action, Chain, ChainInput, Instruction, NodeKind, is_batch

logger = logging.getLogger(__name__)

BASE64_MARKER = ";base64,"


def strip_data_uri(content: str) -> str:
    """Drop a ``data:<mime>;base64,`` header if present."""
    if content.startswith("data:") and BASE64_MARKER in content:
        return content.split(BASE64_MARKER, 1)[1]
    return content


class FileDescriptor(BaseModel):
    """An inline file: base64 ``content`` plus the ``extension`` to save it with."""

    model_config = ConfigDict(strict=True, extra="ignore")

    extension: str = Field(min_length=1, pattern=r"^\.?[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*$")
    content: str

    @field_validator("extension")
    @classmethod
    def _strip_dot(cls, extension: str) -> str:
        return extension.lstrip(".")

    @field_validator("content")
    @classmethod
    def _check_base64(cls, content: str) -> str:
        try:
            base64.b64decode(strip_data_uri(content), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"content is not valid base64 ({e})") from e
        return content

    def decode(self) -> bytes:
        return base64.b64decode(strip_data_uri(self.content), validate=True)


_DESCRIPTORS = TypeAdapter(List[FileDescriptor])

# A chain paired with the descriptors to stage for each of its nodes
_Plan = List[Tuple[Instruction, Optional[List[FileDescriptor]]]]


def is_file_upload(node: Instruction) -> bool:
    return node.kind is NodeKind.ACTION and node.operation is Action.SET_INPUT_FILES


class FileUploadStager:
    """
    Middleware that stages ``setInputFiles`` payloads on disk.

    Every descriptor of the input, across all chains of a batch, is
    validated before the first byte is written, so a bad entry anywhere
    aborts the whole rewrite.

    Example:
        >>> stage = FileUploadStager("/tmp/uploads")
        >>> chain = stage([{"type": "action", "operation": "setInputFiles",
        ...                 "value": {"extension": "txt", "content": "SGk="}}])
        >>> chain[0].value
        ['/tmp/uploads/3f1c...e2.txt']
    """

    # Sees the whole batch so a bad payload in a later chain stops every write
    takes_batch = True

    def __init__(self, target_dir: Union[str, Path]):
        self.target_dir = Path(target_dir).expanduser().resolve()

    def __call__(self, items: ChainInput) -> ChainInput:
        if is_batch(items):
            plans = [self._plan(chain) for chain in items]
            return [self._apply(plan) for plan in plans]
        return self._apply(self._plan(items))

    def _plan(self, chain: Sequence[Any]) -> _Plan:
        nodes = [Instruction.from_dict(node) for node in chain]
        plan: _Plan = []
        issues: List[Dict[str, Any]] = []

        for index, node in enumerate(nodes):
            if not is_file_upload(node):
                plan.append((node, None))
                continue

            entries = node.value if isinstance(node.value, (list, tuple)) else [node.value]
            if node.value is None or len(entries) == 0:
                issues.append({
                    "loc": (index, "value"),
                    "msg": "setInputFiles requires at least one file descriptor",
                    "type": "missing",
                })
                continue

            try:
                plan.append((node, _DESCRIPTORS.validate_python(list(entries))))
            except ValidationError as e:
                for error in e.errors():
                    issues.append({
                        "loc": (index, "value") + tuple(error["loc"]),
                        "msg": error["msg"],
                        "type": error["type"],
                    })

        if issues:
            raise PayloadValidationError("Invalid file upload payload", issues)
        return plan

    def _apply(self, plan: _Plan) -> Chain:
        chain: Chain = []
        for node, descriptors in plan:
            if descriptors is None:
                chain.append(node)
                continue
            paths = [self._write(descriptor) for descriptor in descriptors]
            chain.append(replace(node, value=paths))
        return chain

    def _write(self, descriptor: FileDescriptor) -> str:
        self.target_dir.mkdir(parents=True, exist_ok=True)
        path = self.target_dir / f"{uuid.uuid4().hex}.{descriptor.extension}"
        data = descriptor.decode()
        path.write_bytes(data)
        logger.info(f"[FileUploadStager] Staged {len(data)} bytes to {path}")
        return str(path)
