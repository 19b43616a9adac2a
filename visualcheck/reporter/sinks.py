"""Report sinks — receive named binary attachments such as diff images."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class ReportSink(Protocol):
    def attach(self, label: str, mime_type: str, data: bytes, extension: str) -> None: ...


@dataclass
class Attachment:
    label: str
    mime_type: str
    extension: str
    path: str | None = None
    data: bytes | None = None


class MemoryReportSink:
    """Keeps attachments in memory."""

    def __init__(self) -> None:
        self.attachments: list[Attachment] = []

    def attach(self, label: str, mime_type: str, data: bytes, extension: str) -> None:
        self.attachments.append(Attachment(label, mime_type, extension, data=bytes(data)))

    def labels(self) -> list[str]:
        return [a.label for a in self.attachments]


class DirectoryReportSink:
    """Writes each attachment to a file and keeps a JSON manifest beside them.

    An existing manifest in ``output_dir`` is picked up, so repeated runs
    append to it and keep numbering files where the last run stopped.
    """

    MANIFEST_FILE = "attachments.json"

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.attachments: list[Attachment] = self._load_manifest()
        self._count = len(self.attachments)

    def _load_manifest(self) -> list[Attachment]:
        path = self.output_dir / self.MANIFEST_FILE
        if not path.exists():
            return []
        try:
            with open(path) as f:
                entries = json.load(f)
            return [
                Attachment(
                    e["label"], e["mime_type"], Path(e["path"]).suffix.lstrip("."), path=e["path"]
                )
                for e in entries
            ]
        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.warning("Failed to load attachment manifest: %s. Starting a new one.", e)
            return []

    def attach(self, label: str, mime_type: str, data: bytes, extension: str) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._count += 1
        slug = re.sub(r"[^A-Za-z0-9\-_]+", "_", label).strip("_") or "attachment"
        path = self.output_dir / f"{self._count:03d}_{slug}.{extension.lstrip('.')}"
        path.write_bytes(data)
        self.attachments.append(Attachment(label, mime_type, extension, path=str(path)))
        self._write_manifest()
        logger.debug("Attached '%s' at %s", label, path)

    def _write_manifest(self) -> None:
        manifest = [
            {"label": a.label, "mime_type": a.mime_type, "path": a.path}
            for a in self.attachments
        ]
        with open(self.output_dir / self.MANIFEST_FILE, "w") as f:
            json.dump(manifest, f, indent=2)
