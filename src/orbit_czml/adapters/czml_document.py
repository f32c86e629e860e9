# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
CZML document assembly and file output.

A CZML file is a JSON array whose first packet is the document header
(id "document"). CzmlDocument collects packets from the exporter and
visualization builders in any order and checks the header rules before
serializing.

External dependencies (json, file I/O) are confined to this adapter.
"""
import json
import logging
from pathlib import Path

from orbit_czml.domain.errors import CzmlDocumentError
from orbit_czml.ports.export import DocumentWriter

logger = logging.getLogger(__name__)

HEADER_ID = "document"


class CzmlDocument:
    """Ordered collection of CZML packets with exactly one header."""

    def __init__(self, packets: list[dict] | None = None) -> None:
        self._packets: list[dict] = []
        if packets:
            self.extend(packets)

    def add(self, packet: dict) -> "CzmlDocument":
        if "id" not in packet:
            raise CzmlDocumentError("every CZML packet needs an 'id'")
        self._packets.append(packet)
        return self

    def extend(self, packets: list[dict]) -> "CzmlDocument":
        for packet in packets:
            self.add(packet)
        return self

    def __len__(self) -> int:
        return len(self._packets)

    def packets(self) -> list[dict]:
        """
        Header first, then the entity packets in insertion order.

        A packet equal to the one right before it is dropped.

        Raises:
            CzmlDocumentError: If there is no header, more than one header,
                or nothing but the header.
        """
        headers = [p for p in self._packets if p["id"] == HEADER_ID]
        if not headers:
            raise CzmlDocumentError("a CZML document needs a header packet (id 'document')")
        if len(headers) > 1:
            raise CzmlDocumentError(f"a CZML document has exactly one header, got {len(headers)}")

        body: list[dict] = []
        for packet in self._packets:
            if packet["id"] == HEADER_ID:
                continue
            if body and body[-1] == packet:
                continue
            body.append(packet)
        if not body:
            raise CzmlDocumentError("the CZML document contains only its header")
        return [headers[0], *body]

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.packets(), indent=indent, ensure_ascii=False)

    def write(self, path: str | Path) -> int:
        """Write the document to path, creating parent directories. Returns the packet count."""
        packets = self.packets()
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump(packets, f, indent=2, ensure_ascii=False)
        logger.info("Wrote %d CZML packets to %s", len(packets), out)
        return len(packets)


class CzmlFileWriter(DocumentWriter):
    """DocumentWriter producing .czml files."""

    def write(self, packets: list[dict], path: str) -> int:
        return CzmlDocument(packets).write(path)


def write_czml(packets: list[dict], path: str | Path) -> int:
    """Validate packets as a CZML document and write them to path."""
    return CzmlDocument(packets).write(path)
