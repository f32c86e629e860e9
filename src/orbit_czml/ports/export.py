# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Port interface for scene document output.
"""
from typing import Protocol, runtime_checkable


@runtime_checkable
class DocumentWriter(Protocol):
    """Port for serializing packet lists to a scene file."""

    def write(self, packets: list[dict], path: str) -> int:
        """
        Serialize packets to path.

        Args:
            packets: Header packet plus entity packets.
            path: Output file path; parent directories are created.

        Returns:
            Number of packets written.
        """
        ...
