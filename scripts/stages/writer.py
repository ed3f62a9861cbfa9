"""Serialize the registry to stdout and, optionally, to a file."""

import json
import sys
from pathlib import Path
from typing import Optional, Union

from models import ExtensionRecord
from stages.base import progress


def render_registry(records: list[ExtensionRecord]) -> str:
    """Render records as an indented JSON array."""
    return json.dumps([r.to_registry_entry() for r in records], indent=2)


def write_registry(
    records: list[ExtensionRecord], target: Optional[Union[str, Path]] = None
) -> str:
    """Write the registry to stdout and to ``target`` when given.

    Parent directories of ``target`` are created as needed and an existing
    file is overwritten.

    Returns:
        The rendered JSON text.
    """
    text = render_registry(records)
    progress("all done")
    sys.stdout.write(text)
    sys.stdout.flush()

    if target:
        output_path = Path(target)
        progress(f"writing the results to file:\n{output_path}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)

    return text
