"""
Result files for the CLI, written to a temp file and renamed into place.
"""
import os
import json
import uuid
from pathlib import Path
from typing import Any


def atomic_write_json(data: Any, final_path: Path) -> Path:
    """Write data as JSON to final_path; a failed write leaves no file behind."""
    final_path = Path(final_path)
    final_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory: rename is only atomic within a filesystem
    temp_path = final_path.parent / f"{final_path.name}.{uuid.uuid4().hex[:8]}.tmp"

    try:
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        os.replace(temp_path, final_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise

    return final_path
