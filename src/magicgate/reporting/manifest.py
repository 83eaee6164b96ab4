# Copyright 2026 Veritensor Security Apache 2.0
# Manifest Generator: Creates a JSON snapshot of verification results.

import json
import datetime
import platform
from typing import List

from magicgate import __version__
from magicgate.core.types import VerificationResult


def generate_manifest(results: List[VerificationResult], output_path: str = "magicgate-manifest.json") -> str:
    """
    Generates a structured JSON manifest of all verified files.
    Returns the path to the created file.
    """
    manifest = {
        "schema_version": "1.0",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "tool": {
            "name": "magicgate",
            "version": __version__,
            "python": platform.python_version(),
            "system": platform.system()
        },
        "summary": {
            "total_files": len(results),
            "passed": len([r for r in results if r.status == "PASS"]),
            "rejected": len([r for r in results if r.status == "REJECT"]),
            "errors": len([r for r in results if r.status == "ERROR"]),
        },
        "artifacts": []
    }

    for res in results:
        artifact = {
            "path": res.file_path,
            "status": res.status,
            "detected_format": res.detected_format,
            "allowed_formats": list(res.allowed_formats),
            "error": res.error,
        }
        manifest["artifacts"].append(artifact)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)

    return output_path
