"""Archive extraction for downloaded component artifacts."""

from __future__ import annotations

import zipfile
from pathlib import Path

from packages.fleet_core.components.recipe import Unarchive

_ZIP_MODES = frozenset({Unarchive.ZIP, Unarchive.JAR})


class Unarchiver:
    """Extract archived artifacts into their unpack directory."""

    def extract(self, mode: Unarchive, archive: Path, destination: Path) -> None:
        """Extract ``archive`` into ``destination``; raise ``OSError`` on failure.

        JAR files are zip archives and share the zip path. Members whose
        resolved path falls outside ``destination`` are rejected.
        """
        if mode == Unarchive.NONE:
            return
        if mode not in _ZIP_MODES:
            raise OSError(f"unsupported unarchive mode {mode.value}")

        root = destination.resolve()
        try:
            with zipfile.ZipFile(archive) as bundle:
                for member in bundle.infolist():
                    target = (root / member.filename).resolve()
                    if target != root and root not in target.parents:
                        raise OSError(
                            f"archive member escapes destination: {member.filename}"
                        )
                bundle.extractall(root)
        except zipfile.BadZipFile as exc:
            raise OSError(f"not a valid {mode.value} archive: {archive}") from exc
