"""Code-signature stripping via the platform ``codesign`` utility."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Callable, Optional, Sequence


class SignatureStripper:
    """Removes embedded code signatures from binaries using ``codesign``.

    The stripper is only usable on macOS; :meth:`for_platform` returns ``None``
    elsewhere so callers compare executables as-is.
    """

    def __init__(
        self,
        executable: str = "codesign",
        runner: Callable[[Sequence[str]], None] | None = None,
    ) -> None:
        self.executable = executable
        self._runner = runner or self._default_runner

    @classmethod
    def for_platform(cls) -> Optional["SignatureStripper"]:
        if sys.platform != "darwin":
            return None
        if shutil.which("codesign") is None:  # pragma: no cover - depends on environment
            return None
        return cls()

    def __call__(self, data: bytes) -> bytes:
        return self.strip(data)

    def strip(self, data: bytes) -> bytes:
        fd, name = tempfile.mkstemp(prefix="fairbinary-")
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            self._runner([self.executable, "--remove-signature", str(path)])
            return path.read_bytes()
        finally:
            path.unlink(missing_ok=True)

    @staticmethod
    def _default_runner(args: Sequence[str]) -> None:
        try:
            subprocess.run(list(args), check=True, capture_output=True, text=True)
        except FileNotFoundError as exc:  # pragma: no cover - depends on environment
            raise RuntimeError(f"Unable to locate '{args[0]}' for signature stripping.") from exc
        except subprocess.CalledProcessError as exc:  # pragma: no cover - depends on environment
            raise RuntimeError(
                f"Signature stripping failed with exit code {exc.returncode}: {exc.stderr.strip()}"
            ) from exc


__all__ = ["SignatureStripper"]
