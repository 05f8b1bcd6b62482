import logging
import shutil
import subprocess


class ToolError(RuntimeError):
    """An external binary could not be launched, timed out or exited non-zero."""


class ExternalTool:
    """
    Thin wrapper around a binary found on PATH (masscan, amass, ...).

    Adapters only depend on ``available()`` and ``run()``, so tests can swap
    in any object with the same two methods.
    """

    def __init__(self, binary, install_hint=None):
        self.binary = binary
        self.install_hint = install_hint
        self.logger = logging.getLogger(f"pdive.tools.{binary}")

    def path(self):
        return shutil.which(self.binary)

    def available(self):
        return self.path() is not None

    def run(self, args, timeout):
        path = self.path()
        if not path:
            raise ToolError(f"{self.binary} not found in PATH")

        cmd = [path] + [str(a) for a in args]
        self.logger.debug(f"Executing: {' '.join(cmd)}")
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, errors="replace", timeout=timeout)
        except subprocess.TimeoutExpired:
            raise ToolError(f"{self.binary} timed out after {timeout}s")
        except OSError as e:
            raise ToolError(f"{self.binary} failed to start: {e}")

        if proc.returncode != 0:
            err = (proc.stderr or "").strip().splitlines()
            detail = err[-1] if err else "no stderr"
            raise ToolError(f"{self.binary} exited with status {proc.returncode}: {detail}")
        return proc.stdout or ""

    def __repr__(self):
        return f"ExternalTool({self.binary!r})"
