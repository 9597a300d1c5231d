"""Locating and editing Go workspace (go.work) files."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field

WORK_FILE_NAME = "go.work"


@dataclass
class Workspace:
    """A Go workspace and the module directories it uses."""

    file_path: str = ""
    exists: bool = False
    modules: list[str] = field(default_factory=list)

    def has_module(self, module_path: str) -> bool:
        """Return True if ``module_path`` is listed in the workspace."""
        return module_path in self.modules

    def add_module(self, module_path: str, force: bool) -> None:
        """Add a module with ``go work use``; does nothing if already present."""
        if not self.exists:
            raise RuntimeError("no go.work file found")
        if self.has_module(module_path):
            return
        if not force:
            raise RuntimeError(f"module {module_path} not in workspace (use --force to add)")
        self._go_work("use", module_path, "failed to add module to workspace")
        self.modules = load_workspace(self.file_path).modules

    def remove_module(self, module_path: str, force: bool) -> None:
        """Remove a module with ``go work drop``; does nothing if absent."""
        if not self.exists:
            raise RuntimeError("no go.work file found")
        if not self.has_module(module_path):
            return
        if not force:
            raise RuntimeError(f"module {module_path} exists in workspace (use --force to remove)")
        self._go_work("drop", module_path, "failed to remove module from workspace")
        self.modules = load_workspace(self.file_path).modules

    def _go_work(self, action: str, module_path: str, failure: str) -> None:
        try:
            subprocess.run(
                ["go", "work", action, module_path],
                cwd=os.path.dirname(self.file_path) or None,
                check=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            raise RuntimeError(f"{failure}: {exc}") from exc

    def info(self) -> str:
        """Describe the workspace file and its module count."""
        if not self.exists:
            return "No go.work file found"
        return f"go.work: {self.file_path} ({len(self.modules)} modules)"

    def list_modules(self) -> list[str]:
        """Return a copy of the module list."""
        if not self.exists:
            return []
        return list(self.modules)

    def workspace_root(self) -> str:
        """Return the directory holding the go.work file, or an empty string."""
        if not self.exists:
            return ""
        return os.path.dirname(self.file_path)

    def __str__(self) -> str:
        if not self.exists:
            return "No workspace"
        return f"Workspace: {os.path.basename(os.path.dirname(self.file_path))}"


def find_workspace(start_path: str = "") -> Workspace:
    """Find the active workspace, asking ``go env GOWORK`` first."""
    try:
        proc = subprocess.run(
            ["go", "env", "GOWORK"], capture_output=True, text=True, check=True
        )
    except (OSError, subprocess.CalledProcessError):
        pass
    else:
        work_file = proc.stdout.strip()
        if work_file:
            return load_workspace(work_file)
    return find_workspace_by_traversal(start_path)


def find_workspace_by_traversal(start_path: str = "") -> Workspace:
    """Search ``start_path`` and its parents for a go.work file."""
    current = start_path or os.getcwd()
    while True:
        work_file = os.path.join(current, WORK_FILE_NAME)
        if os.path.exists(work_file):
            return load_workspace(work_file)
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return Workspace(exists=False)


def load_workspace(file_path: str) -> Workspace:
    """Read a go.work file and collect the modules from its use directives."""
    workspace = Workspace(file_path=file_path, exists=True)
    in_use_block = False
    with open(file_path, encoding="utf-8") as handle:
        for raw_line in handle:
            line = raw_line.strip()
            if line.startswith("use"):
                in_use_block = True
                if "(" not in line:
                    parts = line.split()
                    if len(parts) >= 2:
                        workspace.modules.append(parts[1])
                continue
            if in_use_block:
                if ")" in line:
                    in_use_block = False
                    continue
                if line and not line.startswith("//"):
                    workspace.modules.append(line)
    return workspace