import subprocess
import sys
from unittest import mock

import pytest

from gouptool import deps


def _done(returncode=0, stdout=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout)


def test_command_exists_for_interpreter():
    assert deps.command_exists(sys.executable) is True


def test_command_exists_for_missing_command():
    assert deps.command_exists("no-such-command-gouptool-test") is False


def test_install_deps_unsupported_platform():
    with mock.patch("gouptool.deps.GOOS", "plan9"):
        with pytest.raises(RuntimeError, match="unsupported platform: plan9"):
            deps.install_deps()


def test_brew_install_skips_installed_package():
    with mock.patch("subprocess.run", return_value=_done(0)) as run:
        result = deps.brew_install("git")
    assert result is False
    assert run.call_count == 1
    assert run.call_args_list[0].args[0] == ["brew", "list", "git"]


def test_brew_install_installs_missing_package():
    with mock.patch("subprocess.run", side_effect=[_done(1), _done(0)]) as run:
        result = deps.brew_install("go")
    assert result is True
    assert [c.args[0] for c in run.call_args_list] == [
        ["brew", "list", "go"],
        ["brew", "install", "go"],
    ]


def test_brew_install_failure_raises():
    with mock.patch("subprocess.run", side_effect=[_done(1), _done(1)]):
        with pytest.raises(RuntimeError, match="brew install go failed"):
            deps.brew_install("go")


def test_winget_install_skips_listed_package():
    with mock.patch("subprocess.run", return_value=_done(0, "Git Git.Git 2.0")) as run:
        result = deps.winget_install("Git.Git", "Git")
    assert result is False
    assert run.call_count == 1
    assert run.call_args_list[0].args[0][:3] == ["winget", "list", "--id"]


def test_winget_install_installs_when_not_listed():
    with mock.patch("subprocess.run", side_effect=[_done(0, "No package"), _done(0)]) as run:
        result = deps.winget_install("Task.Task", "Task")
    assert result is True
    install_args = run.call_args_list[1].args[0]
    assert install_args[:4] == ["winget", "install", "--id", "Task.Task"]
    assert "--silent" in install_args


def test_winget_install_failure_raises():
    with mock.patch("subprocess.run", side_effect=[_done(1, ""), _done(2)]):
        with pytest.raises(RuntimeError, match="winget install Task.Task failed"):
            deps.winget_install("Task.Task", "Task")


def test_linux_deps_use_apt_get_and_go_install():
    def which(name):
        return None if name in ("git", "task") else f"/usr/bin/{name}"

    with mock.patch("gouptool.deps.GOOS", "linux"), mock.patch(
        "shutil.which", side_effect=which
    ), mock.patch("subprocess.run", return_value=_done(0)) as run:
        installed = deps.install_deps()
    assert installed == ["git", "task"]
    assert [c.args[0] for c in run.call_args_list] == [
        ["sudo", "apt-get", "install", "-y", "git"],
        ["go", "install", deps.TASK_MODULE],
    ]


def test_linux_deps_without_package_manager():
    with mock.patch("gouptool.deps.GOOS", "linux"), mock.patch(
        "shutil.which", return_value=None
    ):
        with pytest.raises(RuntimeError, match="no supported package manager found"):
            deps.install_deps()


def test_windows_deps_without_winget():
    with mock.patch("gouptool.deps.GOOS", "windows"), mock.patch(
        "shutil.which", return_value=None
    ):
        with pytest.raises(RuntimeError, match="winget not found"):
            deps.install_deps()


def test_macos_deps_wraps_brew_failure():
    with mock.patch("gouptool.deps.GOOS", "darwin"), mock.patch(
        "shutil.which", return_value="/opt/brew"
    ), mock.patch("subprocess.run", side_effect=[_done(1), _done(1)]):
        with pytest.raises(RuntimeError, match="failed to install git: brew install git failed"):
            deps.install_deps()


def test_macos_deps_report_only_new_packages():
    with mock.patch("gouptool.deps.GOOS", "darwin"), mock.patch(
        "shutil.which", return_value="/opt/brew"
    ), mock.patch(
        "subprocess.run", side_effect=[_done(0), _done(1), _done(0), _done(0)]
    ):
        installed = deps.install_deps()
    assert installed == ["go"]