# gouptool

A library of helpers for managing a cross-platform Go build toolchain from
Python.

## What it covers

- **SDK installation** (`gouptool.installer`, `gouptool.extract`,
  `gouptool.cache`): `install(sdk, cache, sdk_dir)` downloads an SDK archive
  with up to three attempts and a `tqdm` progress bar, checks its SHA-256
  checksum, unpacks zip or tar.gz archives and records the SDK in a JSON
  `Cache`. `resolve_install_path(path, sdk_dir)` expands environment variables
  and places `sdks/...` paths under `sdk_dir`. `is_sdk_complete` looks for the
  file a finished installation must contain (java, android.jar, aapt, adb,
  ndk-build). `install_android_sdk` runs `sdkmanager` with retries.
- **garble** (`gouptool.garble`): `install_garble(cache, sdk_dir)` installs the
  obfuscator with `go install` into the SDK directory; `garble_path` and
  `is_garble_installed` locate it.
- **Workspaces** (`gouptool.workspace`): `find_workspace` asks
  `go env GOWORK` and falls back to `find_workspace_by_traversal`;
  `load_workspace` parses the `use` directives. A `Workspace` can list, add
  (`go work use`) and remove (`go work drop`) modules.
- **Releases** (`gouptool.release`, `gouptool.version`): `normalize_version`,
  `validate_version` and `bump_version` handle `v1.2.3`-style versions;
  `release(version)` tags and pushes with git; `check_release(tag)` asks the
  hosting API whether a release and its assets exist. `show_version`,
  `show_status` and `latest_version` report the installed version and newer
  tags.
- **Build targets and bootstrap settings** (`gouptool.architecture`,
  `gouptool.bootstrap`): the supported OS/CPU targets, their binary names,
  install locations, and a `BootstrapConfig` that validates bootstrap-script
  settings.
- **Archives and MSIX assets** (`gouptool.bundle`, `gouptool.msix`):
  `create_archive` packs a file or directory tree as tar.gz or zip;
  `normalize_msix_version`, `copy_assets` and `generate_placeholder_assets`
  prepare what an MSIX package needs.
- **Self-management** (`gouptool.selfinstall`, `gouptool.doctor`,
  `gouptool.deps`): install, upgrade and uninstall the tool's own binary,
  diagnose installations found on `PATH`, and install git, Go and Task with
  Homebrew, winget or the Linux package manager.
- **JSON reports** (`gouptool.results`, `gouptool.report`): every
  self-management function prints one JSON document with command name, schema
  version, timestamp, status and exit code. `print_error`, `err` and `run` (on
  failure) raise `SystemExit(1)`; `safe_execute` reports an exception raised
  inside it with its traceback and raises `SystemExit(2)`.

## Examples

Resolve where an SDK lives and whether it is already cached:

```python
from gouptool.cache import SDK, Cache
from gouptool.installer import resolve_install_path

cache = Cache.load("cache.json")
sdk = SDK(name="openjdk-17", version="17.0.11", install_path="sdks/openjdk/17")
print(resolve_install_path(sdk.install_path, "/opt/sdks"))  # /opt/sdks/openjdk/17
print(cache.is_cached(sdk))
```

Inspect a workspace:

```python
from gouptool.workspace import find_workspace_by_traversal

ws = find_workspace_by_traversal(".")
print(ws.info())
for module in ws.list_modules():
    print(module)
```

Work with release versions:

```python
from gouptool.release import bump_version, validate_version

print(bump_version("v1.2.3", "minor"))   # v1.3.0
validate_version("v1.3.0")               # raises ValueError on a bad version
```

Pack a directory for distribution:

```python
from gouptool.bundle import ArchiveFormat, create_archive

create_archive("build/app", "app.tar.gz", ArchiveFormat.TAR_GZ)
```

Normalise an MSIX version string:

```python
from gouptool.msix import normalize_msix_version

print(normalize_msix_version("2.1"))     # 2.1.0.0
```

## What it does not do

- There is no command-line program; everything is called from Python.
- It does not cross-compile release binaries or write bootstrap scripts:
  `BootstrapConfig` only holds and validates the settings.
- It does not build macOS app bundles, write an MSIX manifest or run the MSIX
  packager; `gouptool.msix` only prepares the version string and logo assets.
- It does not choose an SDK directory for you: functions that need one take
  `sdk_dir` as an argument.

## Tests

The test suite uses pytest; install the `test` extra to get it.