# moti

`moti` manages protobuf dependencies and runs `protoc` to generate code from them.

It reads a `moti.yaml` file in your project, downloads the proto repositories you
depend on into a local cache, records the exact versions and content hashes in
`moti.lock`, installs the protoc plugin binaries you list, and then runs `protoc`
with the include paths and plugin options your configuration describes.

## Installation

```
pip install .
```

`moti` runs `git`, `protoc` and, for plugin binaries, `go install`, so those tools
need to be on your `PATH`. Commands are run through `bash -c` (directly on Windows).

## Configuration

A minimal `moti.yaml`:

```yaml
cache_path: proto_modules

deps:
  - example.com/acme/common-protos
  - example.com/acme/api@v1.2.3

binaries:
  bin_dir: bin
  install:
    - go:
        module: example.com/tools/protoc-gen-foo@v1.0.0
        version_check_args: --version

generate:
  - inputs:
      - directory: api
    plugins:
      - name: foo
        out: internal/api
        opts:
          paths: source_relative
```

- `deps` lists proto repositories as `name` or `name@version`. The version may be
  a git tag or a commit hash (seven or more hex characters); when it is left out
  the latest commit of the remote `HEAD` is used.
- `cache_path` is where downloaded and installed modules are kept (default
  `proto_modules`). Installed modules live under `<cache_path>/mod/<name>/<version>`.
- `binaries.install` lists plugin modules installed with `go install`; when
  `bin_dir` is set they are installed there and that directory is put first on
  `PATH` when `protoc` runs. A binary that already reports the requested version
  is not reinstalled.
- `generate` lists inputs and the protoc plugins to run over them. An input is a
  local `directory`, or an installed repository given by `git_repo` with `url`
  and `sub_directory`. Plugin `opts` become `key=value` pairs in `--<name>_out`.

A repository fetched as a dependency may carry its own `moti.yaml` (its `deps`
are installed too) and a `buf.work.yaml` (its `directories` are stripped from
the paths of the extracted files).

## Usage

Install dependencies and plugin binaries:

```
moti install
```

Generate code:

```
moti generate
```

Both commands accept `--cfg PATH` to use a configuration file other than
`moti.yaml`, and have the short aliases `moti i` and `moti g`. `moti --version`
prints the version. Errors during `generate` are logged; errors during `install`
make the command exit with status 1.

## Using it from Python

```python
from moti.models import new_module
from moti.config import read_config

module = new_module("example.com/acme/api@v1.2.3")
print(module.name, module.version)

config = read_config("moti.yaml")
print(config.deps)
```

`moti.lockfile.LockFile`, `moti.storage.Storage`, `moti.git.GitRepo` and the
`GenerateCore` / `InstallCore` classes in `moti.generate` and `moti.install` can
be used directly with your own console or repository objects.

## Limits

- Dependencies are fetched only from git repositories; the remote is found from
  the page's `go-import` meta tag when there is one.
- The `--path` option of `generate` is accepted but not used; inputs come from
  the configuration file.