# skyctl

`skyctl` is a small library and command line for the client side of queries
to an application performance monitoring backend. It turns loose time ranges
into exact ones, converts between entity ids and names, checks event
parameters and tags, and builds query conditions as dataclasses.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
skyctl --help
skyctl completion bash
skyctl completion powershell
```

The help and usage text name the program `swctl`.

Global options are `--config` (default `~/.skywalking.yml`), `--base-url`,
`--grpc-addr`, `--username`, `--password`, `--authorization`, `--display`,
`--timezone`, `--debug` and `--version`. `--debug` turns on debug logging.

The configuration file is a YAML mapping. It can set `base-url`,
`grpc-addr`, `username`, `password`, `authorization`, `display`, `timezone`
and `debug`; other keys are ignored. `~` and environment variables in the
path are expanded. A missing file is skipped. Options given on the command
line take precedence over the file. A file that is not a mapping, or that
cannot be read or parsed, makes the command exit with status 1.

### Shell completion

`skyctl completion bash` (alias `b`) and `skyctl completion powershell`
(alias `p`) print a completion script. The scripts ask the program for
suggestions by running it with `--auto_complete`, which prints the
subcommands or flags available at that point.

The bash script takes the command name from the name of the file it is
sourced from, so save it to a file named `skyctl` and source that file:

```
skyctl completion bash > ~/.local/share/skyctl/skyctl
source ~/.local/share/skyctl/skyctl
```

The PowerShell script registers completion for a command named `swctl`.

## What the package does not do

The package contains no client for the backend. It does not send GraphQL or
gRPC requests, it does not show results, and it has no `service`, `endpoint`,
`instance`, `trace`, `metrics`, `logs`, `event`, `alarm` or dashboard
commands. `completion` is its only command. The `--base-url`, `--grpc-addr`,
credential and `--display` options are accepted and can be read from the
configuration file, but no command uses them. Service names are converted to
ids only through a lookup function that you supply.

## Library

### Time ranges: `skyctl.durations`

- `Step` (`DAY`, `HOUR`, `MINUTE`, `SECOND`), `DurationType`, the frozen
  dataclass `Duration(start, end, step)`, and `DurationError` (a
  `ValueError`).
- `try_parse_time(unparsed, user_step=None, now=None)` accepts an absolute
  time in one of the layouts `2019-01-01`, `2019-01-01 12`,
  `2019-01-01 1200` or `2019-01-01 120000`. The layout sets the step. It
  also accepts an offset from `now` such as `-15m` or `1h30m`, which keeps
  `user_step` and uses minutes when no step is given.
- `parse_duration(start, end, user_step=None, now=None)` returns
  `(start_time, end_time, step, duration_type)`. With neither end given, the
  range is the last 30 minutes. With only one end given, the other end is 30
  steps away.
- `align_precision(start, end)` truncates the longer string to the length of
  the shorter one.
- `is_set_duration_flags(options)` tells whether `start`, `end` or `step` is
  set in an options mapping.
- `duration_interceptor(options)` writes normalised `start`, `end`, `step`
  and `duration-type` into the mapping and returns the `Duration`. A
  `timezone` such as `+0800` shifts "now" by whole hours.
- `timezone_interceptor(options, timezone_source=None)` sets `timezone` from
  `timezone_source()` when the user gave none. Failures of the source are
  ignored.
- `before_chain(*interceptors, timezone_source=None)` returns a function
  that runs the timezone interceptor first and then each interceptor in
  order.

### Entities: `skyctl.entities`

- `parse_service_id(service_id)` returns `(name, is_normal)`, where the id
  has the form `base64(name).1`.
- `parse_service`, `parse_browser_service`, `parse_service_relation`,
  `parse_endpoint`, `parse_endpoint_relation`, `parse_instance`,
  `parse_instance_list`, `parse_instance_relation`, `parse_page`,
  `parse_version`, `parse_process` and `parse_process_relation` each take an
  options mapping, a `required` flag and an optional lookup function that
  maps a service name to its id. When one of an entity's id and name is
  given, they fill in the other. They raise `EntityError` when a required
  entity is missing, an id is malformed, or a name needs a lookup that was
  not supplied.
- `process_id(instance_id, name)` computes the id of a process.

### Query conditions: `skyctl.conditions`

- `parse_parameters(args)` turns `key=value` arguments into a dict and
  raises `ConditionError` when a key or value is empty.
- `parse_alarm_tags(text)` and `parse_log_tags(text)` parse
  `key=value,key=value` into `Tag` objects.
- `build_alarm_condition`, `build_log_condition`, `build_event_condition`
  and `build_browser_log_condition` return `AlarmCondition`,
  `LogCondition`, `EventCondition` and `BrowserLogCondition`. Each has a
  default `Pagination` of page 1 with 15 items.
- `build_event_report(...)` returns an `EventReport`. It generates a random
  uuid when none is given and upper-cases the layer. `EventType` has the
  members `ALL`, `NORMAL` and `ERROR`.
- `search_instances(instances, regex)` keeps the instances whose name
  matches the pattern. An invalid pattern matches nothing.
- `check_global_layer(major_version, layer)` returns whether a layer query
  is possible and raises `ConditionError` for a layer on versions before 10.

### Assets: `skyctl.assets`

- `read_asset(filename, root)` reads a file under `root` and drops its
  leading block of `#` lines. `strip_header(content)` does the same for text.
- `example_text(content)` indents a sample configuration file for help
  output and leaves out every `#` line.

### Completion: `skyctl.completion`

- `completion_script(shell)` returns the bash or PowerShell script (also by
  the aliases `b` and `p`). It raises `ValueError` for any other shell.

### Command line: `skyctl.cli`

- `main(argv=None)` runs the command line and returns the exit status.
- `build_parser()`, `load_config(path)` and `expand_path(path)` are the
  pieces that `main` uses.