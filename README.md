# slimlog

A small structured logging library. Every event becomes a single line of
JSON, handed to the output writer in one `write_level` call. It has no
dependencies outside the standard library.

## Installing

```
pip install slimlog
```

## Logging events

```python
import sys
from slimlog.logger import new

log = new(sys.stdout)
log.info().str("foo", "bar").int("n", 123).msg("hello world")
# {"level":"info","foo":"bar","n":123,"message":"hello world"}
```

An `Event` collects fields with `str`, `int`, `float`, `bool`, `err`,
`fields` and `timestamp`, and is written by `msg(message)`,
`msgf(fmt, *args)` (formatted with the `%` operator) or `send()` (no
message). An empty message adds no message field. `discard()` turns an event
off, and `enabled()` tells whether an event will be written, so costly
values can be computed only when needed.

`fields` takes either a mapping, whose keys are written in sorted order, or a
flat list `[key, value, key, value, ...]`; pairs whose key is not a string and
a trailing key without a value are skipped. Values may be `None`, booleans,
numbers, strings, bytes, exceptions, `datetime` (RFC 3339 by default),
`timedelta` (milliseconds), `ipaddress` addresses and networks, dataclasses,
mappings, lists and tuples, or any object with a
`marshal_log_object(event)` method, which fills a nested object.

`log.log()` starts an event with no level. `Logger.with_level(level)` starts
an event at any level. `Logger.err(error)` gives an error event carrying
`error`, or an info event when `error` is `None`.

`Logger.print`, `printf` and `println` log at debug level. A `Logger` also
has `write(data)`, so it can serve as the output of code that writes bytes
lines; each call becomes one event without a level, minus a trailing newline.

`new(None)` discards everything, and `nop()` returns a disabled logger.

## Context and child loggers

```python
child = log.with_().str("component", "db").timestamp().logger()
child.warn().msg("slow query")
```

`Context` has the same field methods as `Event`, plus `stack()`, `reset()`
(drop the fields gathered so far) and `logger()`. A context `timestamp()`
adds the current time to every event just before its message.
`Logger.update_context(update)` replaces a logger's context in place with
what `update(context)` returns; it is not thread safe.

`Logger.output(writer)`, `level(level)`, `sample(sampler)` and
`hook(*hooks)` each return a copy of the logger with that one thing changed.

## Levels

`slimlog.levels.Level` is an `int` with the named values `TRACE` (-1),
`DEBUG`, `INFO`, `NOTICE`, `WARN`, `ERROR`, `FATAL`, `PANIC`, `NO_LEVEL`
and `DISABLED`; other values from -128 to 127 are written as numbers.
`parse_level("warn")` turns text (any case, or a number) back into a level
and raises `ValueError` for anything else. `Level.marshal_text()` and
`Level.unmarshal_text(text)` do the same with bytes.

`set_global_level(...)` filters every logger at once, and `global_level()`
returns the current setting:

```python
from slimlog.levels import Level, set_global_level

set_global_level(Level.INFO)
log.debug().msg("dropped")
```

`Logger.fatal()` writes its event, closes the writer if it can be closed and
calls `sys.exit(1)`. `Logger.panic()` writes its event and then raises
`slimlog.logger.LogPanic` with the message.

## Settings

`slimlog.logger.settings` holds process-wide settings: the field names
(`level_field_name`, `message_field_name`, `error_field_name`,
`error_stack_field_name`, `timestamp_field_name`), `time_field_format`
(`TIME_FORMAT_RFC3339`, `TIME_FORMAT_UNIX`, `TIME_FORMAT_UNIX_MS` or a
`strftime` pattern), `timestamp_func`, `level_field_marshal_func`,
`error_marshal_func`, `error_stack_marshaler` and `error_handler`, which
receives exceptions raised by the writer (by default it reports them on
standard error). Setting `level_field_name` to an empty string leaves the
level field out.

## Sampling and hooks

```python
from slimlog.sampler import BasicSampler, BurstSampler

sampled = log.sample(BasicSampler(2))            # every second event
bursty = log.sample(BurstSampler(burst=20, period=1.0))
```

`slimlog.sampler` also has `RandomSampler(n)` (about one in `n`), the
ready-made `OFTEN`, `SOMETIMES` and `RARELY`, and `LevelSampler`, which
applies a separate sampler per level. `disable_sampling(True)` switches
sampling off for every logger.

A hook is a `Hook` subclass whose `run(event, level, message)` is called
before each event is written, or any callable taking the same arguments.

## Writers

`slimlog.writers` holds `LevelWriterAdapter` (give a plain writer, binary or
text, the level-writer interface), `as_level_writer`, `MultiLevelWriter`
(copy to several outputs; every writer is called and the first failure is
raised afterwards), `SyncWriter` (serialise writes with a lock),
`FilteredLevelWriter` (drop lines below a level), `TriggerLevelWriter` (hold
back lines at or below a level until one at the trigger level arrives or
`trigger()` is called) and `TestingLogWriter` (send lines to a callable such
as a test's log function).

`slimlog.syslog` routes each line to the `debug`, `info`, `warning`, `err`,
`emerg` or `crit` method of a syslog-style object through
`syslog_level_writer(...)`; trace lines are dropped and lines without a level
go to `info`. `syslog_cee_writer(...)` adds the `@cee:` prefix.

## The global logger

`slimlog.global_log` keeps one shared logger writing to standard error with a
timestamp, with module-level `trace()`, `debug()`, `info()`, `warn()`,
`error()`, `err()`, `fatal()`, `panic()`, `with_level()`, `log()`,
`print_()`, `printf()`, `output()`, `with_()`, `level()`, `sample()` and
`hook()`. Replace it with `set_logger(...)` and read it with `get_logger()`.

## Stack traces

```python
from slimlog.logger import settings
from slimlog.stacktrace import marshal_stack

settings.error_stack_marshaler = marshal_stack
log.error().stack().err(exc).msg("failed")
```

`marshal_stack` lists the traceback frames of the first raised exception in
the error's chain, innermost first, each with its source file, line and
function.

## What it does not do

slimlog is a library only: it installs no command. It writes JSON only; there
is no coloured console output, no binary encoding and no automatic caller
(file and line) field.