# fgakit

A library for working with fine-grained, relationship-based authorization
stores: reading authorization models given as JSON, loading relationship
tuples from files, running store test suites through a client you supply,
and importing tuples at a gradually increasing request rate.

## Modules

| Module | Purpose |
| --- | --- |
| `fgakit.errors` | The exception hierarchy: `FgaCliError` and its subclasses such as `ValidationError`, `EmptyTuplesFileError` and `ModelInputMissingError`. |
| `fgakit.modelformat` | `ModelFormat` (`autodetect`, `json`, `fga`, `modular`) and `parse_model_format`. |
| `fgakit.model` | `AuthzModel`, `ModelInput`, `created_at_from_model_id` and the `read_from_file` / `read_from_input_file_or_arg` / `read_from_input_file` helpers. |
| `fgakit.consistency` | `ConsistencyPreference` and `parse_consistency`. |
| `fgakit.tuples` | `TupleKey`, `RelationshipCondition`, `parse_contextual_tuples`, `parse_query_context`, `parse_tuple_condition_string`, `build_tuple_condition`. |
| `fgakit.tuplefile` | `read_tuple_file`, `parse_tuples_from_csv`, `parse_tuples_from_jsonl`. |
| `fgakit.conversion` | `User`, `FgaObject`, `UsersetUser`, `TypedWildcard`, `parse_store_object`, `users_to_strings`. |
| `fgakit.comparison` | `string_lists_equal`: order-independent comparison of string lists. |
| `fgakit.storedata` | `StoreData`, `ModelTest` and its assertion types, `read_store_file`, `effective_users`, `effective_objects`. |
| `fgakit.remotetest` | The `FgaClient` protocol and the `run_remote_*` functions. |
| `fgakit.testresult` | Request and result types, `TestResult` and `TestResults` with their text summaries. |
| `fgakit.tupleimport` | `import_tuples`, `import_tuples_without_ramp_up`, `get_import_chunk` and the `WriteClient` protocol. |
| `fgakit.rampup` | `ramp_up_api_requests`, a rate-limited request scheduler, and `RampUpCancelled`. |
| `fgakit.debugcontext` | `debug_context` / `is_debug`: a context-local debug flag. |
| `fgakit.output` | `JsonPrinter`, `YamlPrinter`, `CsvPrinter`, `UniPrinter`, `new_uni_printer`, `display`. |
| `fgakit.confirmation` | `ask_for_confirmation`: yes/no prompts. |

## Examples

Parse contextual tuples given as `"user relation object"` strings (a fourth
part, if present, is a JSON condition `{"name": ..., "context": {...}}`):

```python
from fgakit.tuples import parse_contextual_tuples

tuples = parse_contextual_tuples([
    "user:anne can_view document:2",
    "group:product#member owner document:roadmap",
])
print(tuples[0].user, tuples[0].relation, tuples[0].object)
```

A string that does not split into three or four parts raises
`fgakit.errors.ValidationError`.

Parse a consistency preference, in upper or lower case; an empty string
gives `ConsistencyPreference.UNSPECIFIED` and an unknown value raises
`ValueError`:

```python
from fgakit.consistency import parse_consistency

preference = parse_consistency("higher_consistency")
```

Load tuples from a file; the extension picks the format:

```python
from fgakit.tuplefile import read_tuple_file

tuples = read_tuple_file("tuples.csv")
```

`.json`, `.yaml` and `.yml` files hold a list of tuple objects, `.jsonl`
files one tuple object per line. CSV files need the headers `user_type`,
`user_id`, `relation`, `object_type` and `object_id`; `user_relation`,
`condition_name` and `condition_context` are optional. An empty JSON, YAML
or JSONL file raises `fgakit.errors.EmptyTuplesFileError`; a missing
required CSV header raises `fgakit.errors.RequiredCsvHeaderMissingError`.

Read an authorization model given as JSON and show its id and creation time,
which is derived from the model's ULID id:

```python
from fgakit.model import AuthzModel

model = AuthzModel()
model.read_from_json_string(
    '{"id":"01GVKXGDCV2SMG6TRE9NMBQ2VG","schema_version":"1.1",'
    '"type_definitions":[{"type":"user"}]}'
)
print(model.resolve_created_at())
print(model.display_as_json(["id", "created_at"]).to_json_string())
```

`read_from_file` reads a model file and infers its format from the name:
a name ending in `fga.mod` is modular (the input is then the file's path),
one ending in `json` is JSON, anything else is the `fga` format. The
returned `ModelInput` also carries a store name, the file's base name
without its extension unless one was given.

Load and validate a store test file, resolving referenced model and tuple
files relative to a base directory:

```python
from fgakit.storedata import read_store_file

model_format, store = read_store_file("store.fga.yaml", ".")
for test in store.tests:
    print(test.name)
```

Unknown fields in the file are rejected. A check must name exactly one of
`user`/`users` and exactly one of `object`/`objects`; otherwise
`StoreData.validate` raises a validation error. Problems with tuple files
are collected and reported together in one `ValueError`.

Run the tests of a store against any object that provides `check`,
`list_objects` and `list_users` (see `fgakit.remotetest.FgaClient`), and
print the summary:

```python
from fgakit.remotetest import run_remote_test
from fgakit.testresult import TestResults

results = TestResults(results=[
    run_remote_test(client, test, store.tuples + test.tuples)
    for test in store.tests
])
print(results.friendly_display())
```

Errors raised by the client are recorded in the results, not raised.

Import tuples through a client with a `write` method (see
`fgakit.tupleimport.WriteClient`), ramping up from 1 to 20 requests per
second over 10 seconds:

```python
from fgakit.tupleimport import import_tuples

response = import_tuples(
    client, writes, deletes,
    min_rps=1, max_rps=20, ramp_up_period_in_sec=10,
    max_tuples_per_write=40, max_parallel_requests=4,
)
print(len(response.successful), "imported,", len(response.failed), "failed")
```

Each request is filled with writes first and then with deletes. In ramp-up
mode a chunk whose `write` call raises is left out of the response. With
`min_rps` or `max_rps` set to zero the tuples are passed to the client in a
single `write` call instead, and an exception from it is raised as
`FgaCliError`; `import_tuples_without_ramp_up` does exactly that. Inside
`with debug_context(True):` the import prints progress messages.

Print any data as JSON, YAML or CSV:

```python
from fgakit.output import new_uni_printer

new_uni_printer("yaml").display({"store": "demo"})
```

JSON output is coloured unless the `NO_COLOR` environment variable is set.
`display` writes indented JSON to a terminal and compact JSON otherwise.

## What the package does not do

- It has no command-line program; everything is a library call.
- It does not talk to an authorization server itself. Running tests and
  importing tuples go through client objects you supply that follow the
  `FgaClient` and `WriteClient` protocols.
- It does not parse models written in the `fga` language or modular
  `fga.mod` models; `AuthzModel` loads models given as JSON only, and the
  reading helpers only pick the format and return the text or path.
- It does not evaluate store tests locally; tests are run only through a
  client.

## Tests

The test suite uses pytest, declared in the `test` extra.