# ethkit

Tools for working with Ethereum contracts from Python:

- parse Solidity ABI type strings such as `tuple(address owner, uint256[] amounts)`
- encode values to ABI bytes and decode them back
- load contract ABIs from JSON or from human-readable signatures
- build method call data and decode return values
- parse event logs and topics, and unpack revert reasons
- follow the chain head with a block tracker that handles reorgs
- compute ENS name hashes
- look up method and event signatures by their 4-byte selector

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Basic values

`ethkit.primitives` holds the value types used throughout: `Address`
(20 bytes) and `Hash` (32 bytes), both `bytes` subclasses with a
`from_hex` constructor, plus the `Log` and `Block` dataclasses and
`keccak256`. `str()` of an `Address` gives the mixed-case checksummed
form.

## ABI types

```python
from ethkit.abi_type import new_type, type_size

typ = new_type("tuple(address owner, uint256[] amounts)")
print(typ.format(True))   # tuple(address owner,uint256[] amounts)
print(typ.is_dynamic())   # True
print(type_size(new_type("int32[2][2]")))  # 128
```

Types can also be built from the JSON argument form used in compiled
ABIs, through `ArgumentStr` and `new_type_from_argument`, which also
records each argument's `internal_type`. Parsing errors raise
`AbiError`.

## Encoding and decoding

```python
from ethkit.abi_type import new_type
from ethkit.encode import encode, encode_hex
from ethkit.decode import decode

typ = new_type("tuple(string a, int64 b)")
data = encode({"a": "hello World", "b": 266}, typ)
print(encode_hex(data))
print(decode(typ, data))  # {'a': 'hello World', 'b': 266}
```

Tuples accept a mapping keyed by element name (unnamed elements use
their position, `"0"`, `"1"`, ...), a sequence in order, or a dataclass
instance; a dataclass field is matched by its lower-cased name, or by the
name in its `abi` metadata entry (`"-"` skips the field). Numbers may
also be given as floats or as decimal or `0x`-prefixed strings, and
addresses and byte values as hex strings.

Decoding gives `int` for integers, `bool`, `str`, `bytes` for byte
values, `Address` for addresses, lists for arrays and dicts for tuples.
`decode_struct(typ, data, cls)` decodes a tuple into an instance of the
dataclass `cls`, matching keys the same way.

## Contract ABIs

```python
from ethkit.abi import new_abi_from_list

abi = new_abi_from_list([
    "function balanceOf(address owner) view returns (uint256 balance)",
    "event Transfer(address indexed from, address indexed to, uint256 value)",
])

method = abi.get_method("balanceOf")
print(method.sig())   # balanceOf(address)
calldata = method.encode({"owner": "0xdbb881a51CD4023E4400CEF3ef73046743f08da3"})
```

`new_abi` reads the JSON form produced by the Solidity compiler.
Overloaded functions and events get numbered names (`transfer`,
`transfer0`, ...), and `get_method_by_signature` finds methods by their
full signature. `new_method`, `new_event` and `new_error` parse single
declarations; custom errors are `ContractError` objects.

An `Event` checks whether a log belongs to it with `match` and decodes it
with `parse_log`, which combines the indexed topics and the data section.
The lower-level `parse_log`, `parse_topics`, `parse_topic` and
`encode_topic` live in `ethkit.topics`.

## Revert reasons

```python
from ethkit.revert import unpack_revert_error

reason = unpack_revert_error(revert_data)  # e.g. "revert reason"
```

## Block tracking

`BlockTracker` keeps a window of recent blocks (ten by default) from any
provider object that offers `get_block_by_number(number, full)` and
`get_block_by_hash(hash, full)`. Each new head is reconciled against that
window: blocks are appended, missing parents are backfilled, and on a
reorg the replaced blocks are reported. Subscribers get a queue that
receives `BlockEvent` objects listing the added and removed blocks; a
queue holds one event, and events are dropped while it is full.

```python
from ethkit.blocktracker import BlockTracker

tracker = BlockTracker(provider)
tracker.init()
events = tracker.subscribe()
tracker.start()
...
tracker.close()
```

`JSONBlockTracker`, the default source of new heads, polls the provider
for the latest block in a background thread.

## ENS

```python
from ethkit.ens import name_hash

node = name_hash("foo.eth")
```

## Signature lookup

`ethkit.fourbyte.resolve("0xddf252ad")` asks a public signature directory
for the text signature behind a selector and returns it, or an empty
string when nothing is known. `resolve_bytes` takes the selector as
bytes.

## Random types for testing

`ethkit.randomtypes` produces random type strings (`random_type`) and
random values for a type (`generate_random_value`), and
`ContractGenerator` writes the source of a contract whose `set` function
echoes arguments of a given tuple type.

## What is not included

ethkit has no node client: it does not talk JSON-RPC or websockets to a
node, send transactions, or call contracts on chain. The block tracker
needs a provider object supplied by you, and only the polling tracker is
available. There is no command-line tool.