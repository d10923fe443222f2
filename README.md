# bytegraph

`bytegraph` reads EVM bytecode and builds a control-flow graph from it.

The work happens in these steps:

1. **Disassembly.** `bytegraph.bytecode.Bytecode.from_hex` decodes a hex string, with or
   without a leading `0x`, into a sequence of `Vopcode`s. Each `Vopcode` is an opcode
   together with its program counter and, for `PUSH`, the value it pushes. If the hex is
   malformed, `from_hex` raises `InvalidBytecodeError`, which is a `ValueError`.
   `Bytecode.vopcode_at`, `slice_code`, `iter_range` and `previous_pc` look up opcodes by
   program counter. `stringify_vopcodes` renders them one per line, for example
   `0000 PUSH1 0x80`. `bytegraph.vopcode.parse_vopcode_line` reads lines of the form
   `0000 60 PUSH1 0x80`.
2. **Opcode tables.** `bytegraph.opcode.Opcode.from_byte` decodes a single byte. Each
   `Opcode` reports its code, name, stack inputs and outputs, whether it has an external
   effect (memory, storage, calls and so on), and, for pure arithmetic, an evaluation
   function. `bytegraph.evm_math` implements those functions on 256-bit words with
   wrap-around. `bytegraph.opcode_text.calculation_to_str` describes what an opcode
   computes, for example `storage[...] = ...`.
3. **Symbolic blocks.** `bytegraph.symbolic.SymbolicBlock.from_code` runs a straight-line
   run of vopcodes over a symbolic stack. It records:
   - the resulting expressions (`BytesExpr`, `ArgExpr`, `ComposeExpr`);
   - the effects;
   - how many arguments the block takes from the stack that precedes it.
4. **Graph building.** `bytegraph.cfg.find_blocks` splits the code into basic blocks.
   `bytegraph.graph.Graph.from_bytecode` then runs these blocks from pc 0 on a reduced
   stack (`bytegraph.simple_evm.SimpleContext`), where each value is either a known word
   or unknown. One `Node` is created per block and initial context, and jumps are
   followed to constant destinations. Any block that links to itself is duplicated so that
   no node has a child in its own block.
5. **Loop labelling.** `bytegraph.node_loops.NodeLoops.from_graph` walks the nodes depth
   first and gives every node the integer labels of the loops it belongs to.

`bytegraph.metadata.get_metadata` decodes the CBOR trailer that Solidity appends to
contract code. The input must be hex without a `0x` prefix. It returns `SolcVersion`,
`IpfsHash`, `SwarmHash` and `UnknownMetadata` entries.

## Installation

```
pip install bytegraph
```

## Example

```python
from bytegraph.bytecode import Bytecode, stringify_vopcodes
from bytegraph.graph import Graph
from bytegraph.node_loops import NodeLoops

code = Bytecode.from_hex("0x6080604052348015600f57600080fd5b50")
print(stringify_vopcodes(code.vopcodes))

graph = Graph.from_bytecode(code)
print(sorted(graph.all_pc_starts()))   # [0, 11, 15]
print(sorted(set(graph.edges())))      # [(0, 11), (0, 15)]

loops = NodeLoops.from_graph(graph)
print(loops.free_label)                # 0: no loops in this code
```

## Evaluating instructions

```python
from bytegraph.evm_math import eval_add, eval_sdiv, to_signed

eval_add([2**256 - 1, 1])                 # 0
to_signed(eval_sdiv([2**256 - 10, 2]))    # -5
```

## What it does not do

`bytegraph` is a library only. It has no command-line program. It does not write
graphs to files or draw them. It executes nothing beyond the reduced stack model
described above: memory, storage and calls are not simulated, and any jump whose target
depends on them is not followed.

## Running the tests

```
pip install -e .[test]
pytest
```