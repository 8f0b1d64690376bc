# flowdag

flowdag runs tasks that depend on one another as a directed graph. Every
node runs as an asyncio task, and nodes pass information packets to each
other through input and output channels that the graph wires up from its
edges.

## Installation

```
pip install flowdag
```

To run the test suite:

```
pip install "flowdag[test]"
pytest
```

## Concepts

- **Node** (`flowdag.node.Node`): the unit of scheduling. A node gets its
  `NodeId` from a `NodeTable` (`flowdag.ids`) when it is created, has a
  `name`, an `input_channels` (`InChannels`) and an `output_channels`
  (`OutChannels`), and an async `run(env)` that returns an `Output`.
  - `DefaultNode` (`flowdag.default_node`) runs an `Action`; without one it
    runs `EmptyAction`. Build it with `DefaultNode(name, table, action)` or
    `DefaultNode.with_action(name, action, table)`, and change it with
    `set_action`.
  - `ConditionalNode` (`flowdag.conditional_node`) runs a `Condition` and
    reports its boolean result.
  - `LoopSubgraph` (`flowdag.loop_subgraph`) groups nodes whose edges form a
    deliberate cycle.
- **Action** (`flowdag.action`): the work a node does. Its `run` coroutine
  receives the node's `InChannels`, its `OutChannels` and the shared `EnvVar`,
  and returns an `Output`. `TypedAction` sets `input_kind` and `output_kind`
  and implements `run_typed`, which receives `TypedInChannels` and
  `TypedOutChannels`: received packets whose value is not of `input_kind`
  come out as `None`, and sending a value that is not of `output_kind` raises
  `TypeError`.
- **Content** (`flowdag.content`): the immutable packet sent along channels
  and stored in outputs. `content.get(kind)` returns the value if it is an
  instance of `kind`, else `None`.
- **Output** (`flowdag.output`): what a node reports back to the graph:
  `Output.new(value)`, `Output.empty()`, `Output.error(message)`,
  `Output.error_with_exit_code(code, content)` or `Output.condition(flag)`.
- **EnvVar** (`flowdag.env`): variables shared by every node of a graph,
  set with `set(name, value)` and read with `get(name, kind)`. It holds the
  `NodeTable`, so `get_node_id(name)` finds a node's id by name.
- **Graph** (`flowdag.graph`): holds nodes and edges, checks for cycles and
  runs everything. Failures are raised as subclasses of `GraphError`
  (`flowdag.errors`): `GraphLoopDetected`, `GraphNotActive`,
  `ExecutionFailed` (a node returned an error output), `PanicOccurred` (a node
  raised an exception) and `MultipleErrors` (more than one node failed; its
  `errors` attribute lists them).

## Example

The graph below sums values along its edges; `G` ends up with 272.

```
   B -> E -> G
  /   /     /
 A -> C    /
  \    \  /
   D -> F
(B also feeds G)
```

```python
from flowdag.action import Action
from flowdag.content import Content
from flowdag.default_node import DefaultNode
from flowdag.env import EnvVar
from flowdag.graph import Graph
from flowdag.ids import NodeTable
from flowdag.output import Output


class Compute(Action):
    def __init__(self, value):
        self.value = value

    async def run(self, in_channels, out_channels, env):
        base = env.get("base", int)
        inputs = await in_channels.map(lambda content: content.get(int))
        total = self.value + sum(x * base for x in inputs)
        await out_channels.broadcast(Content(total))
        return Output.new(total)


table = NodeTable()
a, b, c, d, e, f, g = (
    DefaultNode.with_action(f"Compute {name}", Compute(value), table)
    for name, value in zip("ABCDEFG", (1, 2, 4, 8, 16, 32, 64))
)

graph = Graph()
for node in (a, b, c, d, e, f, g):
    graph.add_node(node)

graph.add_edge(a.id, [b.id, c.id, d.id])
graph.add_edge(b.id, [e.id, g.id])
graph.add_edge(c.id, [e.id, f.id])
graph.add_edge(d.id, [f.id])
graph.add_edge(e.id, [g.id])
graph.add_edge(f.id, [g.id])

env = EnvVar(table)
env.set("base", 2)
graph.set_env(env)

graph.start()
assert graph.get_results(int)[g.id] == 272
```

`graph.start()` runs the graph in a new event loop; inside a running loop use
`await graph.start_async()`. `get_results(kind)` gives each node's output
value (or `None`), and `get_outputs()` gives each node's full `Output`.
After a run the graph is inactive and starting it again raises
`GraphNotActive` until `reset()` is called.

## Channels

Each edge gets a bounded channel (32 packets) from the sender to the
receiver; `add_edge` ignores receivers that are already connected.

- `InChannels.recv_from(node_id)` waits for the next packet from one sender;
  `recv_any()` waits for a packet from any sender and returns
  `(node_id, content)`; `map(func)` receives once from every sender
  concurrently and applies `func` to each `Content` or `RecvError`.
- `OutChannels.send_to(node_id, value)` sends to one receiver;
  `broadcast(value)` sends to all and returns the `SendError`s of failed
  sends; `receiver_ids()` lists the receivers; `close(node_id)` closes one
  channel.
- Receiving from a closed, empty channel raises `ChannelClosed`; an unknown
  sender raises `NoSuchChannel`. Sending to a closed receiver raises
  `ReceiverClosed`, to an unknown one `UnknownReceiver`.

## Conditional nodes

```python
from flowdag.conditional_node import Condition, ConditionalNode


class AtLeast(Condition):
    def __init__(self, limit):
        self.limit = limit

    async def run(self, in_channels, out_channels, env):
        values = await in_channels.map(lambda content: content.get(int))
        return sum(values) >= self.limit


gate = ConditionalNode("gate", AtLeast(128), table)
```

The graph is split into blocks: a block ends after each conditional node, and
each loop subgraph forms a block of its own. When a condition returns
`False`, the nodes of the later blocks that are still running are cancelled
and have no output.

## Loops

Nodes added to a `LoopSubgraph` count as one node in cycle detection, so
edges among them may form a cycle:

```python
from flowdag.loop_subgraph import LoopSubgraph

loop = LoopSubgraph("inter_proc", table)
loop.add_node(inter)
loop.add_node(proc)
graph.add_node(loop)
graph.add_edge(inter.id, [proc.id])
graph.add_edge(proc.id, [inter.id])
```

Any other cycle makes `start` raise `GraphLoopDetected`.

## Task files in YAML

`YamlParser` (`flowdag.yaml_parser`) builds a graph from YAML. Each task has
a `name`, an optional `after` list of predecessors, and a `cmd` that is split
on spaces and run as an operating-system command through `CommandAction`
(`flowdag.command_action`):

```yaml
dagrs:
  a:
    name: "Task 1"
    after: [b]
    cmd: echo a
  b:
    name: "Task 2"
    cmd: echo b
```

```python
from flowdag.yaml_parser import YamlParser

graph, env = YamlParser().parse_tasks("tasks.yaml", {})
graph.start()
```

`parse_tasks_from_str(content, actions)` does the same for text. The second
argument maps task keys to `Action` objects that replace the task's `cmd`.
`CommandAction` appends every string received on its inputs to the command's
arguments; it outputs `(stdout_lines, stderr_lines)`, and a non-zero exit
becomes an error output, so `start` raises `ExecutionFailed`. On Windows the
command is run through `powershell -Command`.

Problems with the configuration raise `ParseError` or one of its subclasses:
`FileNotFound`, `IllegalYamlContent`, `StartWordError` (no top-level
`dagrs`), `NoNameAttr`, `NoScriptAttr` and `NotFoundPrecursor`.

## What it does not do

flowdag is a library only: it installs no command-line tool, so YAML task
files are run from Python code as shown above.