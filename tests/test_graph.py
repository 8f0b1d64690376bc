import asyncio

import pytest

from flowdag.action import Action, TypedAction
from flowdag.conditional_node import Condition, ConditionalNode
from flowdag.default_node import DefaultNode
from flowdag.env import EnvVar
from flowdag.errors import (
    ExecutionFailed,
    GraphLoopDetected,
    GraphNotActive,
    MultipleErrors,
    PanicOccurred,
)
from flowdag.graph import Graph
from flowdag.ids import NodeTable
from flowdag.in_channel import RecvError
from flowdag.loop_subgraph import LoopSubgraph
from flowdag.output import Output, OutputKind


class HelloAction(Action):
    async def run(self, in_channels, out_channels, env):
        return Output.new("Hello world")


class Compute(Action):
    def __init__(self, value):
        self.value = value

    async def run(self, in_channels, out_channels, env):
        base = env.get("base", int)
        inputs = await in_channels.map(lambda result: result.get(int))
        total = self.value + sum(x * base for x in inputs)
        await out_channels.broadcast(total)
        return Output.new(total)


class FailingCondition(Condition):
    async def run(self, in_channels, out_channels, env):
        return False


class PassingCondition(Condition):
    async def run(self, in_channels, out_channels, env):
        await out_channels.broadcast(7)
        return True


class ErrorAction(Action):
    def __init__(self, message):
        self.message = message

    async def run(self, in_channels, out_channels, env):
        return Output.error(self.message)


class RaisingAction(Action):
    async def run(self, in_channels, out_channels, env):
        raise ValueError("broken")


class RecordingReceiver(Action):
    def __init__(self, seen):
        self.seen = seen

    async def run(self, in_channels, out_channels, env):
        for node_id in in_channels.keys():
            content = await in_channels.recv_from(node_id)
            self.seen.append(content.get(int))
        return Output.new("done")


def test_graph_execution():
    graph = Graph()
    table = NodeTable()
    node_x = DefaultNode("Node X", table)
    node_y = DefaultNode.with_action("Node Y", HelloAction(), table)
    graph.add_node(node_x)
    graph.add_node(node_y)
    graph.add_edge(node_x.id, [node_y.id])

    graph.start()

    assert graph.execute_states[node_y.id].get_output().get(str) == "Hello world"
    assert graph.get_results(str)[node_y.id] == "Hello world"


def test_conditional_execution():
    graph = Graph()
    table = NodeTable()
    node_a = ConditionalNode("Node A", FailingCondition(), table)
    node_b = DefaultNode.with_action("Node B", HelloAction(), table)
    graph.add_node(node_a)
    graph.add_node(node_b)
    graph.add_edge(node_a.id, [node_b.id])

    graph.start()

    assert graph.execute_states[node_a.id].get_output() is None
    assert graph.get_outputs()[node_a.id].conditional_result() is False


def _compute_graph():
    table = NodeTable()
    nodes = {
        name: DefaultNode.with_action(f"Compute {name}", Compute(value), table)
        for name, value in zip("ABCDEFG", (1, 2, 4, 8, 16, 32, 64))
    }
    graph = Graph()
    for node in nodes.values():
        graph.add_node(node)
    ids = {name: node.id for name, node in nodes.items()}
    graph.add_edge(ids["A"], [ids["B"], ids["C"], ids["D"]])
    graph.add_edge(ids["B"], [ids["E"], ids["G"]])
    graph.add_edge(ids["C"], [ids["E"], ids["F"]])
    graph.add_edge(ids["D"], [ids["F"]])
    graph.add_edge(ids["E"], [ids["G"]])
    graph.add_edge(ids["F"], [ids["G"]])
    env = EnvVar(table)
    env.set("base", 2)
    graph.set_env(env)
    return graph, ids


def test_compute_dag_result():
    graph, ids = _compute_graph()
    graph.start()
    results = graph.get_results(int)
    assert results[ids["G"]] == 272
    assert results[ids["A"]] == 1
    assert results[ids["E"]] == 36


@pytest.mark.asyncio
async def test_start_async_inside_running_loop():
    graph, ids = _compute_graph()
    await graph.start_async()
    assert graph.get_results(int)[ids["F"]] == 64


def test_loop_detected():
    table = NodeTable()
    a = DefaultNode("a", table)
    b = DefaultNode("b", table)
    graph = Graph()
    graph.add_node(a)
    graph.add_node(b)
    graph.add_edge(a.id, [b.id])
    graph.add_edge(b.id, [a.id])
    with pytest.raises(GraphLoopDetected):
        graph.start()


def test_self_loop_detected():
    table = NodeTable()
    a = DefaultNode("a", table)
    graph = Graph()
    graph.add_node(a)
    graph.add_edge(a.id, [a.id])
    with pytest.raises(GraphLoopDetected):
        graph.start()


def test_second_start_is_not_active():
    table = NodeTable()
    graph = Graph()
    graph.add_node(DefaultNode("a", table))
    graph.start()
    assert graph.is_active is False
    with pytest.raises(GraphNotActive):
        graph.start()


def test_reset_allows_another_run():
    table = NodeTable()
    node = DefaultNode.with_action("hello", HelloAction(), table)
    graph = Graph()
    graph.add_node(node)
    graph.start()
    graph.reset()
    assert graph.is_active is True
    assert graph.blocks == []
    graph.start()
    assert graph.get_results(str)[node.id] == "Hello world"


def test_error_output_raises_execution_failed():
    table = NodeTable()
    node = DefaultNode.with_action("bad", ErrorAction("boom"), table)
    graph = Graph()
    graph.add_node(node)
    with pytest.raises(ExecutionFailed) as info:
        graph.start()
    assert info.value.node_name == "bad"
    assert info.value.node_id == node.id.value
    assert info.value.error == "boom"
    assert graph.get_outputs()[node.id].get_err() == "boom"
    assert graph.execute_states[node.id].success is False


def test_several_failures_raise_multiple_errors():
    table = NodeTable()
    graph = Graph()
    graph.add_node(DefaultNode.with_action("one", ErrorAction("x"), table))
    graph.add_node(DefaultNode.with_action("two", ErrorAction("y"), table))
    with pytest.raises(MultipleErrors) as info:
        graph.start()
    assert len(info.value) == 2
    assert sorted(error.error for error in info.value.errors) == ["x", "y"]


def test_raising_node_reports_panic():
    table = NodeTable()
    node = DefaultNode.with_action("raiser", RaisingAction(), table)
    graph = Graph()
    graph.add_node(node)
    with pytest.raises(PanicOccurred) as info:
        graph.start()
    assert info.value.node_name == "raiser"
    assert info.value.node_id == node.id.value


def test_false_condition_cancels_later_blocks():
    table = NodeTable()
    seen = []
    cond = ConditionalNode("cond", FailingCondition(), table)
    after = DefaultNode.with_action("after", RecordingReceiver(seen), table)
    graph = Graph()
    graph.add_node(cond)
    graph.add_node(after)
    graph.add_edge(cond.id, [after.id])

    graph.start()

    assert seen == []
    assert graph.get_results(str)[after.id] is None
    assert graph.get_outputs()[after.id].kind is OutputKind.OUT


def test_true_condition_lets_later_blocks_run():
    table = NodeTable()
    seen = []
    cond = ConditionalNode("cond", PassingCondition(), table)
    after = DefaultNode.with_action("after", RecordingReceiver(seen), table)
    graph = Graph()
    graph.add_node(cond)
    graph.add_node(after)
    graph.add_edge(cond.id, [after.id])

    graph.start()

    assert seen == [7]
    assert graph.get_results(str)[after.id] == "done"


def test_partition_splits_after_condition():
    table = NodeTable()
    a = DefaultNode("a", table)
    c = ConditionalNode("c", FailingCondition(), table)
    b = DefaultNode("b", table)
    graph = Graph()
    for node in (a, c, b):
        graph.add_node(node)
    assert graph.check_loop_and_partition() is False
    assert graph.blocks == [{a.id, c.id}, {b.id}]


def test_add_edge_ignores_duplicates():
    table = NodeTable()
    a = DefaultNode("a", table)
    b = DefaultNode("b", table)
    graph = Graph()
    graph.add_node(a)
    graph.add_node(b)
    graph.add_edge(a.id, [b.id, b.id])
    graph.add_edge(a.id, [b.id])
    assert a.output_channels.receiver_ids() == [b.id]
    assert b.input_channels.keys() == [a.id]
    assert graph.abstract_graph.in_degree[b.id] == 1


def test_add_edge_from_unknown_node():
    table = NodeTable()
    a = DefaultNode("a", table)
    stray = DefaultNode("stray", table)
    graph = Graph()
    graph.add_node(a)
    with pytest.raises(KeyError):
        graph.add_edge(stray.id, [a.id])


class InAction(Action):
    async def run(self, in_channels, out_channels, env):
        await out_channels.broadcast(None)
        return Output.empty()


class InterAction(Action):
    def __init__(self, limit, received):
        self.in_id = None
        self.proc_id = None
        self.limit = limit
        self.received = received

    async def run(self, in_channels, out_channels, env):
        start = await in_channels.recv_from(self.in_id)
        in_channels.close(self.in_id)
        await out_channels.send_to(self.proc_id, start)
        times = 0
        while True:
            try:
                content = await in_channels.recv_from(self.proc_id)
            except RecvError:
                break
            self.received.append(content.get(int))
            await out_channels.send_to(self.proc_id, content)
            times += 1
            if times >= self.limit:
                out_channels.close(self.proc_id)
                break
        return Output.empty()


class ProcAction(Action):
    def __init__(self):
        self.inter_id = None
        self.sent = 0

    async def run(self, in_channels, out_channels, env):
        while True:
            try:
                await in_channels.recv_from(self.inter_id)
            except RecvError:
                break
            await out_channels.send_to(self.inter_id, self.sent)
            self.sent += 1
        return Output.empty()


def test_loop_subgraph_runs_cycle():
    table = NodeTable()
    received = []
    in_node = DefaultNode.with_action("IN", InAction(), table)
    inter_action = InterAction(3, received)
    proc_action = ProcAction()
    inter = DefaultNode.with_action("Inter", inter_action, table)
    proc = DefaultNode.with_action("Proc", proc_action, table)
    inter_action.in_id = in_node.id
    inter_action.proc_id = proc.id
    proc_action.inter_id = inter.id

    subgraph = LoopSubgraph("inter_proc", table)
    subgraph.add_node(inter)
    subgraph.add_node(proc)

    graph = Graph()
    graph.add_node(in_node)
    graph.add_node(subgraph)
    graph.add_edge(in_node.id, [inter.id])
    graph.add_edge(inter.id, [proc.id])
    graph.add_edge(proc.id, [inter.id])

    graph.start()

    assert received == [0, 1, 2]
    assert proc_action.sent == 3
    assert set(graph.get_outputs()) == {in_node.id, inter.id, proc.id}
    assert graph.blocks == [{in_node.id}, {inter.id, proc.id}]


class SenderAction(TypedAction):
    output_kind = str

    def __init__(self, message, delay=0.0):
        self.message = message
        self.delay = delay

    async def run_typed(self, in_channels, out_channels, env):
        if self.delay:
            await asyncio.sleep(self.delay)
        await out_channels.broadcast(self.message)
        return Output.empty()


class ReceiverAction(TypedAction):
    input_kind = str

    def __init__(self, seen):
        self.seen = seen

    async def run_typed(self, in_channels, out_channels, env):
        for _ in range(2):
            sender, message = await in_channels.recv_any()
            self.seen.append((sender, message))
        return Output.empty()


def test_recv_any_receives_fast_sender_first():
    table = NodeTable()
    seen = []
    fast = DefaultNode.with_action("Sender1", SenderAction("Hello from Sender"), table)
    slow = DefaultNode.with_action(
        "Sender2", SenderAction("Hello from SlowSender", delay=0.05), table
    )
    receiver = DefaultNode.with_action("Receiver", ReceiverAction(seen), table)
    graph = Graph()
    for node in (fast, slow, receiver):
        graph.add_node(node)
    graph.add_edge(fast.id, [receiver.id])
    graph.add_edge(slow.id, [receiver.id])

    graph.start()

    assert seen == [
        (fast.id, "Hello from Sender"),
        (slow.id, "Hello from SlowSender"),
    ]