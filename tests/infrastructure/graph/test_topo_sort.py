import unittest

from hahaha.infrastructure.graph import ops
from hahaha.infrastructure.graph._graph_node import GraphNode
from hahaha.infrastructure.graph._topo_sort import to_topo_list
from hahaha.infrastructure.tensor._tensor_buffer import TensorBuffer


def leaf(value: float, requires_grad: bool = True) -> GraphNode:
    return GraphNode.leaf(TensorBuffer.scalar(value), requires_grad=requires_grad)


def assert_parents_first(tc: unittest.TestCase, order):
    index = {id(n): i for i, n in enumerate(order)}
    tc.assertEqual(len(index), len(order), "node listed twice")
    for n in order:
        for p in n.parents:
            tc.assertLess(index[id(p)], index[id(n)])


class TestToTopoList(unittest.TestCase):
    def test_single_leaf(self):
        a = leaf(1.0)
        self.assertEqual(to_topo_list(a), [a])

    def test_chain_order(self):
        a = leaf(1.0)
        b = ops.add(a, a)
        c = ops.mul(b, b)
        order = to_topo_list(c)
        self.assertEqual(order, [a, b, c])

    def test_diamond_lists_shared_node_once(self):
        a = leaf(2.0)
        b = ops.mul(a, a)
        c = ops.mul(a, a)
        d = ops.add(b, c)
        order = to_topo_list(d)
        self.assertEqual(len(order), 4)
        self.assertIs(order[0], a)
        self.assertIs(order[-1], d)
        assert_parents_first(self, order)

    def test_wide_graph_respects_dependencies(self):
        xs = [leaf(float(i)) for i in range(5)]
        acc = xs[0]
        for x in xs[1:]:
            acc = ops.add(ops.mul(acc, x), x)
        order = to_topo_list(acc)
        assert_parents_first(self, order)
        for x in xs:
            self.assertIn(x, order)

    def test_no_state_leaks_between_calls(self):
        a = leaf(1.0)
        b = ops.add(a, a)
        first = to_topo_list(b)

        # an unrelated root sharing no nodes must still be fully listed
        c = leaf(3.0)
        d = ops.mul(c, c)
        second = to_topo_list(d)
        self.assertEqual(second, [c, d])

        # and repeating the first call gives the same result
        self.assertEqual(to_topo_list(b), first)

    def test_deep_chain_does_not_recurse(self):
        node = leaf(0.0)
        for _ in range(5000):
            node = ops.add(node, 1.0)
        order = to_topo_list(node)
        # every add contributes itself and one scalar constant leaf
        self.assertEqual(len(order), 1 + 2 * 5000)
        self.assertIs(order[-1], node)


if __name__ == "__main__":
    unittest.main()
