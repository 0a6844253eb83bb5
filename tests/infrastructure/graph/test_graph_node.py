import unittest

import numpy as np

from hahaha.domain._errors import GraphConstructionError, OwnershipError, ShapeError
from hahaha.domain._operator import Operator
from hahaha.infrastructure.graph import ops
from hahaha.infrastructure.graph._graph_node import GraphNode
from hahaha.infrastructure.tensor._shared_handle import SharedTensorHandle
from hahaha.infrastructure.tensor._tensor_buffer import TensorBuffer


def leaf(flat, shape=None, requires_grad=True) -> GraphNode:
    if shape is None:
        buf = TensorBuffer.scalar(flat)
    else:
        buf = TensorBuffer.from_flat(shape, flat)
    return GraphNode.leaf(buf, requires_grad=requires_grad)


def _identity_grad(g):
    return (g,)


class TestGraphNodeConstruction(unittest.TestCase):
    def test_leaf_defaults(self):
        n = GraphNode.leaf(TensorBuffer((2,)))
        self.assertTrue(n.is_leaf)
        self.assertIs(n.operator, Operator.NONE)
        self.assertEqual(n.parents, ())
        self.assertIsNone(n.grad)
        self.assertIsNone(n.grad_fn)
        self.assertFalse(n.requires_grad)
        self.assertTrue(n.handle.held_by_node)

    def test_derived_with_none_operator_raises(self):
        p = leaf(1.0)
        with self.assertRaises(GraphConstructionError):
            GraphNode(TensorBuffer(), parents=(p,), grad_fn=_identity_grad)

    def test_leaf_with_grad_fn_raises(self):
        with self.assertRaises(GraphConstructionError):
            GraphNode(TensorBuffer(), grad_fn=_identity_grad)

    def test_derived_requires_parents_and_grad_fn(self):
        p = leaf(1.0)
        with self.assertRaises(GraphConstructionError):
            GraphNode(TensorBuffer(), operator=Operator.EXP, grad_fn=_identity_grad)
        with self.assertRaises(GraphConstructionError):
            GraphNode(TensorBuffer(), operator=Operator.EXP, parents=(p,))

    def test_requires_grad_is_or_of_parents(self):
        a = leaf(1.0, requires_grad=False)
        b = leaf(2.0, requires_grad=False)
        c = leaf(3.0, requires_grad=True)
        self.assertFalse(ops.add(a, b).requires_grad)
        self.assertTrue(ops.add(a, c).requires_grad)

    def test_requires_grad_setter_only_on_leaves(self):
        a = leaf(1.0, requires_grad=False)
        a.requires_grad = True
        self.assertTrue(a.requires_grad)
        d = ops.add(a, a)
        with self.assertRaises(GraphConstructionError):
            d.requires_grad = False

    def test_shared_handle_claims_node_role(self):
        h = SharedTensorHandle(TensorBuffer((1,)))
        first = GraphNode.leaf(h)
        self.assertTrue(first.handle.held_by_node)
        with self.assertRaises(OwnershipError):
            GraphNode.leaf(h)

    def test_release_blocks_value_access(self):
        n = leaf([1.0], shape=(1,))
        n.release()
        n.release()
        with self.assertRaises(OwnershipError):
            _ = n.value

    def test_nodes_and_len(self):
        a = leaf(1.0)
        d = ops.add(a, 2.0)
        self.assertEqual(len(d), 3)
        self.assertIs(d.nodes()[-1], d)


class TestGraphNodeGradients(unittest.TestCase):
    def test_accumulate_copies_then_sums(self):
        n = leaf([0.0, 0.0], shape=(2,))
        g1 = TensorBuffer.from_flat((2,), [1, 2])
        n.accumulate_grad(g1)
        g1.fill(100)
        self.assertEqual(n.grad.tolist(), [1, 2])
        n.accumulate_grad(TensorBuffer.from_flat((2,), [3, 4]))
        self.assertEqual(n.grad.tolist(), [4, 6])

    def test_accumulate_rejects_shape_mismatch(self):
        n = leaf([0.0, 0.0], shape=(2,))
        with self.assertRaises(ShapeError):
            n.accumulate_grad(TensorBuffer((1, 2)))

    def test_backward_seeds_ones(self):
        x = leaf([1.0, 2.0], shape=(2,))
        y = ops.mul(x, 3.0)
        y.backward()
        self.assertEqual(y.grad.tolist(), [1, 1])
        self.assertEqual(x.grad.tolist(), [3, 3])

    def test_backward_with_explicit_seed(self):
        x = leaf([1.0, 2.0], shape=(2,))
        y = ops.mul(x, 3.0)
        y.backward(TensorBuffer.from_flat((2,), [1, 10]))
        self.assertEqual(x.grad.tolist(), [3, 30])
        with self.assertRaises(ShapeError):
            y.backward(TensorBuffer((3,)))

    def test_backward_noop_without_requires_grad(self):
        x = leaf(2.0, requires_grad=False)
        y = ops.mul(x, x)
        y.backward()
        self.assertIsNone(y.grad)
        self.assertIsNone(x.grad)

    def test_frozen_parent_gets_no_grad(self):
        x = leaf(2.0, requires_grad=True)
        w = leaf(5.0, requires_grad=False)
        ops.mul(x, w).backward()
        self.assertEqual(x.grad.item(), 5.0)
        self.assertIsNone(w.grad)

    def test_shared_intermediate_receives_all_contributions(self):
        a = leaf(3.0)
        b = ops.add(a, a)  # b = 2a
        d = ops.add(b, b)  # d = 4a
        d.backward()
        self.assertEqual(b.grad.item(), 2.0)
        self.assertEqual(a.grad.item(), 4.0)

    def test_clear_grad_resets_reachable_nodes(self):
        a = leaf(3.0)
        b = ops.mul(a, a)
        b.backward()
        self.assertEqual(a.grad.item(), 6.0)
        b.clear_grad()
        self.assertIsNone(a.grad)
        self.assertIsNone(b.grad)
        b.backward()
        self.assertEqual(a.grad.item(), 6.0)

    def test_gradients_accumulate_across_passes(self):
        a = leaf(3.0)
        b = ops.mul(a, 2.0)
        b.backward()
        b.backward()
        self.assertEqual(a.grad.item(), 4.0)

    def test_repeated_backward_repropagates_intermediate_grads(self):
        a = leaf(3.0)
        b = ops.mul(a, 2.0)
        z = ops.mul(b, 3.0)
        z.backward()
        self.assertEqual(a.grad.item(), 6.0)

        # b now holds 3 + 3 and sends all of it to a again: 6 + 6 * 2
        z.backward()
        self.assertEqual(z.grad.item(), 1.0)
        self.assertEqual(b.grad.item(), 6.0)
        self.assertEqual(a.grad.item(), 18.0)

        z.clear_grad()
        z.backward()
        self.assertEqual(a.grad.item(), 6.0)

    def test_deep_graph_backward(self):
        x = leaf(1.0)
        node = x
        for _ in range(3000):
            node = ops.add(node, 0.0)
        node.backward()
        self.assertEqual(x.grad.item(), 1.0)

    def test_grad_fn_arity_is_checked(self):
        x = leaf(1.0)
        bad = GraphNode.unary(x, TensorBuffer.scalar(1.0), Operator.EXP, lambda g: ())
        with self.assertRaises(RuntimeError):
            bad.backward()


class TestGraphNodeDataSharing(unittest.TestCase):
    def test_value_reflects_in_place_update_through_shared_handle(self):
        h = SharedTensorHandle(TensorBuffer.from_flat((2,), [1, 2]))
        h.ref_by_var()
        n = GraphNode.leaf(h, requires_grad=True)
        h.buffer.axpy(1.0, TensorBuffer.from_flat((2,), [1, 1]))
        np.testing.assert_array_equal(n.value.to_numpy(), [2, 3])


if __name__ == "__main__":
    unittest.main()
