import unittest

import numpy as np

from hahaha.domain._errors import OwnershipError, ShapeError
from hahaha.domain._operator import Operator
from hahaha.infrastructure._parameter import Parameter
from hahaha.infrastructure._tensor import Tensor
from hahaha.infrastructure.tensor._tensor_buffer import TensorBuffer


class TestTensorConstruction(unittest.TestCase):
    def test_from_nested_literal(self):
        t = Tensor([[1, 2], [3, 4]])
        self.assertEqual(t.shape, (2, 2))
        self.assertEqual(t.size, 4)
        self.assertEqual(t.dtype, np.float32)
        self.assertEqual(t.at((1, 0)), 3.0)
        self.assertFalse(t.requires_grad)

    def test_from_number(self):
        t = Tensor(2.5, requires_grad=True)
        self.assertEqual(t.shape, ())
        self.assertEqual(t.item(), 2.5)
        self.assertTrue(t.requires_grad)

    def test_from_numpy_and_shape(self):
        t = Tensor(np.arange(6), shape=(2, 3))
        self.assertEqual(t.shape, (2, 3))
        self.assertEqual(t.dtype, np.float32)
        np.testing.assert_array_equal(t.to_numpy(), np.arange(6).reshape(2, 3))

    def test_zero_filled_from_shape(self):
        t = Tensor(shape=(3,))
        np.testing.assert_array_equal(t.to_numpy(), [0, 0, 0])

    def test_buffer_is_copied(self):
        buf = TensorBuffer.from_flat((2,), [1, 2])
        t = Tensor(buf)
        buf.fill(0)
        np.testing.assert_array_equal(t.to_numpy(), [1, 2])

    def test_leaf_shares_handle_with_node(self):
        t = Tensor([1.0, 2.0])
        self.assertIs(t.node.value, t.data)
        self.assertTrue(t.node.handle.held_by_var)
        self.assertTrue(t.node.handle.held_by_node)


class TestTensorArithmetic(unittest.TestCase):
    def test_operators_build_graph(self):
        x = Tensor([1.0, 2.0], requires_grad=True)
        y = Tensor([3.0, 4.0], requires_grad=True)
        z = x * y + x - y / 2
        self.assertIs(z.node.operator, Operator.SUB)
        np.testing.assert_allclose(z.to_numpy(), [2.5, 8.0])

    def test_reflected_scalar_forms(self):
        x = Tensor([1.0, 2.0])
        np.testing.assert_array_equal((1 + x).to_numpy(), [2, 3])
        np.testing.assert_array_equal((5 - x).to_numpy(), [4, 3])
        np.testing.assert_array_equal((3 * x).to_numpy(), [3, 6])
        np.testing.assert_array_equal((2 / x).to_numpy(), [2, 1])
        np.testing.assert_array_equal((-x).to_numpy(), [-1, -2])

    def test_matmul_transpose_reshape(self):
        a = Tensor([[1, 2], [3, 4]])
        b = Tensor([[5, 6], [7, 8]])
        self.assertEqual((a @ b).tolist(), [[19, 22], [43, 50]])
        self.assertEqual(a.matmul(b).tolist(), [[19, 22], [43, 50]])
        self.assertEqual(a.T.tolist(), [[1, 3], [2, 4]])
        self.assertEqual(a.reshape(4).shape, (4,))
        self.assertEqual(a.reshape(1, 4).shape, (1, 4))
        self.assertEqual(a.reshape((4, 1)).shape, (4, 1))
        self.assertEqual(a.flatten().shape, (4,))

    def test_reshape_rejects_fractional_extent(self):
        t = Tensor([1.0, 2.0, 3.0, 4.0])
        with self.assertRaises(ShapeError):
            t.reshape(1.9, 4)
        with self.assertRaises(ShapeError):
            t.reshape((2.5, 2))

    def test_unsupported_operand_defers_to_other_type(self):
        class Handler:
            def __radd__(self, other):
                return "radd"

            def __rmatmul__(self, other):
                return "rmatmul"

        t = Tensor([1.0, 2.0])
        self.assertIs(t.__add__([1.0, 2.0]), NotImplemented)
        self.assertIs(t.__mul__(True), NotImplemented)
        self.assertEqual(t + Handler(), "radd")
        self.assertEqual(t @ Handler(), "rmatmul")
        with self.assertRaises(TypeError):
            t + [1.0, 2.0]
        with self.assertRaises(TypeError):
            t * True

    def test_shape_mismatch_raises(self):
        with self.assertRaises(ShapeError):
            Tensor(np.zeros((2, 6))) + Tensor(np.zeros((3, 4)))


class TestTensorAutograd(unittest.TestCase):
    def test_scalar_expression_gradients(self):
        x = Tensor(3.0, requires_grad=True)
        y = Tensor(4.0, requires_grad=True)
        z = x * y + x
        z.backward()
        self.assertEqual(x.grad.item(), 5.0)
        self.assertEqual(y.grad.item(), 3.0)

    def test_grad_is_detached_copy(self):
        x = Tensor([1.0, 2.0], requires_grad=True)
        (x * x).sum().backward()
        g = x.grad
        self.assertFalse(g.requires_grad)
        g.data.fill(0)
        np.testing.assert_array_equal(x.grad.to_numpy(), [2, 4])

    def test_grad_none_before_backward(self):
        self.assertIsNone(Tensor([1.0], requires_grad=True).grad)

    def test_activation_methods(self):
        x = Tensor([-1.0, 0.5], requires_grad=True)
        loss = (x.relu() + x.sigmoid() + x.tanh() + x.exp()).sum()
        loss.backward()
        v = np.array([-1.0, 0.5])
        s = 1 / (1 + np.exp(-v))
        expected = (v > 0) + s * (1 - s) + (1 - np.tanh(v) ** 2) + np.exp(v)
        np.testing.assert_allclose(x.grad.to_numpy(), expected, rtol=1e-5)

    def test_log_and_mean(self):
        x = Tensor([1.0, 4.0], requires_grad=True)
        x.log().mean().backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [0.5, 0.125])

    def test_backward_with_seed_tensor(self):
        x = Tensor([1.0, 2.0], requires_grad=True)
        y = x * 2
        y.backward(Tensor([1.0, 3.0]))
        np.testing.assert_array_equal(x.grad.to_numpy(), [2, 6])

    def test_clear_grad(self):
        x = Tensor(2.0, requires_grad=True)
        y = x * x
        y.backward()
        y.clear_grad()
        self.assertIsNone(x.grad)

    def test_requires_grad_setter(self):
        x = Tensor(1.0)
        x.requires_grad = True
        self.assertTrue(x.requires_grad)

    def test_in_place_update_visible_to_later_graphs(self):
        w = Tensor([1.0, 1.0], requires_grad=True)
        w.data.axpy(1.0, TensorBuffer.from_flat((2,), [1, 2]))
        np.testing.assert_array_equal((w * 1).to_numpy(), [2, 3])


class TestTensorRelease(unittest.TestCase):
    def test_release_is_idempotent_and_blocks_access(self):
        t = Tensor([1.0])
        t.release()
        t.release()
        with self.assertRaises(OwnershipError):
            _ = t.data
        self.assertEqual(repr(t), "Tensor(released)")

    def test_graph_survives_facade_release(self):
        x = Tensor(3.0, requires_grad=True)
        y = x * x
        node = x.node
        x.release()
        y.backward()
        self.assertEqual(node.grad.item(), 6.0)


class TestParameter(unittest.TestCase):
    def test_defaults_to_requires_grad(self):
        p = Parameter([1.0, 2.0])
        self.assertTrue(p.requires_grad)
        self.assertIsInstance(p, Tensor)

    def test_zero_grad(self):
        p = Parameter([1.0, 2.0])
        (p * p).sum().backward()
        self.assertIsNotNone(p.grad_buffer())
        p.zero_grad()
        self.assertIsNone(p.grad)

    def test_can_be_frozen(self):
        p = Parameter([1.0], requires_grad=False)
        self.assertFalse(p.requires_grad)


if __name__ == "__main__":
    unittest.main()
