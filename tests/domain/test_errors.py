import unittest

from hahaha.domain._errors import (
    DeviceMismatchError,
    DeviceNotSupportedError,
    DivisionByZeroError,
    GraphConstructionError,
    HahahaError,
    OwnershipError,
    ShapeError,
    TensorIndexError,
)


class TestErrorTaxonomy(unittest.TestCase):
    def test_every_error_derives_from_base(self):
        for cls in (
            ShapeError,
            TensorIndexError,
            DivisionByZeroError,
            OwnershipError,
            GraphConstructionError,
            DeviceNotSupportedError,
            DeviceMismatchError,
        ):
            self.assertTrue(issubclass(cls, HahahaError), cls.__name__)

    def test_builtin_compatibility(self):
        self.assertTrue(issubclass(ShapeError, ValueError))
        self.assertTrue(issubclass(TensorIndexError, IndexError))
        self.assertTrue(issubclass(DivisionByZeroError, ArithmeticError))
        self.assertTrue(issubclass(OwnershipError, RuntimeError))
        self.assertTrue(issubclass(GraphConstructionError, ValueError))

    def test_shape_error_records_op_and_shapes(self):
        err = ShapeError("matmul", "inner dims differ", (2, 3), [4, 5])
        self.assertEqual(err.op, "matmul")
        self.assertEqual(err.shapes, ((2, 3), (4, 5)))
        self.assertIn("matmul", str(err))

    def test_division_by_zero_records_index(self):
        err = DivisionByZeroError(3)
        self.assertEqual(err.index, 3)
        self.assertIn("3", str(err))

    def test_ownership_error_records_role(self):
        err = OwnershipError("node", "already referenced")
        self.assertEqual(err.role, "node")

    def test_device_errors_record_fields(self):
        e1 = DeviceNotSupportedError(op="add", device="cuda:0")
        self.assertEqual((e1.op, e1.device), ("add", "cuda:0"))
        e2 = DeviceMismatchError("cpu", "cuda:1")
        self.assertEqual((e2.device_a, e2.device_b), ("cpu", "cuda:1"))


if __name__ == "__main__":
    unittest.main()
