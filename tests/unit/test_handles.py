"""
Unit tests for the handle table and the error taxonomy.
"""

import threading
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from rnnbridge.framework.errors import (
    AllocationFailure, ConstructionError, ErrorKind, InvalidHandle,
    ShapeMismatchError, classify
)
from rnnbridge.framework.handles import HandleTable
from rnnbridge.framework.specs import SequenceShape


class TestHandleTable(unittest.TestCase):
    """Test HandleTable."""

    def test_register_and_lookup(self):
        """Registered objects are found by their handle."""
        table = HandleTable()
        obj = object()

        handle = table.register(obj)

        self.assertGreater(handle, 0)
        self.assertIs(table.lookup(handle), obj)
        self.assertIn(handle, table)
        self.assertEqual(len(table), 1)

    def test_release(self):
        """Released handles fail closed."""
        table = HandleTable()
        obj = object()
        handle = table.register(obj)

        self.assertIs(table.release(handle), obj)
        self.assertNotIn(handle, table)
        with self.assertRaises(InvalidHandle):
            table.lookup(handle)
        with self.assertRaises(InvalidHandle):
            table.release(handle)

    def test_null_handle(self):
        """None and 0 are rejected."""
        table = HandleTable()
        for null in (None, 0):
            with self.assertRaises(InvalidHandle):
                table.lookup(null)
            with self.assertRaises(InvalidHandle):
                table.release(null)
            self.assertNotIn(null, table)

    def test_non_integer_handle(self):
        """Booleans and other non-integers never resolve, even where they compare equal."""
        table = HandleTable()
        obj = object()
        handle = table.register(obj)
        self.assertEqual(handle, 1)

        for bad in (True, 1.0, "1"):
            with self.assertRaises(InvalidHandle):
                table.lookup(bad)
            with self.assertRaises(InvalidHandle):
                table.release(bad)
            self.assertNotIn(bad, table)
        self.assertIs(table.lookup(handle), obj)

    def test_handles_are_unique_across_threads(self):
        """Concurrent registration never hands out the same handle twice."""
        table = HandleTable()
        handles = []
        lock = threading.Lock()

        def worker():
            for _ in range(100):
                h = table.register(object())
                with lock:
                    handles.append(h)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(set(handles)), 800)
        self.assertEqual(len(table), 800)


class TestErrors(unittest.TestCase):
    """Test error classification."""

    def test_classify(self):
        self.assertIs(classify(ConstructionError("x")), ErrorKind.CONSTRUCTION)
        self.assertIs(classify(ShapeMismatchError("x")), ErrorKind.SHAPE_MISMATCH)
        self.assertIs(classify(AllocationFailure("x")), ErrorKind.ALLOCATION)
        self.assertIs(classify(MemoryError()), ErrorKind.ALLOCATION)
        self.assertIs(classify(InvalidHandle("x")), ErrorKind.INVALID_HANDLE)
        self.assertIs(classify(KeyError("x")), ErrorKind.INTERNAL)

    def test_builtin_bases(self):
        """Errors can be caught by their builtin counterparts."""
        self.assertTrue(issubclass(ConstructionError, ValueError))
        self.assertTrue(issubclass(ShapeMismatchError, ValueError))
        self.assertTrue(issubclass(AllocationFailure, MemoryError))
        self.assertTrue(issubclass(InvalidHandle, LookupError))


class TestSequenceShape(unittest.TestCase):
    """Test SequenceShape."""

    def test_flat_shape(self):
        shape = SequenceShape.flat(4, 3)
        self.assertEqual(shape.item, (1, 1, 4))
        self.assertEqual(shape.item_size, 4)
        self.assertEqual(shape.plain_size, 12)
        self.assertEqual(shape.to_dict(), {'item': [1, 1, 4], 'depth': 3})

    def test_validation(self):
        with self.assertRaises(ValueError):
            SequenceShape(item=(1, 4), depth=3)
        with self.assertRaises(ValueError):
            SequenceShape.flat(0, 3)
        with self.assertRaises(ValueError):
            SequenceShape.flat(4, 0)


if __name__ == '__main__':
    unittest.main()
