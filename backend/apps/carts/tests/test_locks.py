import threading
import time
import unittest

from apps.carts.locks import KeyedLock


class KeyedLockTests(unittest.TestCase):
    def test_same_key_is_mutually_exclusive(self):
        locks = KeyedLock()
        inside = []
        overlaps = []

        def worker():
            with locks.hold("owner:1"):
                if inside:
                    overlaps.append(True)
                inside.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(overlaps, [])

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other_owner():
            with locks.hold("owner:2"):
                entered.set()

        with locks.hold("owner:1"):
            thread = threading.Thread(target=other_owner)
            thread.start()
            self.assertTrue(entered.wait(timeout=1))
            thread.join()

    def test_reentrant_for_same_thread(self):
        locks = KeyedLock()
        with locks.hold("owner:x"):
            with locks.hold("owner:x"):
                self.assertEqual(locks.active_keys(), ["owner:x"])

    def test_entries_released_after_use(self):
        locks = KeyedLock()
        with locks.hold("owner:1"):
            pass
        self.assertEqual(locks.active_keys(), [])

    def test_released_when_block_raises(self):
        locks = KeyedLock()
        with self.assertRaises(RuntimeError):
            with locks.hold("owner:1"):
                raise RuntimeError("boom")
        self.assertEqual(locks.active_keys(), [])
