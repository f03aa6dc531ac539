# test.py
# Unit test

import contextlib
import errno
import hashlib
import io
import math
import os
import tempfile
import unittest
import warnings

from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace
from unittest import mock

import cli
import preprocessing

from constants import K, MD5_INITIAL_HASH_VALUES, S
from functions import rotl, word_index
from md5 import HASH, compress, digest, finalize, md5
from preprocessing import iter_blocks, pad, unpack_block
from utils import (
    DigestInputError,
    MessageTooLargeError,
    TextEncodingError,
    UnreadableFileError,
    UnreadableStreamError,
    hash_file,
    hash_stream,
    hash_text,
)

class _FailingReader(io.BytesIO):
    """Binary stream whose reads fail once *fail_after* bytes were handed out."""

    def __init__(self, data, fail_after):
        super().__init__(data)
        self.fail_after = fail_after
        self.consumed = 0

    def read(self, size=-1):
        if self.consumed >= self.fail_after:
            raise OSError(errno.EIO, "Input/output error")
        chunk = super().read(size)
        self.consumed += len(chunk)
        return chunk


# RFC 1321, Appendix A.5
RFC_VECTORS = [
    (b"", "d41d8cd98f00b204e9800998ecf8427e"),
    (b"a", "0cc175b9c0f1b6a831c399e269772661"),
    (b"abc", "900150983cd24fb0d6963f7d28e17f72"),
    (b"message digest", "f96b697d7cb7938d525a2f31aaf161d0"),
    (b"abcdefghijklmnopqrstuvwxyz", "c3fcd3d76192e4007dfb496cca67e13b"),
    (
        b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789",
        "d174ab98d277d9f5a5611c2c9f419d9f",
    ),
    (b"1234567890" * 8, "57edf4a22be3c955ac49da2e2107b67a"),
]


class TablesTest(unittest.TestCase):
    def test_round_constants_are_sine_derived(self):
        self.assertEqual(len(K), 64)
        for i, k in enumerate(K):
            self.assertEqual(k, int(abs(math.sin(i + 1)) * 2**32) & 0xFFFFFFFF)

    def test_shift_table_groups(self):
        self.assertEqual(len(S), 64)
        self.assertEqual(S[:4], (7, 12, 17, 22))
        self.assertEqual(S[16:20], (5, 9, 14, 20))
        self.assertEqual(S[32:36], (4, 11, 16, 23))
        self.assertEqual(S[48:52], (6, 10, 15, 21))

    def test_word_index_schedule(self):
        self.assertEqual([word_index(t) for t in range(16)], list(range(16)))
        self.assertEqual(word_index(16), 1)
        self.assertEqual(word_index(32), 5)
        self.assertEqual(word_index(48), 0)
        self.assertEqual(word_index(63), 9)
        for phase in range(4):
            indices = {word_index(t) for t in range(phase * 16, phase * 16 + 16)}
            self.assertEqual(indices, set(range(16)))

    def test_rotl_wraps_at_32_bits(self):
        self.assertEqual(rotl(0x80000000, 1), 1)
        self.assertEqual(rotl(0x12345678, 8), 0x34567812)
        self.assertEqual(rotl(0x1FFFFFFFF, 4), 0xFFFFFFFF)


class PaddingTest(unittest.TestCase):
    def test_empty_message(self):
        padded = pad(b"")
        self.assertEqual(padded, b"\x80" + b"\x00" * 55 + b"\x00" * 8)

    def test_boundary_block_counts(self):
        for length, blocks in ((0, 1), (55, 1), (56, 2), (63, 2), (64, 2), (119, 2), (120, 3)):
            padded = pad(b"x" * length)
            self.assertEqual(len(padded) % 64, 0)
            self.assertEqual(len(padded) // 64, blocks, f"length {length}")
            self.assertEqual(padded[length], 0x80)

    def test_length_suffix_is_little_endian_bits(self):
        padded = pad(b"x" * 300)
        self.assertEqual(padded[-8:], (300 * 8).to_bytes(8, "little"))

    def test_bit_length_wraps_modulo_2_64(self):
        self.assertEqual(preprocessing._length_field(2**61), b"\x00" * 8)
        self.assertEqual(preprocessing._length_field(2**61 + 1), (8).to_bytes(8, "little"))

    def test_iter_blocks_matches_pad(self):
        message = bytes(range(256)) * 3
        expected = pad(message)
        for size in (1, 7, 63, 64, 65, 500, len(message)):
            chunks = [message[i : i + size] for i in range(0, len(message), size)]
            self.assertEqual(b"".join(iter_blocks(chunks)), expected, f"chunk size {size}")
            self.assertTrue(all(len(block) == 64 for block in iter_blocks(chunks)))

    def test_iter_blocks_empty_input(self):
        self.assertEqual(list(iter_blocks([])), [pad(b"")])

    def test_unpack_block_little_endian(self):
        words = unpack_block(bytes(range(64)))
        self.assertEqual(len(words), 16)
        self.assertEqual(words[0], 0x03020100)
        self.assertEqual(words[15], 0x3F3E3D3C)

    def test_unpack_block_rejects_bad_length(self):
        with self.assertRaises(ValueError):
            unpack_block(b"\x00" * 63)


class DigestTest(unittest.TestCase):
    def test_rfc_vectors(self):
        for msg, expected in RFC_VECTORS:
            self.assertEqual(digest(msg), expected, f"Failed for message: {msg}")

    def test_one_million_a(self):
        self.assertEqual(digest(b"a" * 1_000_000), "7707d6ae4e027c70eea2a935c2296f21")

    def test_matches_hashlib(self):
        for length in (1, 54, 55, 56, 57, 63, 64, 65, 127, 128, 129, 1000):
            msg = bytes((i * 31) & 0xFF for i in range(length))
            self.assertEqual(digest(msg), hashlib.md5(msg).hexdigest(), f"length {length}")

    def test_multi_block(self):
        msg = b"The quick brown fox jumps over the lazy dog" * 3
        self.assertGreater(len(msg), 64)
        self.assertEqual(digest(msg), hashlib.md5(msg).hexdigest())

    def test_output_format(self):
        result = digest(b"anything")
        self.assertEqual(len(result), 32)
        self.assertEqual(result, result.lower())
        int(result, 16)

    def test_deterministic(self):
        results = {digest(b"repeat me") for _ in range(10)}
        self.assertEqual(len(results), 1)
        self.assertEqual(digest(b"abc"), "900150983cd24fb0d6963f7d28e17f72")

    def test_accepts_buffer_types(self):
        expected = "900150983cd24fb0d6963f7d28e17f72"
        self.assertEqual(digest(bytearray(b"abc")), expected)
        self.assertEqual(digest(memoryview(b"abc")), expected)

    def test_rejects_str(self):
        with self.assertRaises(TypeError):
            digest("abc")

    def test_compress_and_finalize(self):
        state = compress(MD5_INITIAL_HASH_VALUES, pad(b"abc"))
        self.assertEqual(finalize(state).hex(), "900150983cd24fb0d6963f7d28e17f72")
        self.assertTrue(all(0 <= word <= 0xFFFFFFFF for word in state))

    def test_concurrent_digests_are_isolated(self):
        messages = [bytes([i]) * (i * 37) for i in range(1, 40)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(digest, messages * 3))
        expected = [hashlib.md5(m).hexdigest() for m in messages] * 3
        self.assertEqual(results, expected)


class HashObjectTest(unittest.TestCase):
    def test_md5_object(self):
        for msg, expected in RFC_VECTORS:
            h = md5(msg, usedforsecurity=False)
            self.assertIsInstance(h, HASH)
            self.assertEqual(h.hexdigest(), expected)
            self.assertEqual(h.digest(), bytes.fromhex(expected))

    def test_attributes(self):
        h = md5(usedforsecurity=False)
        self.assertEqual(h.name, "md5")
        self.assertEqual(h.digest_size, 16)
        self.assertEqual(h.block_size, 64)
        self.assertEqual(md5.digest_size, 16)
        self.assertEqual(h.hexdigest(), "d41d8cd98f00b204e9800998ecf8427e")

    def test_copy(self):
        h = md5(b"abc", usedforsecurity=False)
        clone = h.copy()
        self.assertIsNot(clone, h)
        self.assertEqual(clone.hexdigest(), h.hexdigest())
        self.assertEqual(clone.name, "md5")

    def test_input_is_snapshotted(self):
        data = bytearray(b"abc")
        h = md5(data, usedforsecurity=False)
        data.extend(b"def")
        self.assertEqual(h.hexdigest(), "900150983cd24fb0d6963f7d28e17f72")

    def test_usedforsecurity_warns(self):
        with self.assertWarns(UserWarning):
            md5(b"abc")

    def test_usedforsecurity_false_is_silent(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            md5(b"abc", usedforsecurity=False)
        self.assertEqual(caught, [])

    def test_rejects_str(self):
        with self.assertRaises(TypeError):
            md5("abc", usedforsecurity=False)


class EntryPointTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name, data):
        path = os.path.join(self.tmpdir, name)
        with open(path, "wb") as fp:
            fp.write(data)
        return path

    def test_hash_text(self):
        self.assertEqual(hash_text("abc"), "900150983cd24fb0d6963f7d28e17f72")
        self.assertEqual(hash_text(""), "d41d8cd98f00b204e9800998ecf8427e")
        text = "héllo wörld ✓"
        self.assertEqual(hash_text(text), hashlib.md5(text.encode("utf-8")).hexdigest())

    def test_hash_text_other_encoding(self):
        text = "héllo"
        self.assertEqual(
            hash_text(text, encoding="utf-16"),
            hashlib.md5(text.encode("utf-16")).hexdigest(),
        )

    def test_hash_text_lone_surrogate(self):
        with self.assertRaises(TextEncodingError) as ctx:
            hash_text("bad \ud800 text")
        self.assertIsInstance(ctx.exception, DigestInputError)
        self.assertIsInstance(ctx.exception.__cause__, UnicodeEncodeError)

    def test_hash_text_rejects_bytes(self):
        with self.assertRaises(TypeError):
            hash_text(b"abc")

    def test_hash_file(self):
        data = os.urandom(5000)
        path = self._write("data.bin", data)
        self.assertEqual(hash_file(path), hashlib.md5(data).hexdigest())
        self.assertEqual(hash_file(path, chunk_size=7), hashlib.md5(data).hexdigest())

    def test_hash_empty_file(self):
        path = self._write("empty.bin", b"")
        self.assertEqual(hash_file(path), "d41d8cd98f00b204e9800998ecf8427e")

    def test_hash_file_missing(self):
        path = os.path.join(self.tmpdir, "missing.bin")
        with self.assertRaises(UnreadableFileError) as ctx:
            hash_file(path)
        self.assertEqual(ctx.exception.path, path)
        self.assertIsInstance(ctx.exception.__cause__, FileNotFoundError)

    def test_hash_file_directory(self):
        with self.assertRaises(UnreadableFileError):
            hash_file(self.tmpdir)

    def test_hash_file_bad_chunk_size(self):
        path = self._write("data.bin", b"abc")
        with self.assertRaises(ValueError):
            hash_file(path, chunk_size=0)

    def test_hash_file_read_error_mid_stream(self):
        reader = _FailingReader(os.urandom(500), fail_after=64)
        with mock.patch("utils.open", create=True, return_value=reader):
            with self.assertRaises(UnreadableFileError) as ctx:
                hash_file("data.bin", chunk_size=32)
        self.assertEqual(reader.consumed, 64)
        self.assertEqual(ctx.exception.path, "data.bin")
        self.assertIsInstance(ctx.exception.__cause__, OSError)

    def test_hash_stream(self):
        data = os.urandom(1000)
        self.assertEqual(hash_stream(io.BytesIO(data)), hashlib.md5(data).hexdigest())
        self.assertEqual(
            hash_stream(io.BytesIO(data), chunk_size=7), hashlib.md5(data).hexdigest()
        )
        self.assertEqual(hash_stream(io.BytesIO()), "d41d8cd98f00b204e9800998ecf8427e")

    def test_hash_stream_read_error(self):
        reader = _FailingReader(b"x" * 500, fail_after=128)
        with self.assertRaises(UnreadableStreamError) as ctx:
            hash_stream(reader, chunk_size=64)
        self.assertIsInstance(ctx.exception, DigestInputError)
        self.assertEqual(ctx.exception.__cause__.errno, errno.EIO)

    def test_hash_stream_bad_chunk_size(self):
        with self.assertRaises(ValueError):
            hash_stream(io.BytesIO(b"abc"), chunk_size=-1)

    def test_hash_text_out_of_memory(self):
        class HugeText(str):
            def encode(self, *args, **kwargs):
                raise MemoryError

        with self.assertRaises(MessageTooLargeError) as ctx:
            hash_text(HugeText("abc"))
        self.assertIsInstance(ctx.exception.__cause__, MemoryError)


class CommandLineTest(unittest.TestCase):
    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = cli.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_message(self):
        code, out, _ = self._run(["abc"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "900150983cd24fb0d6963f7d28e17f72")

    def test_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "msg.txt")
            with open(path, "wb") as fp:
                fp.write(b"message digest")
            code, out, _ = self._run(["-f", path])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "f96b697d7cb7938d525a2f31aaf161d0")

    def test_missing_file(self):
        code, out, err = self._run(["-f", os.path.join("no", "such", "file")])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Cannot read", err)

    def test_stdin(self):
        stdin = io.TextIOWrapper(io.BytesIO(b"abc"))
        with mock.patch("sys.stdin", stdin):
            code, out, _ = self._run([])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "900150983cd24fb0d6963f7d28e17f72")

    def test_stdin_read_error(self):
        stdin = SimpleNamespace(buffer=_FailingReader(b"abc" * 100, fail_after=0))
        with mock.patch("sys.stdin", stdin):
            code, out, err = self._run([])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Cannot read", err)

    @unittest.skipUnless(os.name == "posix", "argv is bytes only on POSIX")
    def test_undecodable_argument_hashes_original_bytes(self):
        arg = os.fsdecode(b"caf\xe9")
        code, out, _ = self._run([arg])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), hashlib.md5(b"caf\xe9").hexdigest())


if __name__ == "__main__":
    unittest.main()
