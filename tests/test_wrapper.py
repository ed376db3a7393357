"""Tests for line wrapping and line decoding."""

from __future__ import annotations

import unittest

from yenc_engine.core.wrapper import LineCursor, LineDecoder, encode_chunk, finish_line
from yenc_engine.utils import FormatError

# raw bytes named after their encoded form
A = 23
SPACE = 246
TAB = 223
NUL_OUT = 214
DOT = 4


class TestEncodeChunk(unittest.TestCase):
    def test_critical_sample(self) -> None:
        encoded, cursor = encode_chunk(bytes([0x00, 0x0A, 0x3D]), LineCursor(), 128)
        self.assertEqual(encoded, b"\x2a\x34\x67")
        self.assertEqual(cursor, LineCursor(3, None))
        self.assertEqual(finish_line(cursor), b"\r\n")

    def test_space_at_line_start_is_escaped(self) -> None:
        encoded, cursor = encode_chunk(bytes([SPACE]), LineCursor(), 128)
        self.assertEqual(encoded, b"=\x60")
        self.assertEqual(cursor, LineCursor(2, None))

    def test_tab_at_line_start_is_escaped(self) -> None:
        encoded, _ = encode_chunk(bytes([TAB]), LineCursor(), 128)
        self.assertEqual(encoded, b"=\x49")

    def test_trailing_space_is_held_back(self) -> None:
        encoded, cursor = encode_chunk(bytes([A, SPACE]), LineCursor(), 128)
        self.assertEqual(encoded, b"A")
        self.assertEqual(cursor, LineCursor(2, 0x20))
        self.assertEqual(finish_line(cursor), b"=\x60\r\n")

    def test_inner_space_is_literal(self) -> None:
        encoded, cursor = encode_chunk(bytes([A, SPACE, A]), LineCursor(), 128)
        self.assertEqual(encoded, b"A A")
        self.assertEqual(cursor, LineCursor(3, None))

    def test_pending_space_carries_across_chunks(self) -> None:
        first, cursor = encode_chunk(bytes([A, SPACE]), LineCursor(), 128)
        second, cursor = encode_chunk(bytes([A]), cursor, 128)
        self.assertEqual(first + second, b"A A")
        self.assertEqual(cursor, LineCursor(3, None))

    def test_wraps_at_line_length(self) -> None:
        encoded, cursor = encode_chunk(bytes([A] * 10), LineCursor(), 4)
        self.assertEqual(encoded, b"AAAA\r\nAAAA\r\nAA")
        self.assertEqual(cursor, LineCursor(2, None))

    def test_exact_fill_leaves_no_open_line(self) -> None:
        encoded, cursor = encode_chunk(bytes([A] * 3), LineCursor(), 3)
        self.assertEqual(encoded, b"AAA\r\n")
        self.assertEqual(finish_line(cursor), b"")

    def test_escape_pair_is_not_split(self) -> None:
        encoded, cursor = encode_chunk(bytes([A, A, A, NUL_OUT]), LineCursor(), 4)
        self.assertEqual(encoded, b"AAA\r\n=@")
        self.assertEqual(cursor, LineCursor(2, None))

    def test_space_in_last_column_moves_to_next_line(self) -> None:
        encoded, _ = encode_chunk(bytes([A, A, A, SPACE]), LineCursor(), 4)
        self.assertEqual(encoded, b"AAA\r\n=\x60")

    def test_pending_space_escaped_when_line_breaks(self) -> None:
        encoded, _ = encode_chunk(bytes([A, A, SPACE, NUL_OUT]), LineCursor(), 4)
        self.assertEqual(encoded, b"AA=\x60\r\n=@")

    def test_empty_chunk(self) -> None:
        encoded, cursor = encode_chunk(b"", LineCursor(), 128)
        self.assertEqual(encoded, b"")
        self.assertEqual(finish_line(cursor), b"")

    def test_dot_at_line_start_is_escaped(self) -> None:
        encoded, cursor = encode_chunk(bytes([DOT, DOT]), LineCursor(), 128)
        self.assertEqual(encoded, b"=n.")
        self.assertEqual(cursor, LineCursor(3, None))

    def test_dot_stuffing_doubles_leading_dot(self) -> None:
        encoded, _ = encode_chunk(bytes([DOT, A, DOT]), LineCursor(), 128, dot_stuff=True)
        self.assertEqual(encoded, b"..A.")

    def test_dot_stuffing_on_wrapped_lines(self) -> None:
        encoded, cursor = encode_chunk(bytes([DOT] * 3), LineCursor(), 2, dot_stuff=True)
        self.assertEqual(encoded, b"..\r\n..\r\n..\r\n")
        self.assertEqual(cursor, LineCursor(0, None))


class TestLineDecoder(unittest.TestCase):
    def test_decodes_escape(self) -> None:
        self.assertEqual(LineDecoder().decode(b"=\x40\r\n"), bytes([214]))

    def test_escape_continues_on_next_line(self) -> None:
        decoder = LineDecoder()
        self.assertEqual(decoder.decode(b"A=\r\n"), bytes([A]))
        self.assertEqual(decoder.decode(b"@\r\n"), bytes([214]))
        decoder.finish()

    def test_dangling_escape_is_format_error(self) -> None:
        decoder = LineDecoder()
        decoder.decode(b"A=")
        with self.assertRaises(FormatError):
            decoder.finish()

    def test_unexpected_escape_is_counted(self) -> None:
        decoder = LineDecoder()
        self.assertEqual(decoder.decode(b"=\x41"), bytes([(0x41 - 106) & 0xFF]))
        self.assertEqual(decoder.unexpected_escapes, 1)

    def test_skips_nul(self) -> None:
        self.assertEqual(LineDecoder().decode(b"A\x00A"), bytes([A, A]))

    def test_collapses_stuffed_dot(self) -> None:
        self.assertEqual(LineDecoder().decode(b"..k\r\n"), b"\x04A")
        self.assertEqual(LineDecoder().decode(b".k\r\n"), b"\x04A")
        self.assertEqual(LineDecoder().decode(b"k..\r\n"), b"A\x04\x04")

    def test_escaped_dot_is_expected(self) -> None:
        decoder = LineDecoder()
        self.assertEqual(decoder.decode(b"=n\r\n"), bytes([DOT]))
        self.assertEqual(decoder.unexpected_escapes, 0)

    def test_escape_from_previous_line_keeps_both_dots(self) -> None:
        decoder = LineDecoder()
        decoder.decode(b"A=\r\n")
        self.assertEqual(len(decoder.decode(b"..\r\n")), 2)


if __name__ == "__main__":
    unittest.main()
