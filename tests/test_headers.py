"""Tests for framing line formatting and parsing."""

from __future__ import annotations

import unittest

from yenc_engine.common.types import Header, PartTrailer, Trailer
from yenc_engine.core.headers import (
    classify_line,
    format_begin,
    format_end,
    format_part,
    parse_begin,
    parse_end,
    parse_part,
)
from yenc_engine.utils import FormatError


class TestFormatting(unittest.TestCase):
    def test_format_begin_single_part(self) -> None:
        header = Header(total_size=5, name="hello.txt", line_length=128)
        self.assertEqual(format_begin(header), b"=ybegin line=128 size=5 name=hello.txt\r\n")

    def test_format_begin_multi_part(self) -> None:
        header = Header(total_size=1024, name="a b", line_length=64, part=2, total_parts=3)
        self.assertEqual(
            format_begin(header),
            b"=ybegin line=64 size=1024 part=2 total=3 name=a b\r\n",
        )

    def test_format_part(self) -> None:
        self.assertEqual(format_part(PartTrailer(401, 800)), b"=ypart begin=401 end=800\r\n")

    def test_format_end_pads_checksums(self) -> None:
        trailer = Trailer(size=400, part=2, part_crc32=0xABC, crc32=0x1)
        self.assertEqual(
            format_end(trailer),
            b"=yend size=400 part=2 pcrc32=00000abc crc32=00000001\r\n",
        )


class TestParsing(unittest.TestCase):
    def test_parse_begin(self) -> None:
        header = parse_begin(b"=ybegin line=128 size=123456 name=Cargo.toml\r\n")
        self.assertEqual(header, Header(123456, "Cargo.toml", 128))

    def test_name_keeps_spaces_and_equal_signs(self) -> None:
        header = parse_begin("=ybegin size=3 name=my file=final .txt ")
        self.assertEqual(header.name, "my file=final .txt ")

    def test_keys_in_any_order(self) -> None:
        header = parse_begin(b"=ybegin total=3 part=2 size=1024 line=64 name=x")
        self.assertEqual(header.part, 2)
        self.assertEqual(header.total_parts, 3)
        self.assertEqual(header.line_length, 64)

    def test_unknown_keys_are_ignored(self) -> None:
        header = parse_begin(b"=ybegin foo=bar size=1 name=x")
        self.assertEqual(header.total_size, 1)

    def test_bare_tokens_are_skipped(self) -> None:
        with self.assertLogs("yenc_engine.core.headers", level="DEBUG") as logs:
            header = parse_begin(b"=ybegin bogus size=1 =x name=x")
        self.assertEqual(header, Header(1, "x"))
        self.assertEqual(len(logs.records), 2)
        self.assertEqual(parse_end(b"=yend size=5 junk").size, 5)

    def test_missing_name(self) -> None:
        with self.assertRaises(FormatError):
            parse_begin(b"=ybegin line=128 size=1")

    def test_missing_size(self) -> None:
        with self.assertRaises(FormatError):
            parse_begin(b"=ybegin line=128 name=x")

    def test_non_numeric_size(self) -> None:
        with self.assertRaises(FormatError):
            parse_begin(b"=ybegin size=12a name=x")

    def test_wrong_keyword(self) -> None:
        with self.assertRaises(FormatError):
            parse_begin(b"=yend size=1")

    def test_parse_part(self) -> None:
        self.assertEqual(parse_part(b"=ypart begin=1 end=400\r\n"), PartTrailer(1, 400))
        with self.assertRaises(FormatError):
            parse_part(b"=ypart begin=1")

    def test_parse_end(self) -> None:
        trailer = parse_end(b"=yend size=5 crc32=3610A686\r\n")
        self.assertEqual(trailer, Trailer(size=5, crc32=0x3610A686))

    def test_parse_end_multi_part(self) -> None:
        trailer = parse_end(b"=yend size=400 part=2 pcrc32=0000abcd")
        self.assertEqual(trailer.part, 2)
        self.assertEqual(trailer.part_crc32, 0xABCD)
        self.assertIsNone(trailer.crc32)

    def test_parse_end_invalid_checksum(self) -> None:
        with self.assertRaises(FormatError):
            parse_end(b"=yend size=5 crc32=xyz")
        with self.assertRaises(FormatError):
            parse_end(b"=yend size=5 crc32=123456789")

    def test_classify_line(self) -> None:
        self.assertEqual(classify_line(b"=ybegin size=1 name=x\r\n"), "begin")
        self.assertEqual(classify_line(b"=ypart begin=1 end=1\r\n"), "part")
        self.assertEqual(classify_line(b"=yend size=1\r\n"), "end")
        self.assertIsNone(classify_line(b"=yendless\r\n"))
        self.assertIsNone(classify_line(b"abc\r\n"))


if __name__ == "__main__":
    unittest.main()
