"""
Unit-тесты для parse_range_header: чистый парсер, без файлов.
"""
import unittest

from app.streaming.range_parser import (
    FullRequest,
    Malformed,
    MultiRange,
    SingleRange,
    parse_range_header,
)


class TestParseRangeHeader(unittest.TestCase):
    def test_missing_header_is_full_request(self):
        self.assertIsInstance(parse_range_header(None), FullRequest)
        self.assertIsInstance(parse_range_header(""), FullRequest)
        self.assertIsInstance(parse_range_header("   "), FullRequest)

    def test_closed_range(self):
        self.assertEqual(parse_range_header("bytes=0-99"), SingleRange(start=0, end=99))

    def test_open_ended_range(self):
        self.assertEqual(parse_range_header("bytes=100-"), SingleRange(start=100, end=None))

    def test_first_byte_only(self):
        self.assertEqual(parse_range_header("bytes=0-0"), SingleRange(start=0, end=0))

    def test_surrounding_whitespace_tolerated(self):
        self.assertEqual(parse_range_header("  bytes=5-10 "), SingleRange(start=5, end=10))

    def test_reversed_range_is_parsed_not_validated(self):
        """10-5 is syntactically fine; plan_window rejects it against the file length."""
        self.assertEqual(parse_range_header("bytes=10-5"), SingleRange(start=10, end=5))

    def test_suffix_range_is_malformed(self):
        self.assertIsInstance(parse_range_header("bytes=-500"), Malformed)

    def test_non_numeric_is_malformed(self):
        self.assertIsInstance(parse_range_header("bytes=abc-10"), Malformed)
        self.assertIsInstance(parse_range_header("bytes=1-x"), Malformed)
        self.assertIsInstance(parse_range_header("bytes=-"), Malformed)
        self.assertIsInstance(parse_range_header("bytes="), Malformed)

    def test_other_unit_is_malformed(self):
        self.assertIsInstance(parse_range_header("items=0-10"), Malformed)

    def test_missing_unit_is_malformed(self):
        self.assertIsInstance(parse_range_header("0-10"), Malformed)

    def test_multiple_ranges(self):
        parsed = parse_range_header("bytes=0-1, 5-6")
        self.assertIsInstance(parsed, MultiRange)
        self.assertEqual(parsed.specs, ("0-1", "5-6"))

    def test_non_ascii_digits_are_malformed(self):
        self.assertIsInstance(parse_range_header("bytes=٠-٥"), Malformed)
        self.assertIsInstance(parse_range_header("bytes=1-５"), Malformed)
