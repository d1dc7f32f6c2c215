import unittest

from protocol import CommandRejectedError, parse_command
from protocol.commands import MAX_REQUEST_BYTES


class CommandParsingTests(unittest.TestCase):
    def test_recognized_commands(self) -> None:
        self.assertEqual("GET INFO", parse_command(b"GET INFO\n"))
        self.assertEqual("READY", parse_command(b"READY\n"))
        self.assertEqual("REMIND", parse_command(b"REMIND\n"))

    def test_only_first_line_is_considered(self) -> None:
        self.assertEqual("READY", parse_command(b"READY\ntrailing garbage"))

    def test_missing_newline_is_rejected(self) -> None:
        with self.assertRaises(CommandRejectedError):
            parse_command(b"READY")

    def test_empty_line_is_rejected(self) -> None:
        with self.assertRaises(CommandRejectedError):
            parse_command(b"\n")

    def test_commands_are_case_sensitive(self) -> None:
        with self.assertRaises(CommandRejectedError):
            parse_command(b"ready\n")

    def test_unknown_command_is_rejected(self) -> None:
        with self.assertRaises(CommandRejectedError):
            parse_command(b"BOGUS\n")

    def test_carriage_return_is_not_stripped(self) -> None:
        with self.assertRaises(CommandRejectedError):
            parse_command(b"READY\r\n")

    def test_invalid_utf8_is_rejected(self) -> None:
        with self.assertRaises(CommandRejectedError):
            parse_command(b"\xff\xfe\n")

    def test_oversized_request_is_rejected(self) -> None:
        with self.assertRaises(CommandRejectedError):
            parse_command(b"READY\n" + b"x" * MAX_REQUEST_BYTES)


if __name__ == "__main__":
    unittest.main()
