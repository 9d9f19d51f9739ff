"""Tests for request decoding and encoding."""

import unittest

from uniqproc.agent.models import (
    AddRequest,
    AliveRequest,
    ExecuteRequest,
    ListRequest,
    ToggleRequest,
    decode_request,
    encode_request,
)
from uniqproc.errors import RequestDecodeError


class RequestModelTests(unittest.TestCase):
    """Validate the verb discriminator and parse-failure behavior."""

    def test_decode_add_request(self) -> None:
        request = decode_request(b'{"verb": "add", "name": "web", "command": "python -m http.server"}')
        self.assertIsInstance(request, AddRequest)
        self.assertEqual(request.name, "web")
        self.assertEqual(request.command, "python -m http.server")

    def test_decode_field_less_verbs(self) -> None:
        self.assertIsInstance(decode_request('{"verb": "list"}'), ListRequest)
        self.assertIsInstance(decode_request('{"verb": "alive"}'), AliveRequest)

    def test_encoded_request_decodes_to_same_verb(self) -> None:
        request = decode_request(encode_request(ToggleRequest(name="sleep")))
        self.assertIsInstance(request, ToggleRequest)
        self.assertEqual(request.name, "sleep")

    def test_unknown_verb_rejected(self) -> None:
        with self.assertRaises(RequestDecodeError):
            decode_request(b'{"verb": "daemon"}')

    def test_missing_field_rejected(self) -> None:
        with self.assertRaises(RequestDecodeError):
            decode_request(b'{"verb": "add", "name": "web"}')

    def test_truncated_payload_rejected(self) -> None:
        payload = encode_request(ExecuteRequest(name="web"))
        with self.assertRaises(RequestDecodeError):
            decode_request(payload[:-3])
        with self.assertRaises(RequestDecodeError):
            decode_request(b"")


if __name__ == "__main__":
    unittest.main()
