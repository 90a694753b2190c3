from unittest.mock import patch

import pytest

from draft.messaging.encoder import encode
from draft.messaging.types import SessionErrorCode
from draft.server import websocket as ws_module
from draft.server.websocket import _FrameRejectedError, _FrameScreen

PING = encode({"type": "ping"})
NOT_A_MAP = b"\x01"


class TestFrameScreen:
    def test_valid_frame_is_decoded(self):
        assert _FrameScreen().admit(PING) == {"type": "ping"}

    def test_undecodable_frame_counts_a_strike(self):
        screen = _FrameScreen()
        with pytest.raises(_FrameRejectedError) as exc_info:
            screen.admit(NOT_A_MAP)
        assert exc_info.value.code == SessionErrorCode.INVALID_MESSAGE
        assert screen.strikes == 1
        assert not screen.exhausted

    def test_strike_limit_exhausts_screen(self):
        screen = _FrameScreen()
        for _ in range(ws_module._MAX_DECODE_STRIKES):
            with pytest.raises(_FrameRejectedError):
                screen.admit(NOT_A_MAP)
        assert screen.exhausted

    def test_valid_frame_clears_strikes(self):
        screen = _FrameScreen()
        for _ in range(ws_module._MAX_DECODE_STRIKES - 1):
            with pytest.raises(_FrameRejectedError):
                screen.admit(NOT_A_MAP)
        screen.admit(PING)
        assert screen.strikes == 0

    def test_flood_is_rate_limited_without_strikes(self):
        with patch.object(ws_module, "_RATE_LIMIT_BURST", 2), patch.object(ws_module, "_RATE_LIMIT_RATE", 0.001):
            screen = _FrameScreen()
        screen.admit(PING)
        screen.admit(PING)
        with pytest.raises(_FrameRejectedError) as exc_info:
            screen.admit(PING)
        assert exc_info.value.code == SessionErrorCode.RATE_LIMITED
        assert screen.strikes == 0
