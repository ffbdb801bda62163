"""Test model enums and display names."""

from evobot.models.enums import (
    ControllerError,
    ControllerState,
    FirmwareRevision,
    SessionState,
    SoundEventType,
    get_state_name,
)


class TestSessionState:
    """Test SessionState enum."""

    def test_values(self):
        assert SessionState.DISCONNECTED == 0
        assert SessionState.CONNECTING == 1
        assert SessionState.CONNECTED == 2

    def test_names(self):
        assert get_state_name(SessionState.DISCONNECTED) == "Disconnected"
        assert get_state_name(SessionState.CONNECTING) == "Connecting"
        assert get_state_name(SessionState.CONNECTED) == "Connected"


class TestControllerState:
    """Test ControllerState enum."""

    def test_names(self):
        assert get_state_name(ControllerState.UNINITIALIZED) == "Uninitialized"
        assert get_state_name(ControllerState.DEVICE_DISCOVERY) == "Device discovery"
        assert get_state_name(ControllerState.SERVICE_DISCOVERY) == "Service discovery"
        assert get_state_name(ControllerState.CONNECTING) == "Connecting"
        assert get_state_name(ControllerState.CONNECTED) == "Connected"
        assert get_state_name(ControllerState.ERROR) == "Error"

    def test_names_do_not_collide_with_session_states(self):
        """Equal integer values still resolve by their own enum."""
        assert ControllerState.DEVICE_DISCOVERY == SessionState.CONNECTING
        assert get_state_name(ControllerState.DEVICE_DISCOVERY) != get_state_name(
            SessionState.CONNECTING
        )

    def test_every_state_has_a_name(self):
        for state in ControllerState:
            assert get_state_name(state)
        for state in SessionState:
            assert get_state_name(state)


class TestControllerError:
    """Test ControllerError enum."""

    def test_no_error_is_falsy(self):
        assert not ControllerError.NO_ERROR
        assert ControllerError.BLUETOOTH_MISSING
        assert ControllerError.DEVICE_DISCOVERY
        assert ControllerError.DEVICE_ERROR


class TestFirmwareRevision:
    """Test FirmwareRevision enum."""

    def test_values(self):
        assert FirmwareRevision.UNKNOWN == 0
        assert FirmwareRevision.REVISION_1 == 1
        assert FirmwareRevision.REVISION_2 == 2


class TestSoundEventType:
    """Test SoundEventType enum."""

    def test_values(self):
        assert SoundEventType("Play") is SoundEventType.PLAY
        assert SoundEventType("End") is SoundEventType.END
