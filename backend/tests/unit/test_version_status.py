"""Unit tests for the VersionStatus state machine"""

import pytest

from docvault.domain.documents import (
    ALLOWED_TRANSITIONS,
    VersionStatus,
    can_transition,
    is_terminal,
)


class TestVersionStatusStateMachine:
    """Versions start pending and are resolved exactly once"""

    def test_enum_values(self):
        assert VersionStatus.PENDING_SCAN.value == "pending_scan"
        assert VersionStatus.AVAILABLE.value == "available"
        assert VersionStatus.QUARANTINED.value == "quarantined"

    def test_new_versions_start_pending(self):
        assert can_transition(None, VersionStatus.PENDING_SCAN) is True
        assert can_transition(None, VersionStatus.AVAILABLE) is False
        assert can_transition(None, VersionStatus.QUARANTINED) is False

    def test_pending_resolves_either_way(self):
        assert can_transition(VersionStatus.PENDING_SCAN, VersionStatus.AVAILABLE) is True
        assert can_transition(VersionStatus.PENDING_SCAN, VersionStatus.QUARANTINED) is True
        assert can_transition(VersionStatus.PENDING_SCAN, VersionStatus.PENDING_SCAN) is False

    @pytest.mark.parametrize("terminal", [VersionStatus.AVAILABLE, VersionStatus.QUARANTINED])
    def test_resolved_states_are_terminal(self, terminal):
        assert is_terminal(terminal) is True
        assert ALLOWED_TRANSITIONS[terminal] == []
        for target in VersionStatus:
            assert can_transition(terminal, target) is False

    def test_pending_is_not_terminal(self):
        assert is_terminal(VersionStatus.PENDING_SCAN) is False
