# ============================================================================
# OPEN ATTEMPT MODEL
# ============================================================================
# EPOCH: 1 - RDS IAM CONNECTOR
# STATUS: Core model - Per-connection state machine
# PURPOSE: Track one open() call from parsing to OPEN or FAILED
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: OpenAttempt
# DEPENDENCIES: pydantic
# ============================================================================
"""
Open Attempt Model

OpenAttempt records the progress of a single ConnectionOpener.open() call.

Lifecycle:
    1. Created with state=UNOPENED
    2. PARAMETERS_RESOLVED once the connection string and TLS profile resolve
    3. CREDENTIAL_RESOLVED once a token was minted (or override is off)
    4. HANDSHAKE_IN_FLIGHT just before the network connect
    5. OPEN on success, FAILED on any error

Terminal states never transition again. An attempt object is owned by one
open() call and is never shared between threads.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from core.contracts import OpenState
from core.models.target import ConnectionTarget


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OpenAttempt(BaseModel):
    """Runtime state of one connection open attempt."""

    attempt_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    driver: str = ""
    state: OpenState = OpenState.UNOPENED
    history: List[OpenState] = Field(default_factory=lambda: [OpenState.UNOPENED])
    target: Optional[ConnectionTarget] = None
    token_minted: bool = False
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Check if the attempt reached OPEN or FAILED."""
        return self.state.is_terminal()

    @computed_field
    @property
    def duration_seconds(self) -> Optional[float]:
        """Elapsed time of a finished attempt."""
        if not self.finished_at:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def can_transition_to(self, new_state: OpenState) -> bool:
        """
        Validate if a state transition is allowed.

        Valid transitions:
            UNOPENED -> PARAMETERS_RESOLVED, FAILED
            PARAMETERS_RESOLVED -> CREDENTIAL_RESOLVED, FAILED
            CREDENTIAL_RESOLVED -> HANDSHAKE_IN_FLIGHT, FAILED
            HANDSHAKE_IN_FLIGHT -> OPEN, FAILED
            OPEN, FAILED -> (none, terminal)
        """
        allowed = {
            OpenState.UNOPENED: {OpenState.PARAMETERS_RESOLVED, OpenState.FAILED},
            OpenState.PARAMETERS_RESOLVED: {OpenState.CREDENTIAL_RESOLVED, OpenState.FAILED},
            OpenState.CREDENTIAL_RESOLVED: {OpenState.HANDSHAKE_IN_FLIGHT, OpenState.FAILED},
            OpenState.HANDSHAKE_IN_FLIGHT: {OpenState.OPEN, OpenState.FAILED},
            OpenState.OPEN: set(),
            OpenState.FAILED: set(),
        }
        return new_state in allowed.get(self.state, set())

    def _advance(self, new_state: OpenState) -> None:
        if not self.can_transition_to(new_state):
            raise ValueError(f"Cannot transition from {self.state.value} to {new_state.value}")
        self.state = new_state
        self.history.append(new_state)
        if new_state.is_terminal():
            self.finished_at = _utcnow()

    def mark_parameters_resolved(self, target: ConnectionTarget) -> None:
        """Connection string parsed and TLS profile resolved."""
        self._advance(OpenState.PARAMETERS_RESOLVED)
        self.target = target

    def mark_credential_resolved(self, token_minted: bool) -> None:
        """Password decided: minted token or the configured static value."""
        self._advance(OpenState.CREDENTIAL_RESOLVED)
        self.token_minted = token_minted

    def mark_handshake_started(self) -> None:
        """Network/TLS handshake about to begin."""
        self._advance(OpenState.HANDSHAKE_IN_FLIGHT)

    def mark_open(self) -> None:
        """Handshake completed, connection is live."""
        self._advance(OpenState.OPEN)

    def mark_failed(self, error_message: str) -> None:
        """Attempt aborted."""
        self._advance(OpenState.FAILED)
        self.error_message = error_message[:2000]


__all__ = ["OpenAttempt"]
