"""Recording state machine for managing state transitions."""

from app.schemas import RecordingState


class RecordingStateMachine:
    """State machine for a connection's recording lifecycle.

    State flow with triggers:
    - IDLE -> RECORDING (start-recording accepted)
    - RECORDING -> FINALIZING (stop-recording, or the connection disconnected)
    - FINALIZING -> IDLE (finalizer finished, whatever its outcome)
    - FINALIZING -> RECORDING (new start while the previous take is still
      being saved; finalization works on its own detached Recording)

    A start-recording received in RECORDING is rejected; the active recording
    is left untouched.
    """

    TRANSITIONS: dict[RecordingState, set[RecordingState]] = {
        RecordingState.IDLE: {RecordingState.RECORDING},
        RecordingState.RECORDING: {RecordingState.FINALIZING},
        RecordingState.FINALIZING: {RecordingState.IDLE, RecordingState.RECORDING},
    }

    # States in which media chunks are accepted
    ACCEPTING_STATES: set[RecordingState] = {RecordingState.RECORDING}

    @classmethod
    def can_transition(cls, current: RecordingState, new: RecordingState) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current recording state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def accepts_chunks(cls, state: RecordingState) -> bool:
        return state in cls.ACCEPTING_STATES

    @classmethod
    def get_valid_transitions(cls, state: RecordingState) -> set[RecordingState]:
        return cls.TRANSITIONS.get(state, set())

    @classmethod
    def get_valid_sources(cls, target: RecordingState) -> set[RecordingState]:
        return {state for state, targets in cls.TRANSITIONS.items() if target in targets}
