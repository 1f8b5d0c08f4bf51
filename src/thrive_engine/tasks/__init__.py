"""
Task subsystem.

Components:
- task_models.py: data structures (TaskDefinition, RunningTask, ChallengeProgress, results)
- duration.py / instantiator.py: duration text -> runnable task
- session.py: the single active task session (state machine)
- challenge.py: step-by-step challenge sequencer on top of the session
- ledger.py / ledger_store.py: append-only completion ledger (memory + SQLite)
- clock.py: 1 Hz tick loop driving the session
- rewards.py: XP and completion statistics
- catalog.py: JSON content catalog adapter
- session_state.py: save/restore of the live session
"""
