"""Core editing and pagination modules.

WHY: The core package holds everything with real invariants: the segment
model, the edit store, flattening and pagination. It is pure in-memory
code with no I/O so it can be tested without a server or a UI.

HOW: ir.py defines the data structures, segments.py the per-utterance
span operations, edit_store.py the session state, flatten.py and
pagination.py the export path. transcript.py and operations.py turn
external records into IR objects and store mutations.

RULES:
- IR dataclasses are the contract; change with care
- No formatter-specific logic here
- Operations compute new segment lists; they never mutate in place
"""
