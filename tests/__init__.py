"""
LinearTV Test Suite

Test Categories:
- unit/: Fast, isolated unit tests
- playout/: Playout session timing and fallback
- scheduling/: Schedule extension over a SQLite timeline
- integration/: Timeline store, HTTP and websocket tests
- fixtures/: Shared builders and fakes
"""
