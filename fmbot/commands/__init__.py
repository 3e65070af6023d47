"""
Command modules.

Each module exports a ``schema`` and an async ``execute(ctx)``. It may add
``prefix_execute(message, args)`` for custom prefix handling and ``buttons``
or ``selects`` maps for component callbacks.
"""
