"""Entry point wrapper for ``python -m melody_walk``.

When the package is executed as a module the code here simply forwards
execution to :func:`melody_walk.main`.  Keeping the logic in a single
function means the behaviour is identical whether the user runs
``python -m melody_walk`` or the installed ``melody-walk`` console script.

Example
-------
The following invocation writes a LilyPond score and a MIDI file::

    python -m melody_walk song.ly --midi song.mid --seed 42
"""

# Reuse the package level ``main`` function so both ``python -m`` and the
# installed console script behave identically.
from . import main

if __name__ == "__main__":
    main()
